from datetime import datetime

from govplane.extensions import db

BAN_TYPES = ("withdrawal_only", "trading_only", "full_platform")


class ShadowBan(db.Model):
    __tablename__ = "shadow_bans"

    id = db.Column(db.Integer, primary_key=True)
    # One row per account; replacing a ban rewrites this row.
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, unique=True, index=True)

    ban_type = db.Column(db.String(24), nullable=False)  # withdrawal_only|trading_only|full_platform
    reason = db.Column(db.Text(), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    banned_by = db.Column(db.String(64), nullable=False)
    banned_by_name = db.Column(db.String(120), nullable=True)
    banned_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime, nullable=True)

    removed_by = db.Column(db.String(64), nullable=True)
    removed_at = db.Column(db.DateTime, nullable=True)

    version = db.Column(db.Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def to_dict(self):
        return {
            "id": int(self.id),
            "account_id": int(self.account_id),
            "ban_type": self.ban_type,
            "reason": self.reason or "",
            "is_active": bool(self.is_active),
            "banned_by": self.banned_by,
            "banned_by_name": self.banned_by_name or "",
            "banned_at": self.banned_at.isoformat() if self.banned_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "removed_by": self.removed_by,
            "removed_at": self.removed_at.isoformat() if self.removed_at else None,
        }
