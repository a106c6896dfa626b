from datetime import datetime

from govplane.extensions import db


class RestrictionSource(db.Model):
    """One restriction key asserted on an account by one governance source."""

    __tablename__ = "restriction_sources"

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    source_type = db.Column(db.String(32), nullable=False)  # flag|shadow_ban|document_request|governor|account_closure
    source_id = db.Column(db.String(64), nullable=False)

    key = db.Column(db.String(64), nullable=False)
    value = db.Column(db.String(64), nullable=True)  # None means boolean True
    message = db.Column(db.String(240), nullable=True)

    expires_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        db.Index("ix_restriction_sources_origin", "account_id", "source_type", "source_id"),
    )

    def is_live(self, now: datetime) -> bool:
        return self.expires_at is None or self.expires_at > now

    def to_dict(self):
        return {
            "id": int(self.id),
            "account_id": int(self.account_id),
            "source_type": self.source_type,
            "source_id": self.source_id,
            "key": self.key,
            "value": self.value,
            "message": self.message or "",
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
