from datetime import datetime

from govplane.extensions import db

FLAG_TYPES = ("fraud", "policy_violation", "withdrawal_restriction", "kyc_document_issue")
FLAG_SEVERITIES = ("low", "medium", "high", "critical")


class AccountFlag(db.Model):
    __tablename__ = "account_flags"

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    flag_type = db.Column(db.String(32), nullable=False, index=True)  # fraud|policy_violation|withdrawal_restriction|kyc_document_issue
    severity = db.Column(db.String(16), nullable=False, default="low")  # low|medium|high|critical
    description = db.Column(db.Text(), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="active", index=True)  # active|under_review|resolved

    withdrawal_disabled = db.Column(db.Boolean, nullable=False, default=False)
    account_suspended = db.Column(db.Boolean, nullable=False, default=False)
    requires_approval = db.Column(db.Boolean, nullable=False, default=False)

    created_by = db.Column(db.String(64), nullable=False)
    created_by_name = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    resolved_by = db.Column(db.String(64), nullable=True)
    resolved_at = db.Column(db.DateTime, nullable=True)
    resolution_notes = db.Column(db.Text(), nullable=True)

    version = db.Column(db.Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    @property
    def auto_restrictions(self) -> dict:
        return {
            "withdrawal_disabled": bool(self.withdrawal_disabled),
            "account_suspended": bool(self.account_suspended),
            "requires_approval": bool(self.requires_approval),
        }

    def to_dict(self):
        return {
            "id": int(self.id),
            "account_id": int(self.account_id),
            "flag_type": self.flag_type,
            "severity": self.severity,
            "description": self.description or "",
            "status": self.status,
            "auto_restrictions": self.auto_restrictions,
            "created_by": self.created_by,
            "created_by_name": self.created_by_name or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "resolved_by": self.resolved_by,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "resolution_notes": self.resolution_notes or "",
        }
