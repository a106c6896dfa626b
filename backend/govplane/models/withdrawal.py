from datetime import datetime

from govplane.extensions import db

WITHDRAWAL_OVERRIDE_STATUSES = ("Approved", "Rejected", "Credited", "Refunded")


class Withdrawal(db.Model):
    __tablename__ = "withdrawals"

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    amount = db.Column(db.Float, nullable=False)
    method = db.Column(db.String(16), nullable=False, default="bank")  # bank|crypto
    destination = db.Column(db.String(160), nullable=True)
    status = db.Column(db.String(20), nullable=False, default="Pending")

    governor_override = db.Column(db.Boolean, nullable=False, default=False)
    governor_comment = db.Column(db.String(400), nullable=True)
    overridden_by = db.Column(db.String(120), nullable=True)
    overridden_at = db.Column(db.DateTime, nullable=True)
    required_documents = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "account_id": int(self.account_id),
            "amount": float(self.amount or 0.0),
            "method": self.method or "bank",
            "destination": self.destination or "",
            "status": self.status,
            "governor_override": bool(self.governor_override),
            "governor_comment": self.governor_comment or "",
            "overridden_by": self.overridden_by or "",
            "overridden_at": self.overridden_at.isoformat() if self.overridden_at else None,
            "required_documents": list(self.required_documents or []),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
