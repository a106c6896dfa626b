from datetime import datetime

from govplane.extensions import db


class LedgerEntry(db.Model):
    __tablename__ = "ledger_entries"

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    entry_type = db.Column(db.String(24), nullable=False)  # Deposit|Credit|Debit
    direction = db.Column(db.String(8), nullable=False)  # credit/debit
    amount = db.Column(db.Float, nullable=False, default=0.0)
    balance_after = db.Column(db.Float, nullable=False, default=0.0)
    status = db.Column(db.String(16), nullable=False, default="Completed")

    description = db.Column(db.String(240), nullable=True)
    reference = db.Column(db.String(80), nullable=True, index=True)
    idempotency_key = db.Column(db.String(160), nullable=True, unique=True, index=True)
    processed_by = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "account_id": int(self.account_id),
            "entry_type": self.entry_type,
            "direction": self.direction,
            "amount": float(self.amount or 0.0),
            "balance_after": float(self.balance_after or 0.0),
            "status": self.status,
            "description": self.description or "",
            "reference": self.reference or "",
            "processed_by": self.processed_by or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
