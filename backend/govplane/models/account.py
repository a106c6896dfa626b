from datetime import datetime

from govplane.extensions import db


class Account(db.Model):
    __tablename__ = "accounts"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(120), nullable=False, default="")
    email = db.Column(db.String(255), unique=True, index=True, nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    country = db.Column(db.String(64), nullable=True)
    city = db.Column(db.String(64), nullable=True)
    account_type = db.Column(db.String(16), nullable=False, default="Standard")  # Standard|Pro

    balance = db.Column(db.Float, nullable=False, default=0.0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    account_status = db.Column(db.String(160), nullable=False, default="Active")

    # Effective restriction map, recomputed from restriction_sources on every change.
    restrictions = db.Column(db.JSON, nullable=False, default=dict)

    bank_accounts = db.Column(db.JSON, nullable=False, default=list)
    crypto_wallets = db.Column(db.JSON, nullable=False, default=list)
    approval_conditions = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def find_wallet(self, wallet_id: str):
        for w in self.crypto_wallets or []:
            if str(w.get("id")) == str(wallet_id):
                return w
        return None

    def to_dict(self):
        return {
            "id": int(self.id),
            "name": self.name or "",
            "email": self.email,
            "phone": self.phone or "",
            "country": self.country or "",
            "city": self.city or "",
            "account_type": self.account_type or "Standard",
            "balance": float(self.balance or 0.0),
            "is_active": bool(self.is_active),
            "account_status": self.account_status or "Active",
            "restrictions": dict(self.restrictions or {}),
            "bank_accounts": list(self.bank_accounts or []),
            "crypto_wallets": list(self.crypto_wallets or []),
            "approval_conditions": list(self.approval_conditions or []),
            "version": int(self.version or 0),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
