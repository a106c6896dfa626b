from datetime import datetime

from flask_login import UserMixin

from govplane.extensions import db


class User(db.Model, UserMixin):
    """Privileged operator (Admin or Governor) acting on the control plane."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(120), nullable=False, default="")
    email = db.Column(db.String(255), unique=True, index=True, nullable=False)

    role = db.Column(db.String(32), nullable=False, default="admin")  # admin|governor

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role or "admin",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
