import json
from datetime import datetime

from govplane.extensions import db


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)

    actor_id = db.Column(db.String(64), nullable=False, index=True)
    actor_name = db.Column(db.String(120), nullable=False, default="")
    action = db.Column(db.String(64), nullable=False, index=True)
    target_type = db.Column(db.String(64), nullable=True)
    target_id = db.Column(db.String(64), nullable=True, index=True)
    target_name = db.Column(db.String(160), nullable=True)
    meta = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    @property
    def details(self) -> dict:
        if not self.meta:
            return {}
        return json.loads(self.meta)

    def to_dict(self):
        return {
            "id": int(self.id),
            "actor_id": self.actor_id,
            "actor_name": self.actor_name or "",
            "action": self.action,
            "target_type": self.target_type or "",
            "target_id": self.target_id,
            "target_name": self.target_name or "",
            "details": self.details,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
