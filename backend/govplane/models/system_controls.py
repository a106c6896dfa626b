from datetime import datetime

from govplane.extensions import db

# capability -> persisted column; wire key is the camelCase of the column.
CAPABILITIES = (
    "withdrawals",
    "messaging",
    "profile_updates",
    "login",
    "trading",
    "deposits",
    "reporting",
    "account_creation",
    "support_tickets",
    "data_export",
    "notifications",
    "api_access",
)

RESTRICTION_LEVELS = ("none", "partial", "full")


def capability_column(capability: str) -> str:
    return f"{capability}_enabled"


def capability_wire_key(capability: str) -> str:
    head, *rest = capability_column(capability).split("_")
    return head + "".join(p.capitalize() for p in rest)


class SystemControls(db.Model):
    """Durable backing row for the global capability switches (single row, id=1)."""

    __tablename__ = "system_controls"

    id = db.Column(db.Integer, primary_key=True)

    # NULL means "never set" and reads as enabled.
    withdrawals_enabled = db.Column(db.Boolean, nullable=True)
    messaging_enabled = db.Column(db.Boolean, nullable=True)
    profile_updates_enabled = db.Column(db.Boolean, nullable=True)
    login_enabled = db.Column(db.Boolean, nullable=True)
    trading_enabled = db.Column(db.Boolean, nullable=True)
    deposits_enabled = db.Column(db.Boolean, nullable=True)
    reporting_enabled = db.Column(db.Boolean, nullable=True)
    account_creation_enabled = db.Column(db.Boolean, nullable=True)
    support_tickets_enabled = db.Column(db.Boolean, nullable=True)
    data_export_enabled = db.Column(db.Boolean, nullable=True)
    notifications_enabled = db.Column(db.Boolean, nullable=True)
    api_access_enabled = db.Column(db.Boolean, nullable=True)

    restricted_mode = db.Column(db.Boolean, nullable=False, default=False)
    restriction_level = db.Column(db.String(16), nullable=False, default="none")  # none|partial|full
    restriction_reason = db.Column(db.String(400), nullable=False, default="")
    allowed_pages = db.Column(db.JSON, nullable=False, default=list)

    maintenance_mode = db.Column(db.Boolean, nullable=False, default=False)
    maintenance_message = db.Column(db.String(400), nullable=False, default="")

    updated_by = db.Column(db.String(120), nullable=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def capability_enabled(self, capability: str) -> bool:
        return getattr(self, capability_column(capability)) is not False

    def set_capability(self, capability: str, enabled: bool) -> None:
        setattr(self, capability_column(capability), bool(enabled))

    def to_dict(self):
        data = {capability_wire_key(c): self.capability_enabled(c) for c in CAPABILITIES}
        data.update({
            "restrictedMode": bool(self.restricted_mode),
            "restrictionLevel": self.restriction_level or "none",
            "restrictionReason": self.restriction_reason or "",
            "allowedPages": list(self.allowed_pages or []),
            "maintenanceMode": bool(self.maintenance_mode),
            "maintenanceMessage": self.maintenance_message or "",
            "updatedBy": self.updated_by or "",
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "version": int(self.version or 0),
        })
        return data
