"""Global capability switches and emergency lockdown.

The ``SystemControls`` row is only the backing store. Evaluators work on a
``ControlsState`` snapshot taken with ``get_controls()`` and passed in
explicitly, so a request sees one consistent view of the switches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List

from flask import current_app

from govplane.actors import Actor, require_governor
from govplane.errors import ValidationError
from govplane.extensions import db
from govplane.models import SystemControls
from govplane.models.system_controls import (
    CAPABILITIES,
    RESTRICTION_LEVELS,
    capability_wire_key,
)
from govplane.realtime import feed
from govplane.utils import audit
from govplane.utils.atomic import run_atomic
from govplane.utils.inputs import clean_choice, clean_text

CONTROLS_ID = 1


@dataclass(frozen=True)
class ControlsState:
    capabilities: Dict[str, bool] = field(default_factory=lambda: {c: True for c in CAPABILITIES})
    restricted_mode: bool = False
    restriction_level: str = "none"
    restriction_reason: str = ""
    allowed_pages: List[str] = field(default_factory=list)
    maintenance_mode: bool = False
    maintenance_message: str = ""
    version: int = 0

    def is_enabled(self, capability: str) -> bool:
        return self.capabilities.get(capability, True) is not False

    @classmethod
    def from_row(cls, row: SystemControls | None) -> "ControlsState":
        if row is None:
            return cls()
        return cls(
            capabilities={c: row.capability_enabled(c) for c in CAPABILITIES},
            restricted_mode=bool(row.restricted_mode),
            restriction_level=row.restriction_level or "none",
            restriction_reason=row.restriction_reason or "",
            allowed_pages=list(row.allowed_pages or []),
            maintenance_mode=bool(row.maintenance_mode),
            maintenance_message=row.maintenance_message or "",
            version=int(row.version or 0),
        )

    def to_dict(self) -> dict:
        data = {capability_wire_key(c): self.is_enabled(c) for c in CAPABILITIES}
        data.update({
            "restrictedMode": self.restricted_mode,
            "restrictionLevel": self.restriction_level,
            "restrictionReason": self.restriction_reason,
            "allowedPages": list(self.allowed_pages),
            "maintenanceMode": self.maintenance_mode,
            "maintenanceMessage": self.maintenance_message,
            "version": self.version,
        })
        return data


def normalize_capability(key: str) -> str:
    """Accept ``profile_updates``, ``profileUpdates``, ``profileUpdatesEnabled`` or ``PROFILE_UPDATES``."""
    raw = clean_text(key, "capability")
    if not any(ch.islower() for ch in raw):
        raw = raw.lower()
    if raw.endswith("Enabled"):
        raw = raw[: -len("Enabled")]
    if raw.endswith("_enabled"):
        raw = raw[: -len("_enabled")]
    snake = "".join(f"_{ch.lower()}" if ch.isupper() else ch for ch in raw).lower()
    if snake not in CAPABILITIES:
        raise ValidationError("Unknown capability", capability=key)
    return snake


def get_or_create_controls() -> SystemControls:
    row = db.session.get(SystemControls, CONTROLS_ID)
    if row is None:
        row = SystemControls(id=CONTROLS_ID, allowed_pages=[])
        db.session.add(row)
        db.session.flush()
    return row


def get_controls() -> ControlsState:
    return ControlsState.from_row(db.session.get(SystemControls, CONTROLS_ID))


def is_page_allowed(controls: ControlsState, path: str) -> bool:
    if not controls.restricted_mode or not controls.allowed_pages:
        return True
    path = path or "/"
    return any(path == p or path.startswith(p.rstrip("/") + "/") for p in controls.allowed_pages)


def restriction_message(controls: ControlsState) -> str:
    if controls.maintenance_mode:
        return controls.maintenance_message or "The platform is under maintenance."
    if controls.restricted_mode:
        return controls.restriction_reason or "The platform is temporarily restricted."
    return ""


def _touch(row: SystemControls, actor: Actor) -> None:
    row.updated_by = actor.name
    row.updated_at = datetime.utcnow()
    feed.queue_change(feed.CONTROLS_CHANNEL, row)


def _audit(actor: Actor, action: str, details: dict) -> None:
    audit.record(actor, action, "system_controls", CONTROLS_ID, "System Controls", details)


def emergency_shutdown(actor: Actor, reason: str) -> ControlsState:
    actor = require_governor(actor)
    reason = clean_text(reason, "reason", required=True)

    def _shutdown():
        row = get_or_create_controls()
        for cap in CAPABILITIES:
            row.set_capability(cap, False)
        row.restricted_mode = True
        row.restriction_level = "full"
        row.restriction_reason = reason[:400]
        row.allowed_pages = list(current_app.config.get("GOVERNANCE_ALLOWED_PAGES") or ["/governor"])
        _touch(row, actor)
        _audit(actor, "emergency_shutdown", {"reason": reason, "allowed_pages": row.allowed_pages})
        return row

    row = run_atomic(_shutdown)
    current_app.logger.warning("governance: emergency shutdown by %s: %s", actor.id, reason)
    return ControlsState.from_row(row)


def restore_all(actor: Actor) -> ControlsState:
    actor = require_governor(actor)

    def _restore():
        row = get_or_create_controls()
        for cap in CAPABILITIES:
            row.set_capability(cap, True)
        row.restricted_mode = False
        row.restriction_level = "none"
        row.restriction_reason = ""
        row.allowed_pages = []
        _touch(row, actor)
        _audit(actor, "restore_all", {})
        return row

    return ControlsState.from_row(run_atomic(_restore))


def toggle_capability(capability_key: str, enabled: bool, actor: Actor) -> ControlsState:
    actor = require_governor(actor)
    cap = normalize_capability(capability_key)
    if not isinstance(enabled, bool):
        raise ValidationError("enabled must be a boolean", enabled=enabled)

    def _toggle():
        row = get_or_create_controls()
        previous = row.capability_enabled(cap)
        row.set_capability(cap, enabled)
        _touch(row, actor)
        _audit(actor, "capability_toggle", {"capability": cap, "from": previous, "to": enabled})
        return row

    return ControlsState.from_row(run_atomic(_toggle))


def set_restriction_level(level: str, actor: Actor, reason: str | None = None) -> ControlsState:
    actor = require_governor(actor)
    level = clean_choice(level, "level", RESTRICTION_LEVELS)
    if reason is not None:
        reason = clean_text(reason, "reason", max_len=400)

    def _set_level():
        row = get_or_create_controls()
        previous = row.restriction_level or "none"
        if previous != level:
            row.restriction_level = level
            row.restricted_mode = level != "none"
            if reason is not None:
                row.restriction_reason = reason
            _touch(row, actor)
        _audit(actor, "restriction_level_change", {"from": previous, "to": level, "reason": reason or ""})
        return row

    return ControlsState.from_row(run_atomic(_set_level))


def set_allowed_pages(pages, actor: Actor) -> ControlsState:
    actor = require_governor(actor)
    if not isinstance(pages, (list, tuple)):
        raise ValidationError("pages must be a list of paths")
    cleaned = []
    for p in pages:
        p = clean_text(p, "page")
        if not p.startswith("/"):
            raise ValidationError("page paths must start with '/'", page=p)
        if p not in cleaned:
            cleaned.append(p)

    def _set_pages():
        row = get_or_create_controls()
        row.allowed_pages = cleaned
        _touch(row, actor)
        _audit(actor, "allowed_pages_change", {"allowed_pages": cleaned})
        return row

    return ControlsState.from_row(run_atomic(_set_pages))


def set_maintenance(enabled: bool, message: str | None, actor: Actor) -> ControlsState:
    actor = require_governor(actor)
    if not isinstance(enabled, bool):
        raise ValidationError("enabled must be a boolean", enabled=enabled)
    if message is not None:
        message = clean_text(message, "message", max_len=400)

    def _set_maintenance():
        row = get_or_create_controls()
        row.maintenance_mode = enabled
        if message is not None:
            row.maintenance_message = message
        _touch(row, actor)
        _audit(actor, "maintenance_mode", {"enabled": enabled, "message": row.maintenance_message})
        return row

    return ControlsState.from_row(run_atomic(_set_maintenance))


def _quick_restriction(capability: str, action: str, actor: Actor) -> ControlsState:
    actor = require_governor(actor)

    def _restrict():
        row = get_or_create_controls()
        row.set_capability(capability, False)
        if (row.restriction_level or "none") == "none":
            row.restriction_level = "partial"
        row.restricted_mode = True
        _touch(row, actor)
        _audit(actor, action, {"capability": capability, "restriction_level": row.restriction_level})
        return row

    return ControlsState.from_row(run_atomic(_restrict))


def disable_withdrawals(actor: Actor) -> ControlsState:
    return _quick_restriction("withdrawals", "disable_withdrawals", actor)


def disable_messaging(actor: Actor) -> ControlsState:
    return _quick_restriction("messaging", "disable_messaging", actor)
