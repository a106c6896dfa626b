from __future__ import annotations

import json
from typing import Any

from flask import current_app
from sqlalchemy import event

from govplane.actors import Actor
from govplane.errors import ConflictError
from govplane.extensions import db
from govplane.models import AuditLog

MAX_LIST_LIMIT = 500


def _safe_json(details: dict | None) -> str | None:
    if details is None:
        return None
    return json.dumps(details, default=str, sort_keys=True)


def append(
    actor_id: str,
    actor_name: str,
    action: str,
    target_id: Any,
    target_name: str,
    details: dict | None = None,
    target_type: str | None = None,
) -> AuditLog:
    """Stage an audit entry in the caller's open transaction.

    Never commits: the entry becomes durable together with the mutation it documents.
    """
    entry = AuditLog(
        actor_id=str(actor_id),
        actor_name=(actor_name or "")[:120],
        action=action,
        target_type=target_type,
        target_id=str(target_id) if target_id is not None else None,
        target_name=(target_name or "")[:160],
        meta=_safe_json(details),
    )
    db.session.add(entry)
    current_app.logger.info("governance: %s target=%s actor=%s", action, entry.target_id, entry.actor_id)
    return entry


def record(actor: Actor, action: str, target_type: str, target_id: Any, target_name: str, details: dict | None = None) -> AuditLog:
    return append(actor.id, actor.name, action, target_id, target_name, details, target_type=target_type)


def list_logs(
    limit: int = 100,
    action: str | None = None,
    actor_id: str | None = None,
    target_id: Any = None,
    target_type: str | None = None,
) -> list[AuditLog]:
    """Newest-first read of the audit trail."""
    limit = max(1, min(int(limit or 100), MAX_LIST_LIMIT))
    q = AuditLog.query
    if action:
        q = q.filter(AuditLog.action == action)
    if actor_id:
        q = q.filter(AuditLog.actor_id == str(actor_id))
    if target_id is not None and str(target_id) != "":
        q = q.filter(AuditLog.target_id == str(target_id))
    if target_type:
        q = q.filter(AuditLog.target_type == target_type)
    return q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()


@event.listens_for(AuditLog, "before_update")
def _block_update(mapper, connection, target):
    raise ConflictError("Audit log entries are immutable", audit_id=target.id)


@event.listens_for(AuditLog, "before_delete")
def _block_delete(mapper, connection, target):
    raise ConflictError("Audit log entries are immutable", audit_id=target.id)
