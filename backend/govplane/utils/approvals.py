"""Approval workflow engine.

Every request kind follows the same lifecycle, ``pending -> approved |
rejected``, and plugs its side effects in through an ``ApprovalHandler``
registered under its kind. The engine owns permission checks, the
reviewable-state guard, the reviewer stamp and the single audit entry per
transition; handlers only mutate the records their kind is about.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Type

from govplane.actors import Actor, require_governor, require_privileged
from govplane.errors import ConflictError, NotFoundError, ValidationError
from govplane.extensions import db
from govplane.utils import audit
from govplane.utils.atomic import run_atomic
from govplane.utils.inputs import clean_text

TERMINAL_STATUSES = ("approved", "rejected", "expired", "completed")

_HANDLERS: Dict[str, "ApprovalHandler"] = {}


class ApprovalHandler:
    kind: str = ""
    model: Type[db.Model] = None

    submit_action = ""
    approve_action = ""
    reject_action = ""

    reviewable_statuses = ("pending",)
    # Approved in the same commit it is submitted in.
    auto_approve = False

    def authorize_submit(self, actor: Actor) -> Actor:
        return require_privileged(actor)

    def validate(self, payload: dict) -> dict:
        raise NotImplementedError

    def build(self, data: dict, actor: Actor):
        return self.model(**data)

    def on_submit(self, req, actor: Actor) -> None:
        pass

    def on_approve(self, req, actor: Actor, comment: str | None) -> None:
        pass

    def on_reject(self, req, actor: Actor, reason: str) -> None:
        pass

    def check_rejectable(self, req) -> None:
        pass

    def target(self, req) -> tuple:
        """``(target_type, target_id, target_name)`` for the audit entry."""
        raise NotImplementedError

    def audit_details(self, req) -> dict:
        return {"request_id": req.id, "kind": self.kind}


def register(handler_cls: Type[ApprovalHandler]) -> Type[ApprovalHandler]:
    handler = handler_cls()
    if not handler.kind:
        raise ValueError(f"{handler_cls.__name__} has no kind")
    _HANDLERS[handler.kind] = handler
    return handler_cls


def get_handler(kind: str) -> ApprovalHandler:
    handler = _HANDLERS.get(clean_text(kind, "kind").lower())
    if handler is None:
        raise ValidationError("Unknown request kind", kind=kind)
    return handler


def registered_kinds() -> list[str]:
    return sorted(_HANDLERS)


def _payload(payload) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("payload must be an object")
    return payload


def _audit(handler: ApprovalHandler, action: str, req, actor: Actor, extra: dict | None = None) -> None:
    target_type, target_id, target_name = handler.target(req)
    details = handler.audit_details(req)
    details.update(extra or {})
    audit.record(actor, action, target_type, target_id, target_name, details)


def _stamp_review(req, actor: Actor, status: str, comment: str | None = None, reason: str | None = None) -> None:
    req.status = status
    req.reviewed_by = actor.id
    req.reviewed_by_name = actor.name
    req.reviewed_at = datetime.utcnow()
    if comment:
        req.review_comment = comment[:400]
    if reason:
        req.rejection_reason = reason[:400]


def load_request(handler: ApprovalHandler, request_id):
    try:
        rid = int(request_id)
    except (TypeError, ValueError):
        raise NotFoundError("Request not found", kind=handler.kind, request_id=request_id)
    req = db.session.get(handler.model, rid)
    if not req:
        raise NotFoundError("Request not found", kind=handler.kind, request_id=request_id)
    return req


def submit_request(kind: str, payload: dict, actor: Actor):
    handler = get_handler(kind)
    actor = handler.authorize_submit(actor)
    data = handler.validate(_payload(payload))

    def _submit():
        req = handler.build(data, actor)
        req.status = "pending"
        req.requested_by = actor.id
        req.requested_by_name = actor.name
        req.requested_at = datetime.utcnow()
        db.session.add(req)
        db.session.flush()
        handler.on_submit(req, actor)
        if handler.auto_approve:
            handler.on_approve(req, actor, None)
            _stamp_review(req, actor, "approved")
        _audit(handler, handler.submit_action, req, actor)
        return req

    return run_atomic(_submit)


def _check_reviewable(handler: ApprovalHandler, req) -> None:
    if req.status in TERMINAL_STATUSES:
        raise ConflictError(
            f"Request has already been {req.status}",
            kind=handler.kind,
            request_id=req.id,
            status=req.status,
        )
    if req.status not in handler.reviewable_statuses:
        raise ConflictError(
            "Request is not awaiting review",
            kind=handler.kind,
            request_id=req.id,
            status=req.status,
        )


def approve_request(kind: str, request_id, actor: Actor, comment: str | None = None):
    actor = require_governor(actor)
    handler = get_handler(kind)
    comment = clean_text(comment, "comment") or None

    def _approve():
        req = load_request(handler, request_id)
        _check_reviewable(handler, req)
        handler.on_approve(req, actor, comment)
        _stamp_review(req, actor, "approved", comment=comment)
        _audit(handler, handler.approve_action, req, actor, {"comment": comment or ""})
        return req

    return run_atomic(_approve)


def reject_request(kind: str, request_id, reason: str, actor: Actor):
    actor = require_governor(actor)
    handler = get_handler(kind)
    reason = clean_text(reason, "reason", required=True)

    def _reject():
        req = load_request(handler, request_id)
        handler.check_rejectable(req)
        _check_reviewable(handler, req)
        handler.on_reject(req, actor, reason)
        _stamp_review(req, actor, "rejected", reason=reason)
        _audit(handler, handler.reject_action, req, actor, {"reason": reason})
        return req

    return run_atomic(_reject)


def get_request(kind: str, request_id):
    return load_request(get_handler(kind), request_id)


def list_requests(kind: str, status: str | None = None, account_id=None, limit: int = 200) -> list:
    handler = get_handler(kind)
    model = handler.model
    q = model.query
    if status:
        q = q.filter(model.status == status)
    if account_id is not None:
        column = model.created_account_id if hasattr(model, "created_account_id") else model.account_id
        q = q.filter(column == int(account_id))
    limit = max(1, min(int(limit or 200), 500))
    return q.order_by(model.requested_at.desc(), model.id.desc()).limit(limit).all()


# Handlers register themselves on import.
from govplane.utils import (  # noqa: E402,F401
    account_closures,
    account_creation,
    document_requests,
    wallet_requests,
    withdrawal_flags,
    withdrawal_overrides,
)
