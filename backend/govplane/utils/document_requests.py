"""Document requests.

A Governor asks an investor for a document. While the request is open the
account carries ``pendingDocumentRequest``; the investor's upload moves the
request to ``submitted`` and only then can it be approved or rejected. Either
outcome, or expiry past the due date, retracts the restriction.
"""

from __future__ import annotations

from datetime import datetime

from govplane.actors import Actor, require_actor, require_governor
from govplane.errors import ConflictError, ValidationError
from govplane.models import DocumentRequest
from govplane.utils import audit
from govplane.utils.approvals import (
    ApprovalHandler,
    get_handler,
    load_request,
    register,
    submit_request,
)
from govplane.utils.atomic import run_atomic
from govplane.utils.inputs import clean_choice, clean_text, parse_datetime, to_naive_utc
from govplane.utils.restrictions import (
    SOURCE_DOCUMENT_REQUEST,
    Restriction,
    apply_restriction_delta,
    get_account,
)

PRIORITIES = ("low", "medium", "high", "urgent")


def _retract(req: DocumentRequest, actor: Actor) -> None:
    apply_restriction_delta(
        get_account(req.account_id),
        source_type=SOURCE_DOCUMENT_REQUEST,
        source_id=req.id,
        actor=actor,
    )


@register
class DocumentRequestHandler(ApprovalHandler):
    kind = "document_request"
    model = DocumentRequest

    submit_action = "document_request"
    approve_action = "document_approval"
    reject_action = "document_rejection"

    reviewable_statuses = ("submitted",)

    def validate(self, payload: dict) -> dict:
        if payload.get("account_id") in (None, ""):
            raise ValidationError("account_id is required")
        document_type = clean_text(payload.get("document_type"), "document_type", required=True, max_len=32)
        priority = clean_choice(payload.get("priority"), "priority", PRIORITIES, default="medium")
        return {
            "account_id": payload.get("account_id"),
            "document_type": document_type,
            "description": clean_text(payload.get("description"), "description"),
            "priority": priority,
            "due_date": parse_datetime(payload.get("due_date"), "due_date"),
        }

    def build(self, data: dict, actor: Actor):
        account = get_account(data["account_id"])
        return DocumentRequest(**{**data, "account_id": account.id, "submitted_documents": []})

    def on_submit(self, req, actor: Actor) -> None:
        apply_restriction_delta(
            get_account(req.account_id),
            source_type=SOURCE_DOCUMENT_REQUEST,
            source_id=req.id,
            restrictions=[Restriction("pendingDocumentRequest", message=f"Document required: {req.document_type}")],
            actor=actor,
        )

    def on_approve(self, req, actor: Actor, comment: str | None) -> None:
        _retract(req, actor)

    def on_reject(self, req, actor: Actor, reason: str) -> None:
        _retract(req, actor)

    def target(self, req) -> tuple:
        account = get_account(req.account_id)
        return "investor", account.id, account.name

    def audit_details(self, req) -> dict:
        details = super().audit_details(req)
        details.update({
            "document_type": req.document_type,
            "priority": req.priority,
            "due_date": req.due_date.isoformat() if req.due_date else None,
        })
        return details


def request_document(account_id, document_type: str, actor: Actor, description: str = "",
                     priority: str = "medium", due_date=None) -> DocumentRequest:
    payload = {
        "account_id": account_id,
        "document_type": document_type,
        "description": description,
        "priority": priority,
        "due_date": due_date,
    }
    return submit_request("document_request", payload, actor)


def submit_documents(request_id, documents, actor: Actor) -> DocumentRequest:
    """Record the investor's upload. The restriction stays until a Governor reviews it."""
    actor = require_actor(actor)
    if not isinstance(documents, list) or not documents:
        raise ValidationError("documents must be a non-empty list")
    handler = get_handler("document_request")

    def _submit_docs():
        req = load_request(handler, request_id)
        if req.status != "pending":
            raise ConflictError("Document request is not awaiting documents", request_id=req.id, status=req.status)
        req.status = "submitted"
        req.submitted_at = datetime.utcnow()
        req.submitted_documents = list(documents)
        target_type, target_id, target_name = handler.target(req)
        details = handler.audit_details(req)
        details["documents"] = len(documents)
        audit.record(actor, "document_submission", target_type, target_id, target_name, details)
        return req

    return run_atomic(_submit_docs)


def expire_overdue(actor: Actor, now: datetime | None = None) -> int:
    """Expire pending requests past their due date. Meant for an external scheduler."""
    actor = require_governor(actor)
    now = to_naive_utc(now) if now else datetime.utcnow()
    handler = get_handler("document_request")

    def _expire():
        overdue = DocumentRequest.query.filter(
            DocumentRequest.status == "pending",
            DocumentRequest.due_date.isnot(None),
            DocumentRequest.due_date < now,
        ).all()
        for req in overdue:
            req.status = "expired"
            req.reviewed_by = actor.id
            req.reviewed_by_name = actor.name
            req.reviewed_at = now
            _retract(req, actor)
            target_type, target_id, target_name = handler.target(req)
            audit.record(actor, "document_request_expired", target_type, target_id, target_name, handler.audit_details(req))
        return len(overdue)

    return run_atomic(_expire)
