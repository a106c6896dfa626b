from __future__ import annotations

from datetime import datetime

from govplane.actors import Actor, require_governor
from govplane.errors import ConflictError, NotFoundError, ValidationError
from govplane.extensions import db
from govplane.models import Withdrawal, WithdrawalOverride
from govplane.models.withdrawal import WITHDRAWAL_OVERRIDE_STATUSES
from govplane.realtime import feed
from govplane.utils.approvals import ApprovalHandler, register, submit_request
from govplane.utils.inputs import clean_text, clean_text_list
from govplane.utils.ledger import post_entry
from govplane.utils.restrictions import get_account


def get_withdrawal(withdrawal_id) -> Withdrawal:
    try:
        wid = int(withdrawal_id)
    except (TypeError, ValueError):
        raise NotFoundError("Withdrawal not found", withdrawal_id=withdrawal_id)
    w = db.session.get(Withdrawal, wid)
    if not w:
        raise NotFoundError("Withdrawal not found", withdrawal_id=withdrawal_id)
    return w


@register
class WithdrawalOverrideHandler(ApprovalHandler):
    """Governor overrides are issued and approved in one step; there is nothing to reject."""

    kind = "withdrawal_override"
    model = WithdrawalOverride

    submit_action = "withdrawal_override"
    approve_action = "withdrawal_override"
    reject_action = "withdrawal_override_rejection"

    auto_approve = True

    def authorize_submit(self, actor: Actor) -> Actor:
        return require_governor(actor)

    def validate(self, payload: dict) -> dict:
        if payload.get("withdrawal_id") in (None, ""):
            raise ValidationError("withdrawal_id is required")
        new_status = clean_text(payload.get("new_status"), "new_status", required=True).capitalize()
        if new_status not in WITHDRAWAL_OVERRIDE_STATUSES:
            raise ValidationError("Unknown withdrawal status", new_status=payload.get("new_status"))
        reason = clean_text(payload.get("reason"), "reason", required=True, max_len=400)
        return {
            "withdrawal_id": payload.get("withdrawal_id"),
            "new_status": new_status,
            "reason": reason,
            "required_documents": clean_text_list(payload.get("required_documents"), "required_documents"),
        }

    def build(self, data: dict, actor: Actor):
        w = get_withdrawal(data["withdrawal_id"])
        return WithdrawalOverride(
            withdrawal_id=w.id,
            account_id=w.account_id,
            new_status=data["new_status"],
            reason=data["reason"],
            required_documents=data["required_documents"],
        )

    def on_approve(self, req, actor: Actor, comment: str | None) -> None:
        w = get_withdrawal(req.withdrawal_id)
        if req.new_status == "Refunded" and w.status == "Refunded":
            raise ConflictError("Withdrawal is already refunded", withdrawal_id=w.id)
        previous = w.status
        now = datetime.utcnow()
        w.status = req.new_status
        w.governor_override = True
        w.governor_comment = req.reason
        w.overridden_by = actor.name
        w.overridden_at = now
        w.required_documents = list(req.required_documents or [])
        w.updated_at = now
        db.session.add(w)
        req.previous_status = previous

        if req.new_status == "Refunded":
            account = get_account(w.account_id)
            # Keyed on the withdrawal, so a second refund never credits twice.
            entry = post_entry(
                account=account,
                direction="credit",
                amount=w.amount,
                entry_type="Credit",
                reference=f"withdrawal:{w.id}",
                description=f"Refund of withdrawal #{w.id}",
                processed_by=actor.id,
                idempotency_key=f"withdrawal-refund:{w.id}",
            )
            req.refund_entry_id = entry.id
            feed.queue_change(feed.account_channel(account.id), account)

    def check_rejectable(self, req) -> None:
        raise ValidationError("Withdrawal overrides cannot be rejected", request_id=req.id)

    def target(self, req) -> tuple:
        return "withdrawal", req.withdrawal_id, f"Withdrawal #{req.withdrawal_id}"

    def audit_details(self, req) -> dict:
        details = super().audit_details(req)
        details.update({
            "account_id": req.account_id,
            "from_status": req.previous_status,
            "new_status": req.new_status,
            "reason": req.reason,
            "required_documents": list(req.required_documents or []),
        })
        if req.refund_entry_id:
            details["refund_entry_id"] = req.refund_entry_id
        return details


def override_withdrawal(withdrawal_id, new_status: str, reason: str, actor: Actor, required_documents=None) -> WithdrawalOverride:
    payload = {
        "withdrawal_id": withdrawal_id,
        "new_status": new_status,
        "reason": reason,
        "required_documents": required_documents or [],
    }
    return submit_request("withdrawal_override", payload, actor)
