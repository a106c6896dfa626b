from __future__ import annotations

from govplane.actors import Actor
from govplane.errors import ValidationError
from govplane.models import WithdrawalFlag
from govplane.utils.approvals import ApprovalHandler, register, submit_request
from govplane.utils.inputs import clean_choice, clean_text
from govplane.utils.withdrawal_overrides import get_withdrawal

FLAG_TYPES = ("urgent", "suspicious", "high_amount", "documentation_required", "compliance_review")
PRIORITIES = ("low", "medium", "high", "urgent")


@register
class WithdrawalFlagHandler(ApprovalHandler):
    """Flags raised on a withdrawal stay inert until a Governor approves them."""

    kind = "withdrawal_flag"
    model = WithdrawalFlag

    submit_action = "withdrawal_flag_request"
    approve_action = "withdrawal_flag_approval"
    reject_action = "withdrawal_flag_rejection"

    def validate(self, payload: dict) -> dict:
        if payload.get("withdrawal_id") in (None, ""):
            raise ValidationError("withdrawal_id is required")
        return {
            "withdrawal_id": payload.get("withdrawal_id"),
            "flag_type": clean_choice(payload.get("flag_type"), "flag_type", FLAG_TYPES),
            "priority": clean_choice(payload.get("priority"), "priority", PRIORITIES, default="medium"),
            "comment": clean_text(payload.get("comment"), "comment", required=True, max_len=400),
        }

    def build(self, data: dict, actor: Actor):
        w = get_withdrawal(data["withdrawal_id"])
        return WithdrawalFlag(
            withdrawal_id=w.id,
            account_id=w.account_id,
            flag_type=data["flag_type"],
            priority=data["priority"],
            comment=data["comment"],
            requested_by_role=actor.role,
            is_active=False,
        )

    def on_approve(self, req, actor: Actor, comment: str | None) -> None:
        req.is_active = True

    def on_reject(self, req, actor: Actor, reason: str) -> None:
        req.is_active = False

    def target(self, req) -> tuple:
        return "withdrawal", req.withdrawal_id, f"Withdrawal #{req.withdrawal_id}"

    def audit_details(self, req) -> dict:
        details = super().audit_details(req)
        details.update({
            "account_id": req.account_id,
            "flag_type": req.flag_type,
            "priority": req.priority,
            "comment": req.comment,
        })
        return details


def request_withdrawal_flag(withdrawal_id, flag_type: str, comment: str, actor: Actor,
                            priority: str = "medium") -> WithdrawalFlag:
    payload = {"withdrawal_id": withdrawal_id, "flag_type": flag_type, "priority": priority, "comment": comment}
    return submit_request("withdrawal_flag", payload, actor)


def flags_for_withdrawal(withdrawal_id) -> list[WithdrawalFlag]:
    w = get_withdrawal(withdrawal_id)
    return (
        WithdrawalFlag.query.filter_by(withdrawal_id=w.id)
        .order_by(WithdrawalFlag.requested_at.desc(), WithdrawalFlag.id.desc())
        .all()
    )


def urgent_flag(withdrawal_id) -> WithdrawalFlag | None:
    """The approved flag marking the withdrawal urgent, if there is one."""
    for flag in flags_for_withdrawal(withdrawal_id):
        if flag.is_active and flag.status == "approved" and flag.is_urgent():
            return flag
    return None
