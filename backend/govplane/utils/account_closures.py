"""Account closure requests.

An Admin raises the request and the account is deactivated straight away.
Governor approval starts the closure countdown; when it runs out the
remaining balance is paid out and the account is closed for good. A
rejection lifts the closure and the account returns to whatever the other
restriction sources leave it at.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta

from flask import current_app

from govplane.actors import Actor, require_governor
from govplane.errors import ConflictError, ValidationError
from govplane.models import Account, AccountClosureRequest
from govplane.utils import audit
from govplane.utils.approvals import (
    ApprovalHandler,
    get_handler,
    load_request,
    register,
    submit_request,
)
from govplane.utils.atomic import run_atomic
from govplane.utils.inputs import clean_text, to_naive_utc
from govplane.utils.ledger import post_entry
from govplane.utils.restrictions import (
    SOURCE_ACCOUNT_CLOSURE,
    Restriction,
    apply_restriction_delta,
    get_account,
)

UNDER_REVIEW_MESSAGE = "Deletion Request Under Review"
CLOSED_MESSAGE = "Account Permanently Closed"

OPEN_STATUSES = ("pending", "approved", "completed")


def countdown_days() -> int:
    return int(current_app.config.get("ACCOUNT_CLOSURE_COUNTDOWN_DAYS", 90))


def days_remaining(req: AccountClosureRequest, now: datetime | None = None) -> int:
    if not req.countdown_ends_at:
        return 0
    now = to_naive_utc(now) if now else datetime.utcnow()
    left = (req.countdown_ends_at - now).total_seconds() / 86400
    return max(0, math.ceil(left))


def _assert_closure(req: AccountClosureRequest, account: Account, actor: Actor, message: str) -> None:
    apply_restriction_delta(
        account,
        source_type=SOURCE_ACCOUNT_CLOSURE,
        source_id=req.id,
        restrictions=[Restriction("accountClosure", message=message)],
        actor=actor,
    )


@register
class AccountClosureHandler(ApprovalHandler):
    kind = "account_closure"
    model = AccountClosureRequest

    submit_action = "account_closure_request"
    approve_action = "account_closure_approval"
    reject_action = "account_closure_rejection"

    def validate(self, payload: dict) -> dict:
        if payload.get("account_id") in (None, ""):
            raise ValidationError("account_id is required")
        return {
            "account_id": payload.get("account_id"),
            "reason": clean_text(payload.get("reason"), "reason", required=True, max_len=400),
            "fund_transfer_method": clean_text(payload.get("fund_transfer_method"), "fund_transfer_method") or None,
        }

    def build(self, data: dict, actor: Actor):
        account = get_account(data["account_id"])
        return AccountClosureRequest(
            account_id=account.id,
            reason=data["reason"],
            fund_transfer_method=data["fund_transfer_method"],
            account_balance=float(account.balance or 0.0),
            stage="request",
        )

    def on_submit(self, req, actor: Actor) -> None:
        open_request = AccountClosureRequest.query.filter(
            AccountClosureRequest.account_id == req.account_id,
            AccountClosureRequest.status.in_(OPEN_STATUSES),
            AccountClosureRequest.id != req.id,
        ).first()
        if open_request:
            raise ConflictError(
                "Account already has a closure request",
                account_id=req.account_id,
                request_id=open_request.id,
                status=open_request.status,
            )
        _assert_closure(req, get_account(req.account_id), actor, UNDER_REVIEW_MESSAGE)

    def on_approve(self, req, actor: Actor, comment: str | None) -> None:
        days = countdown_days()
        req.stage = "countdown"
        req.countdown_ends_at = datetime.utcnow() + timedelta(days=days)
        message = f"Deletion Request Approved - {days} Day Countdown Active"
        _assert_closure(req, get_account(req.account_id), actor, message)

    def on_reject(self, req, actor: Actor, reason: str) -> None:
        req.stage = "rejected"
        apply_restriction_delta(
            get_account(req.account_id),
            source_type=SOURCE_ACCOUNT_CLOSURE,
            source_id=req.id,
            actor=actor,
        )

    def target(self, req) -> tuple:
        account = get_account(req.account_id)
        return "investor", account.id, account.name

    def audit_details(self, req) -> dict:
        details = super().audit_details(req)
        details.update({
            "reason": req.reason,
            "stage": req.stage,
            "account_balance": float(req.account_balance or 0.0),
            "countdown_ends_at": req.countdown_ends_at.isoformat() if req.countdown_ends_at else None,
        })
        if req.payout_entry_id:
            details["payout_entry_id"] = req.payout_entry_id
        return details


def request_account_closure(account_id, reason: str, actor: Actor, fund_transfer_method: str | None = None) -> AccountClosureRequest:
    payload = {"account_id": account_id, "reason": reason, "fund_transfer_method": fund_transfer_method}
    return submit_request("account_closure", payload, actor)


def closure_for_account(account_id) -> AccountClosureRequest | None:
    """Latest closure request raised for the account."""
    return (
        AccountClosureRequest.query.filter_by(account_id=int(account_id))
        .order_by(AccountClosureRequest.requested_at.desc(), AccountClosureRequest.id.desc())
        .first()
    )


def _complete(req: AccountClosureRequest, actor: Actor, now: datetime) -> None:
    account = get_account(req.account_id)
    balance = float(account.balance or 0.0)
    if balance > 0:
        entry = post_entry(
            account=account,
            direction="debit",
            amount=balance,
            entry_type="Debit",
            reference=f"account-closure:{req.id}",
            description="Closing balance paid out",
            processed_by=actor.id,
            idempotency_key=f"account-closure-payout:{req.id}",
        )
        req.payout_entry_id = entry.id
    req.status = "completed"
    req.stage = "completed"
    req.completed_at = now
    _assert_closure(req, account, actor, CLOSED_MESSAGE)
    handler = get_handler("account_closure")
    target_type, target_id, target_name = handler.target(req)
    audit.record(actor, "account_closure_completed", target_type, target_id, target_name, handler.audit_details(req))


def complete_closure(request_id, actor: Actor, now: datetime | None = None) -> AccountClosureRequest:
    """Close the account once its countdown has run out."""
    actor = require_governor(actor)
    now = to_naive_utc(now) if now else datetime.utcnow()
    handler = get_handler("account_closure")

    def _complete_one():
        req = load_request(handler, request_id)
        if req.status != "approved" or req.stage != "countdown":
            raise ConflictError("Closure is not in its countdown", request_id=req.id, status=req.status)
        if req.countdown_ends_at and req.countdown_ends_at > now:
            raise ConflictError(
                "Closure countdown has not ended",
                request_id=req.id,
                days_remaining=days_remaining(req, now),
            )
        _complete(req, actor, now)
        return req

    return run_atomic(_complete_one)


def complete_due_closures(actor: Actor, now: datetime | None = None) -> int:
    """Complete every closure whose countdown has ended. Meant for an external scheduler."""
    actor = require_governor(actor)
    now = to_naive_utc(now) if now else datetime.utcnow()

    def _complete_due():
        due = AccountClosureRequest.query.filter(
            AccountClosureRequest.status == "approved",
            AccountClosureRequest.stage == "countdown",
            AccountClosureRequest.countdown_ends_at <= now,
        ).all()
        for req in due:
            _complete(req, actor, now)
        return len(due)

    return run_atomic(_complete_due)
