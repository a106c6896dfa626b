"""Tests for account closure requests."""

from datetime import datetime, timedelta

import pytest

from govplane.errors import ConflictError, PermissionDeniedError, ValidationError
from govplane.extensions import db
from govplane.models import AccountClosureRequest, AuditLog, LedgerEntry
from govplane.utils import approvals
from govplane.utils.account_closures import (
    CLOSED_MESSAGE,
    UNDER_REVIEW_MESSAGE,
    closure_for_account,
    complete_closure,
    complete_due_closures,
    days_remaining,
    request_account_closure,
)
from govplane.utils.accounts import activate_account, suspend_account
from govplane.utils.restrictions import get_account, is_capability_permitted
from govplane.utils.system_controls import ControlsState

AFTER_COUNTDOWN = timedelta(days=91)


def _approved(account, admin, governor) -> AccountClosureRequest:
    req = request_account_closure(account.id, "moving abroad", admin, fund_transfer_method="bank")
    return approvals.approve_request("account_closure", req.id, governor)


class TestClosureRequest:
    def test_request_deactivates_account(self, account, admin) -> None:
        req = request_account_closure(account.id, "moving abroad", admin)
        assert req.status == "pending"
        assert req.stage == "request"
        assert req.account_balance == 1000.0

        acct = get_account(account.id)
        assert acct.is_active is False
        assert acct.account_status == UNDER_REVIEW_MESSAGE
        assert acct.restrictions["accountClosure"] is True
        assert is_capability_permitted(acct, "withdrawals", ControlsState()) is False
        assert AuditLog.query.one().action == "account_closure_request"

    def test_one_open_request_per_account(self, account, admin) -> None:
        request_account_closure(account.id, "moving abroad", admin)
        with pytest.raises(ConflictError):
            request_account_closure(account.id, "again", admin)
        assert AccountClosureRequest.query.count() == 1

    def test_reason_required(self, account, admin) -> None:
        with pytest.raises(ValidationError):
            request_account_closure(account.id, "  ", admin)
        with pytest.raises(ValidationError):
            request_account_closure(account.id, 42, admin)
        assert get_account(account.id).is_active is True


class TestClosureReview:
    def test_approval_starts_countdown(self, account, admin, governor) -> None:
        req = _approved(account, admin, governor)
        assert req.status == "approved"
        assert req.stage == "countdown"
        assert days_remaining(req) == 90

        acct = get_account(account.id)
        assert acct.is_active is False
        assert acct.account_status == "Deletion Request Approved - 90 Day Countdown Active"
        assert closure_for_account(account.id).id == req.id

    def test_countdown_length_is_configurable(self, app, account, admin, governor) -> None:
        app.config["ACCOUNT_CLOSURE_COUNTDOWN_DAYS"] = 30
        req = _approved(account, admin, governor)
        assert days_remaining(req) == 30
        assert get_account(account.id).account_status == "Deletion Request Approved - 30 Day Countdown Active"

    def test_rejection_restores_account(self, account, admin, governor) -> None:
        req = request_account_closure(account.id, "moving abroad", admin)
        rejected = approvals.reject_request("account_closure", req.id, "outstanding dispute", governor)
        assert rejected.stage == "rejected"

        acct = get_account(account.id)
        assert acct.is_active is True
        assert acct.account_status == "Active"
        assert acct.restrictions["accountClosure"] is False

        # A rejected request no longer blocks a new one.
        request_account_closure(account.id, "second try", admin)

    def test_rejection_keeps_other_restrictions(self, account, admin, governor) -> None:
        suspend_account(account.id, "aml hold", governor)
        req = request_account_closure(account.id, "moving abroad", admin)
        approvals.reject_request("account_closure", req.id, "under investigation", governor)

        acct = get_account(account.id)
        assert acct.is_active is False
        assert acct.restrictions["governorSuspended"] is True

    def test_admin_cannot_approve(self, account, admin) -> None:
        req = request_account_closure(account.id, "moving abroad", admin)
        with pytest.raises(PermissionDeniedError):
            approvals.approve_request("account_closure", req.id, admin)


class TestClosureCompletion:
    def test_completion_pays_out_and_closes(self, account, admin, governor) -> None:
        req = _approved(account, admin, governor)
        done = complete_closure(req.id, governor, now=datetime.utcnow() + AFTER_COUNTDOWN)

        assert done.status == "completed"
        assert done.stage == "completed"
        acct = get_account(account.id)
        assert acct.balance == 0.0
        assert acct.is_active is False
        assert acct.account_status == CLOSED_MESSAGE

        entry = db.session.get(LedgerEntry, done.payout_entry_id)
        assert entry.direction == "debit"
        assert entry.amount == 1000.0
        assert [r.action for r in AuditLog.query.order_by(AuditLog.id).all()] == [
            "account_closure_request",
            "account_closure_approval",
            "account_closure_completed",
        ]

    def test_completion_waits_for_countdown(self, account, admin, governor) -> None:
        req = _approved(account, admin, governor)
        with pytest.raises(ConflictError) as exc:
            complete_closure(req.id, governor)
        assert exc.value.details["days_remaining"] == 90
        assert get_account(account.id).balance == 1000.0

    def test_pending_request_cannot_complete(self, account, admin, governor) -> None:
        req = request_account_closure(account.id, "moving abroad", admin)
        with pytest.raises(ConflictError):
            complete_closure(req.id, governor, now=datetime.utcnow() + AFTER_COUNTDOWN)

    def test_completed_request_cannot_be_reviewed(self, account, admin, governor) -> None:
        req = _approved(account, admin, governor)
        complete_closure(req.id, governor, now=datetime.utcnow() + AFTER_COUNTDOWN)
        with pytest.raises(ConflictError):
            approvals.reject_request("account_closure", req.id, "too late", governor)
        with pytest.raises(ConflictError):
            request_account_closure(account.id, "again", admin)

    def test_activation_does_not_reopen_closed_account(self, account, admin, governor) -> None:
        req = _approved(account, admin, governor)
        complete_closure(req.id, governor, now=datetime.utcnow() + AFTER_COUNTDOWN)
        activate_account(account.id, governor)

        acct = get_account(account.id)
        assert acct.is_active is False
        assert acct.account_status == CLOSED_MESSAGE

    def test_admin_cannot_complete(self, account, admin, governor) -> None:
        req = _approved(account, admin, governor)
        with pytest.raises(PermissionDeniedError):
            complete_closure(req.id, admin, now=datetime.utcnow() + AFTER_COUNTDOWN)

    def test_due_closures_sweep(self, account, admin, governor) -> None:
        _approved(account, admin, governor)
        assert complete_due_closures(governor) == 0
        assert complete_due_closures(governor, now=datetime.utcnow() + AFTER_COUNTDOWN) == 1
        assert closure_for_account(account.id).status == "completed"
        assert complete_due_closures(governor, now=datetime.utcnow() + AFTER_COUNTDOWN) == 0
