"""Tests for the restriction store."""

from datetime import datetime, timedelta

import pytest

from govplane.errors import NotFoundError, ValidationError
from govplane.extensions import db
from govplane.models import RestrictionSource
from govplane.utils.atomic import run_atomic
from govplane.utils.restrictions import (
    SOURCE_FLAG,
    SOURCE_GOVERNOR,
    Restriction,
    apply_restriction_delta,
    capability_report,
    compute_restrictions,
    effective_restrictions,
    flag_marker_key,
    get_account,
    is_capability_permitted,
)
from govplane.utils.system_controls import ControlsState


def _source(key, value=None, message=None, expires_at=None, source_type=SOURCE_FLAG, source_id="1", created_at=None):
    return RestrictionSource(
        account_id=1,
        source_type=source_type,
        source_id=source_id,
        key=key,
        value=value,
        message=message,
        expires_at=expires_at,
        created_at=created_at or datetime(2026, 1, 1),
    )


class TestComputeRestrictions:
    def test_no_sources_means_everything_off(self) -> None:
        result = compute_restrictions([])
        assert result["governorSuspended"] is False
        assert result["withdrawalDisabled"] is False
        assert result["fraudFlag"] is False
        assert result["shadowBanType"] is None

    def test_key_restricted_while_any_source_asserts_it(self) -> None:
        result = compute_restrictions([
            _source("withdrawalDisabled", source_id="1"),
            _source("withdrawalDisabled", source_id="2"),
        ])
        assert result["withdrawalDisabled"] is True

    def test_value_keys_keep_their_value(self) -> None:
        result = compute_restrictions([_source("shadowBanType", value="trading_only", source_type="shadow_ban")])
        assert result["shadowBanType"] == "trading_only"

    def test_newest_message_wins(self) -> None:
        result = compute_restrictions([
            _source("withdrawalDisabled", message="old", created_at=datetime(2026, 1, 1)),
            _source("withdrawalDisabled", message="new", source_id="2", created_at=datetime(2026, 1, 2)),
        ])
        assert result["withdrawalDisabledMessage"] == "new"

    def test_expired_sources_are_ignored(self) -> None:
        now = datetime(2026, 6, 1)
        result = compute_restrictions([_source("tradingDisabled", expires_at=now - timedelta(seconds=1))], now)
        assert result["tradingDisabled"] is False

    def test_flag_marker_key(self) -> None:
        assert flag_marker_key("fraud") == "fraudFlag"
        assert flag_marker_key("kyc_document_issue") == "kycDocumentIssueFlag"


class TestApplyRestrictionDelta:
    def test_assert_then_retract(self, account, governor) -> None:
        def _assert():
            apply_restriction_delta(
                get_account(account.id),
                source_type=SOURCE_GOVERNOR,
                source_id="manual",
                restrictions=[Restriction("governorSuspended", message="SUSPENDED: test")],
                actor=governor,
                action="account_suspension",
            )

        run_atomic(_assert)
        acct = get_account(account.id)
        assert acct.restrictions["governorSuspended"] is True
        assert acct.is_active is False
        assert acct.account_status == "SUSPENDED: test"

        run_atomic(lambda: apply_restriction_delta(
            get_account(account.id), source_type=SOURCE_GOVERNOR, source_id="manual", actor=governor,
        ))
        acct = get_account(account.id)
        assert acct.restrictions["governorSuspended"] is False
        assert acct.is_active is True
        assert acct.account_status == "Active"
        assert RestrictionSource.query.count() == 0

    def test_reassert_replaces_instead_of_merging(self, account, governor) -> None:
        for keys in (["withdrawalDisabled", "tradingDisabled"], ["tradingDisabled"]):
            run_atomic(lambda keys=keys: apply_restriction_delta(
                get_account(account.id),
                source_type=SOURCE_FLAG,
                source_id="9",
                restrictions=[Restriction(k) for k in keys],
                actor=governor,
            ))
        restr = get_account(account.id).restrictions
        assert restr["withdrawalDisabled"] is False
        assert restr["tradingDisabled"] is True

    def test_conditional_approval_status(self, account, governor) -> None:
        acct = get_account(account.id)
        acct.approval_conditions = ["Provide proof of address"]
        db.session.commit()
        run_atomic(lambda: apply_restriction_delta(
            get_account(account.id), source_type=SOURCE_FLAG, source_id="1", actor=governor,
        ))
        assert get_account(account.id).account_status == "Active - Conditional Approval"


class TestCapabilities:
    def test_unknown_account(self, app) -> None:
        with pytest.raises(NotFoundError):
            get_account(999)

    def test_global_switch_blocks_everyone(self, account) -> None:
        controls = ControlsState(capabilities={"withdrawals": False})
        assert is_capability_permitted(account, "withdrawals", controls) is False
        assert is_capability_permitted(account, "deposits", controls) is True

    def test_maintenance_blocks_everything(self, account) -> None:
        report = capability_report(account, ControlsState(maintenance_mode=True))
        assert not any(report.values())

    def test_account_restriction_blocks_capability(self, account, governor) -> None:
        run_atomic(lambda: apply_restriction_delta(
            get_account(account.id),
            source_type=SOURCE_FLAG,
            source_id="3",
            restrictions=[Restriction("withdrawalDisabled")],
            actor=governor,
        ))
        acct = get_account(account.id)
        assert is_capability_permitted(acct, "withdrawals", ControlsState()) is False
        assert is_capability_permitted(acct, "trading", ControlsState()) is True

    def test_expired_restriction_stops_counting_without_a_write(self, account, governor) -> None:
        expires = datetime.utcnow() + timedelta(hours=1)
        run_atomic(lambda: apply_restriction_delta(
            get_account(account.id),
            source_type="shadow_ban",
            source_id="4",
            restrictions=[Restriction("platformAccessDisabled")],
            actor=governor,
            expires_at=expires,
        ))
        acct = get_account(account.id)
        later = expires + timedelta(minutes=1)
        assert effective_restrictions(acct)["platformAccessDisabled"] is True
        assert effective_restrictions(acct, later)["platformAccessDisabled"] is False
        assert is_capability_permitted(acct, "login", ControlsState(), later) is True

    def test_unknown_capability(self, account) -> None:
        with pytest.raises(ValidationError):
            is_capability_permitted(account, "teleport", ControlsState())
