"""Tests for shadow bans."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from govplane.errors import ConflictError, ValidationError
from govplane.extensions import db
from govplane.models import AuditLog, ShadowBan
from govplane.utils.account_flags import create_flag
from govplane.utils.restrictions import effective_restrictions, get_account, is_capability_permitted
from govplane.utils.shadow_bans import create_ban, get_active_ban, remove_ban, sweep_expired_bans
from govplane.utils.system_controls import ControlsState


class TestCreateBan:
    def test_full_platform_ban_is_covert(self, account, governor) -> None:
        create_ban(account.id, "full_platform", "bot activity", governor)

        acct = get_account(account.id)
        restr = acct.restrictions
        assert restr["shadowBanned"] is True
        assert restr["shadowBanType"] == "full_platform"
        assert restr["withdrawalDisabled"] is True
        assert restr["platformAccessDisabled"] is True
        assert restr["tradingDisabled"] is False
        # Nothing visible to the investor.
        assert acct.account_status == "Active"
        assert acct.is_active is True
        assert is_capability_permitted(acct, "login", ControlsState()) is False

    def test_second_ban_requires_replace(self, account, governor) -> None:
        create_ban(account.id, "withdrawal_only", "first", governor)
        with pytest.raises(ConflictError):
            create_ban(account.id, "trading_only", "second", governor)
        assert get_account(account.id).restrictions["shadowBanType"] == "withdrawal_only"

    def test_replacement_swaps_bundle(self, account, governor) -> None:
        first_id = create_ban(account.id, "withdrawal_only", "first", governor)
        second_id = create_ban(account.id, "trading_only", "second", governor, replace=True)

        assert first_id == second_id
        assert ShadowBan.query.count() == 1
        restr = get_account(account.id).restrictions
        assert restr["shadowBanType"] == "trading_only"
        assert restr["tradingDisabled"] is True
        assert restr["withdrawalDisabled"] is False

    def test_reason_and_type_validated(self, account, governor) -> None:
        with pytest.raises(ValidationError):
            create_ban(account.id, "full_platform", "", governor)
        with pytest.raises(ValidationError):
            create_ban(account.id, "partial", "x", governor)
        with pytest.raises(ValidationError):
            create_ban(account.id, "trading_only", "x", governor, expires_at=datetime.utcnow() - timedelta(days=1))
        assert ShadowBan.query.count() == 0

    def test_non_text_reason_rejected(self, account, governor) -> None:
        with pytest.raises(ValidationError):
            create_ban(account.id, "full_platform", ["x"], governor)
        with pytest.raises(ValidationError):
            create_ban(account.id, "full_platform", "x", governor, expires_at=1700000000)
        assert ShadowBan.query.count() == 0

    def test_aware_expiry_stored_as_naive_utc(self, account, governor) -> None:
        expires = datetime.now(timezone.utc) + timedelta(days=1)
        ban_id = create_ban(account.id, "trading_only", "cooling off", governor, expires_at=expires)

        ban = db.session.get(ShadowBan, ban_id)
        assert ban.expires_at.tzinfo is None
        assert ban.expires_at == expires.replace(tzinfo=None)
        assert get_active_ban(account.id) is not None
        assert get_active_ban(account.id, now=expires + timedelta(minutes=1)) is None

    def test_iso_expiry_with_offset(self, account, governor) -> None:
        ban_id = create_ban(account.id, "trading_only", "x", governor, expires_at="2999-01-01T03:00:00+03:00")
        assert db.session.get(ShadowBan, ban_id).expires_at == datetime(2999, 1, 1, 0, 0)

    def test_stale_write_cannot_revive_removed_ban(self, account, governor) -> None:
        ban_id = create_ban(account.id, "full_platform", "spoofing", governor)
        other = Session(bind=db.engine)
        try:
            stale = other.get(ShadowBan, ban_id)
            remove_ban(account.id, governor)

            stale.reason = "edited"
            with pytest.raises(StaleDataError):
                other.commit()
            other.rollback()
        finally:
            other.close()

        db.session.expire_all()
        ban = db.session.get(ShadowBan, ban_id)
        assert ban.is_active is False
        assert ban.reason == "spoofing"


class TestRemoveBan:
    def test_remove_restores_account(self, account, governor) -> None:
        create_ban(account.id, "full_platform", "x", governor)
        assert remove_ban(account.id, governor) is True

        restr = get_account(account.id).restrictions
        assert restr["shadowBanned"] is False
        assert restr["shadowBanType"] is None
        assert restr["platformAccessDisabled"] is False
        assert get_active_ban(account.id) is None

    def test_remove_without_ban_is_a_noop(self, account, governor) -> None:
        assert remove_ban(account.id, governor) is False
        assert AuditLog.query.filter_by(action="shadow_ban_removal").count() == 0

    def test_ban_leaves_flag_restrictions_alone(self, account, governor) -> None:
        create_flag(account.id, "fraud", "high", "x", {"withdrawal_disabled": True}, governor)
        create_ban(account.id, "withdrawal_only", "y", governor)
        remove_ban(account.id, governor)
        assert get_account(account.id).restrictions["withdrawalDisabled"] is True


class TestExpiry:
    def test_expired_ban_is_lazily_ignored_then_swept(self, account, governor) -> None:
        expires = datetime.utcnow() + timedelta(hours=2)
        create_ban(account.id, "trading_only", "cooling off", governor, expires_at=expires)
        later = expires + timedelta(minutes=5)

        assert get_active_ban(account.id) is not None
        assert get_active_ban(account.id, now=later) is None
        assert effective_restrictions(get_account(account.id), later)["tradingDisabled"] is False

        assert sweep_expired_bans(governor, now=later) == 1
        assert ShadowBan.query.one().is_active is False
        assert get_account(account.id).restrictions["shadowBanned"] is False
        assert AuditLog.query.filter_by(action="shadow_ban_expired").count() == 1

    def test_sweep_leaves_live_bans(self, account, governor) -> None:
        create_ban(account.id, "trading_only", "x", governor, expires_at=datetime.utcnow() + timedelta(days=3))
        assert sweep_expired_bans(governor) == 0
        assert get_active_ban(account.id) is not None
