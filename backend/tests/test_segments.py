"""Tests for the governor HTTP endpoints."""

from datetime import datetime, timedelta

from govplane.models import AccountClosureRequest, ShadowBan, User, Withdrawal
from govplane.extensions import db
from govplane.utils import approvals
from govplane.utils.account_closures import request_account_closure
from govplane.utils.document_requests import request_document
from govplane.utils.shadow_bans import create_ban
from govplane.utils.jwt_utils import create_operator_token


class TestAuth:
    def test_missing_token(self, client, account) -> None:
        res = client.get(f"/api/governor/accounts/{account.id}")
        assert res.status_code == 401
        assert res.get_json()["ok"] is False

    def test_bad_token(self, client, account) -> None:
        res = client.get(f"/api/governor/accounts/{account.id}", headers={"Authorization": "Bearer not-a-jwt"})
        assert res.status_code == 401

    def test_token_refused_after_role_change(self, client, account, governor_headers) -> None:
        user = User.query.filter_by(email="grace@govplane.test").first()
        user.role = "admin"
        db.session.commit()
        res = client.get(f"/api/governor/accounts/{account.id}", headers=governor_headers)
        assert res.status_code == 401

    def test_expired_token(self, client, account, admin_headers) -> None:
        user = User.query.filter_by(email="adam@govplane.test").first()
        headers = {"Authorization": f"Bearer {create_operator_token(user, ttl_seconds=-60)}"}
        res = client.get(f"/api/governor/accounts/{account.id}", headers=headers)
        assert res.status_code == 401

    def test_health(self, client) -> None:
        res = client.get("/api/health")
        assert res.status_code == 200
        assert res.get_json()["db"] == "ok"


class TestAccountEndpoints:
    def test_get_account_and_restrictions(self, client, account, admin_headers) -> None:
        res = client.get(f"/api/governor/accounts/{account.id}", headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json()["account"]["email"] == "alice@example.com"

        res = client.get(f"/api/governor/accounts/{account.id}/restrictions", headers=admin_headers)
        body = res.get_json()
        assert body["restrictions"]["governorSuspended"] is False
        assert body["capabilities"]["withdrawals"] is True

    def test_unknown_account(self, client, admin_headers) -> None:
        res = client.get("/api/governor/accounts/999", headers=admin_headers)
        assert res.status_code == 404
        assert res.get_json()["error"] == "NotFoundError"

    def test_suspend_requires_governor(self, client, account, admin_headers, governor_headers) -> None:
        res = client.post(f"/api/governor/accounts/{account.id}/suspend", json={"reason": "x"}, headers=admin_headers)
        assert res.status_code == 403

        res = client.post(f"/api/governor/accounts/{account.id}/suspend", json={"reason": "aml hold"}, headers=governor_headers)
        assert res.status_code == 200
        assert res.get_json()["account"]["is_active"] is False

        res = client.post(f"/api/governor/accounts/{account.id}/activate", json={}, headers=governor_headers)
        assert res.get_json()["account"]["is_active"] is True


class TestFlagEndpoints:
    def test_create_and_resolve(self, client, account, governor_headers) -> None:
        res = client.post("/api/governor/flags", json={
            "account_id": account.id,
            "flag_type": "fraud",
            "severity": "high",
            "description": "card testing",
            "auto_restrictions": {"withdrawal_disabled": True},
        }, headers=governor_headers)
        assert res.status_code == 201
        flag = res.get_json()["flag"]
        assert flag["status"] == "active"

        res = client.get(f"/api/governor/flags?account_id={account.id}", headers=governor_headers)
        assert len(res.get_json()["items"]) == 1

        res = client.post(f"/api/governor/flags/{flag['id']}/resolve", json={"resolution_notes": "false positive"},
                          headers=governor_headers)
        assert res.status_code == 200
        res = client.post(f"/api/governor/flags/{flag['id']}/resolve", json={"resolution_notes": "again"},
                          headers=governor_headers)
        assert res.status_code == 409

    def test_validation_error_status(self, client, account, governor_headers) -> None:
        res = client.post("/api/governor/flags", json={"account_id": account.id, "flag_type": "fraud",
                                                       "severity": "low", "description": ""},
                          headers=governor_headers)
        assert res.status_code == 400

    def test_non_text_description_is_a_bad_request(self, client, account, governor_headers) -> None:
        res = client.post("/api/governor/flags", json={"account_id": account.id, "flag_type": "fraud",
                                                       "severity": "low", "description": 123},
                          headers=governor_headers)
        assert res.status_code == 400
        assert res.get_json()["error"] == "ValidationError"


class TestShadowBanEndpoints:
    def test_ban_lifecycle(self, client, account, governor_headers) -> None:
        url = f"/api/governor/shadow-bans/{account.id}"
        res = client.post(url, json={"ban_type": "trading_only", "reason": "spoofing"}, headers=governor_headers)
        assert res.status_code == 201
        assert res.get_json()["ban"]["ban_type"] == "trading_only"

        res = client.post(url, json={"ban_type": "full_platform", "reason": "worse"}, headers=governor_headers)
        assert res.status_code == 409

        assert client.get(url, headers=governor_headers).get_json()["ban"]["is_active"] is True
        assert client.delete(url, headers=governor_headers).get_json()["removed"] is True
        assert client.get(url, headers=governor_headers).get_json()["ban"] is None

    def test_non_text_reason_is_a_bad_request(self, client, account, governor_headers) -> None:
        res = client.post(f"/api/governor/shadow-bans/{account.id}", json={"ban_type": "full_platform", "reason": ["x"]},
                          headers=governor_headers)
        assert res.status_code == 400

    def test_aware_expiry_accepted(self, client, account, governor_headers) -> None:
        res = client.post(f"/api/governor/shadow-bans/{account.id}",
                          json={"ban_type": "trading_only", "reason": "x", "expires_at": "2999-01-01T00:00:00Z"},
                          headers=governor_headers)
        assert res.status_code == 201
        assert res.get_json()["ban"]["expires_at"].startswith("2999-01-01T00:00:00")


class TestSystemControlEndpoints:
    def test_shutdown_and_restore(self, client, governor_headers) -> None:
        res = client.post("/api/governor/system-controls/emergency-shutdown", json={"reason": "incident"},
                          headers=governor_headers)
        assert res.status_code == 200
        assert res.get_json()["controls"]["restrictionLevel"] == "full"

        res = client.post("/api/governor/system-controls/restore", headers=governor_headers)
        assert res.get_json()["controls"]["restrictedMode"] is False

    def test_toggle(self, client, governor_headers) -> None:
        res = client.post("/api/governor/system-controls/toggle", json={"capability": "dataExport", "enabled": False},
                          headers=governor_headers)
        assert res.get_json()["controls"]["dataExportEnabled"] is False
        res = client.get("/api/governor/system-controls", headers=governor_headers)
        assert res.get_json()["controls"]["dataExportEnabled"] is False

    def test_non_text_level_reason_is_a_bad_request(self, client, governor_headers) -> None:
        res = client.post("/api/governor/system-controls/level", json={"level": "partial", "reason": 5},
                          headers=governor_headers)
        assert res.status_code == 400
        res = client.get("/api/governor/system-controls", headers=governor_headers)
        assert res.get_json()["controls"]["restrictionLevel"] == "none"

    def test_upper_snake_capability(self, client, governor_headers) -> None:
        res = client.post("/api/governor/system-controls/toggle", json={"capability": "API_ACCESS", "enabled": False},
                          headers=governor_headers)
        assert res.status_code == 200
        assert res.get_json()["controls"]["apiAccessEnabled"] is False


class TestRequestEndpoints:
    def test_wallet_request_flow(self, client, account, admin_headers, governor_headers) -> None:
        res = client.post("/api/governor/requests/crypto_wallet", json={
            "account_id": account.id,
            "request_type": "add",
            "wallet": {"wallet_address": "bc1qxyz", "network_type": "BTC", "coin_type": "BTC"},
        }, headers=admin_headers)
        assert res.status_code == 201
        req = res.get_json()["request"]

        res = client.post(f"/api/governor/requests/crypto_wallet/{req['id']}/approve", json={}, headers=admin_headers)
        assert res.status_code == 403

        res = client.post(f"/api/governor/requests/crypto_wallet/{req['id']}/approve", json={}, headers=governor_headers)
        assert res.get_json()["request"]["status"] == "approved"

        res = client.get("/api/governor/requests/crypto_wallet?status=approved", headers=admin_headers)
        assert [r["id"] for r in res.get_json()["items"]] == [req["id"]]

    def test_document_submit_route(self, client, account, admin_headers, governor_headers) -> None:
        res = client.post("/api/governor/requests/document_request",
                          json={"account_id": account.id, "document_type": "id_card"}, headers=admin_headers)
        req_id = res.get_json()["request"]["id"]

        res = client.post(f"/api/governor/requests/document_request/{req_id}/submit",
                          json={"documents": ["uploads/id.png"]}, headers=admin_headers)
        assert res.get_json()["request"]["status"] == "submitted"

        res = client.post(f"/api/governor/requests/document_request/{req_id}/reject",
                          json={"reason": "expired id"}, headers=governor_headers)
        assert res.get_json()["request"]["status"] == "rejected"

    def test_withdrawal_override(self, client, withdrawal, governor_headers) -> None:
        res = client.post(f"/api/governor/withdrawals/{withdrawal.id}/override",
                          json={"new_status": "Credited", "reason": "confirmed by bank"}, headers=governor_headers)
        assert res.status_code == 200
        assert db.session.get(Withdrawal, withdrawal.id).status == "Credited"

    def test_unknown_kind(self, client, admin_headers) -> None:
        res = client.get("/api/governor/requests/mortgage", headers=admin_headers)
        assert res.status_code == 400


class TestAuditEndpoint:
    def test_lists_entries(self, client, account, governor_headers) -> None:
        client.post(f"/api/governor/accounts/{account.id}/suspend", json={"reason": "hold"}, headers=governor_headers)
        res = client.get("/api/governor/audit?action=account_suspension", headers=governor_headers)
        items = res.get_json()["items"]
        assert len(items) == 1
        assert items[0]["actor_name"] == "Grace Governor"


class TestWithdrawalFlagEndpoints:
    def test_flags_and_urgency(self, client, withdrawal, admin_headers, governor_headers) -> None:
        res = client.post("/api/governor/requests/withdrawal_flag", json={
            "withdrawal_id": withdrawal.id,
            "flag_type": "urgent",
            "comment": "hospital bill",
        }, headers=admin_headers)
        assert res.status_code == 201
        flag_id = res.get_json()["request"]["id"]

        url = f"/api/governor/withdrawals/{withdrawal.id}/flags"
        body = client.get(url, headers=admin_headers).get_json()
        assert len(body["items"]) == 1
        assert body["has_urgent"] is False

        client.post(f"/api/governor/requests/withdrawal_flag/{flag_id}/approve", json={}, headers=governor_headers)
        body = client.get(url, headers=admin_headers).get_json()
        assert body["has_urgent"] is True
        assert body["urgent_comment"] == "hospital bill"

    def test_unknown_withdrawal(self, client, admin_headers) -> None:
        res = client.get("/api/governor/withdrawals/999/flags", headers=admin_headers)
        assert res.status_code == 404


class TestAccountClosureEndpoints:
    def test_closure_flow(self, client, account, admin_headers, governor_headers) -> None:
        res = client.post("/api/governor/requests/account_closure",
                          json={"account_id": account.id, "reason": "relocating"}, headers=admin_headers)
        assert res.status_code == 201
        req_id = res.get_json()["request"]["id"]
        assert client.get(f"/api/governor/accounts/{account.id}", headers=admin_headers).get_json()["account"]["is_active"] is False

        res = client.post(f"/api/governor/requests/account_closure/{req_id}/approve", json={}, headers=governor_headers)
        assert res.get_json()["request"]["stage"] == "countdown"

        url = f"/api/governor/requests/account_closure/{req_id}/complete"
        assert client.post(url, headers=governor_headers).status_code == 409

        req = db.session.get(AccountClosureRequest, req_id)
        req.countdown_ends_at = datetime.utcnow() - timedelta(minutes=1)
        db.session.commit()

        assert client.post(url, headers=admin_headers).status_code == 403
        res = client.post(url, headers=governor_headers)
        assert res.status_code == 200
        body = res.get_json()["request"]
        assert body["status"] == "completed"
        assert body["days_remaining"] == 0


class TestGovernorJobEndpoints:
    def test_jobs_need_governor(self, client, admin_headers) -> None:
        for path in ("shadow-bans/sweep", "document-requests/expire", "account-closures/complete"):
            res = client.post(f"/api/governor/jobs/{path}", headers=admin_headers)
            assert res.status_code == 403

    def test_ban_sweep(self, client, account, governor, governor_headers) -> None:
        ban_id = create_ban(account.id, "trading_only", "cooling off", governor,
                            expires_at=datetime.utcnow() + timedelta(hours=1))
        ban = db.session.get(ShadowBan, ban_id)
        ban.expires_at = datetime.utcnow() - timedelta(minutes=1)
        db.session.commit()

        res = client.post("/api/governor/jobs/shadow-bans/sweep", headers=governor_headers)
        assert res.status_code == 200
        assert res.get_json()["lifted"] == 1
        assert db.session.get(ShadowBan, ban_id).is_active is False

    def test_document_expiry(self, client, account, admin, governor_headers) -> None:
        req = request_document(account.id, "id_card", admin, due_date=datetime.utcnow() - timedelta(days=1))
        res = client.post("/api/governor/jobs/document-requests/expire", headers=governor_headers)
        assert res.get_json()["expired"] == 1
        assert approvals.get_request("document_request", req.id).status == "expired"

    def test_closure_completion(self, client, account, admin, governor, governor_headers) -> None:
        req = request_account_closure(account.id, "relocating", admin)
        approvals.approve_request("account_closure", req.id, governor)
        res = client.post("/api/governor/jobs/account-closures/complete", headers=governor_headers)
        assert res.get_json()["completed"] == 0

        row = db.session.get(AccountClosureRequest, req.id)
        row.countdown_ends_at = datetime.utcnow() - timedelta(minutes=1)
        db.session.commit()
        res = client.post("/api/governor/jobs/account-closures/complete", headers=governor_headers)
        assert res.get_json()["completed"] == 1
