from __future__ import annotations

import uuid
from datetime import datetime

from govplane.actors import Actor
from govplane.errors import ConflictError, NotFoundError, ValidationError
from govplane.extensions import db
from govplane.models import Account, CryptoWalletRequest
from govplane.realtime import feed
from govplane.utils.approvals import ApprovalHandler, register, submit_request
from govplane.utils.inputs import clean_choice, clean_text
from govplane.utils.restrictions import get_account

REQUEST_TYPES = ("add", "update", "delete")


def _clean_wallet(raw, partial: bool = False) -> dict:
    if not isinstance(raw, dict):
        raise ValidationError("wallet must be an object")
    wallet = {}
    for f in ("wallet_address", "network_type", "coin_type"):
        value = clean_text(raw.get(f), f)
        if value:
            wallet[f] = value
        elif not partial:
            raise ValidationError(f"{f} is required")
    if "is_primary" in raw:
        wallet["is_primary"] = bool(raw.get("is_primary"))
    elif not partial:
        wallet["is_primary"] = False
    if partial and not wallet:
        raise ValidationError("no wallet fields to update")
    return wallet


def _save_wallets(account: Account, wallets: list) -> None:
    # JSON columns only track reassignment, never in-place edits.
    account.crypto_wallets = wallets
    account.updated_at = datetime.utcnow()
    db.session.add(account)
    feed.queue_change(feed.account_channel(account.id), account)


def _replace_wallet(account: Account, wallet_id: str, new_wallet: dict | None) -> None:
    wallets = []
    for w in account.crypto_wallets or []:
        if str(w.get("id")) == str(wallet_id):
            if new_wallet is not None:
                wallets.append(new_wallet)
        else:
            wallets.append(dict(w))
    _save_wallets(account, wallets)


def _wallet_or_404(account: Account, wallet_id: str) -> dict:
    w = account.find_wallet(wallet_id)
    if w is None:
        raise NotFoundError("Wallet not found", account_id=account.id, wallet_id=wallet_id)
    return dict(w)


@register
class CryptoWalletHandler(ApprovalHandler):
    kind = "crypto_wallet"
    model = CryptoWalletRequest

    submit_action = "crypto_wallet_request"
    approve_action = "crypto_wallet_verification_approval"
    reject_action = "crypto_wallet_verification_rejection"

    def validate(self, payload: dict) -> dict:
        if payload.get("account_id") in (None, ""):
            raise ValidationError("account_id is required")
        request_type = clean_choice(payload.get("request_type"), "request_type", REQUEST_TYPES)
        wallet_id = clean_text(payload.get("wallet_id"), "wallet_id")
        if request_type != "add" and not wallet_id:
            raise ValidationError("wallet_id is required")
        if request_type == "add":
            wallet_data = _clean_wallet(payload.get("wallet"))
            wallet_id = uuid.uuid4().hex
        elif request_type == "update":
            wallet_data = _clean_wallet(payload.get("wallet"), partial=True)
        else:
            wallet_data = {}
        return {
            "account_id": payload.get("account_id"),
            "request_type": request_type,
            "wallet_id": wallet_id,
            "wallet_data": wallet_data,
        }

    def build(self, data: dict, actor: Actor):
        account = get_account(data["account_id"])
        return CryptoWalletRequest(
            account_id=account.id,
            request_type=data["request_type"],
            wallet_id=data["wallet_id"],
            wallet_data=data["wallet_data"],
        )

    def on_submit(self, req, actor: Actor) -> None:
        account = get_account(req.account_id)
        open_request = CryptoWalletRequest.query.filter(
            CryptoWalletRequest.wallet_id == req.wallet_id,
            CryptoWalletRequest.status == "pending",
            CryptoWalletRequest.id != req.id,
        ).first()
        if open_request:
            raise ConflictError("Wallet already has a pending request", wallet_id=req.wallet_id, request_id=open_request.id)

        if req.request_type == "add":
            wallet = {"id": req.wallet_id, **req.wallet_data, "verification_status": "pending", "rejection_reason": None}
            _save_wallets(account, [dict(w) for w in account.crypto_wallets or []] + [wallet])
            return

        current = _wallet_or_404(account, req.wallet_id)
        if current.get("verification_status") == "pending_deletion":
            raise ConflictError("Wallet is pending deletion", wallet_id=req.wallet_id)
        req.previous_wallet = current
        if req.request_type == "update":
            updated = {**current, **req.wallet_data, "verification_status": "pending", "rejection_reason": None}
            _replace_wallet(account, req.wallet_id, updated)
        else:
            _replace_wallet(account, req.wallet_id, {**current, "verification_status": "pending_deletion"})

    def on_approve(self, req, actor: Actor, comment: str | None) -> None:
        account = get_account(req.account_id)
        if req.request_type == "delete":
            _wallet_or_404(account, req.wallet_id)
            _replace_wallet(account, req.wallet_id, None)
            return
        wallet = _wallet_or_404(account, req.wallet_id)
        wallet.update({"verification_status": "approved", "rejection_reason": None})
        wallets = []
        for w in account.crypto_wallets or []:
            w = dict(w)
            if str(w.get("id")) == req.wallet_id:
                w = wallet
            elif wallet.get("is_primary"):
                # One primary wallet per account.
                w["is_primary"] = False
            wallets.append(w)
        _save_wallets(account, wallets)

    def on_reject(self, req, actor: Actor, reason: str) -> None:
        account = get_account(req.account_id)
        wallet = _wallet_or_404(account, req.wallet_id)
        if req.request_type == "delete":
            previous = req.previous_wallet or {}
            wallet["verification_status"] = previous.get("verification_status", "approved")
        else:
            wallet.update({"verification_status": "rejected", "rejection_reason": reason})
        _replace_wallet(account, req.wallet_id, wallet)

    def target(self, req) -> tuple:
        account = db.session.get(Account, req.account_id)
        return "investor", req.account_id, account.name if account else ""

    def audit_details(self, req) -> dict:
        details = super().audit_details(req)
        details.update({"request_type": req.request_type, "wallet_id": req.wallet_id})
        address = (req.wallet_data or {}).get("wallet_address") or (req.previous_wallet or {}).get("wallet_address")
        if address:
            details["wallet_address"] = address
        return details


def request_wallet_add(account_id, wallet: dict, actor: Actor) -> CryptoWalletRequest:
    return submit_request("crypto_wallet", {"account_id": account_id, "request_type": "add", "wallet": wallet}, actor)


def request_wallet_update(account_id, wallet_id: str, wallet: dict, actor: Actor) -> CryptoWalletRequest:
    payload = {"account_id": account_id, "request_type": "update", "wallet_id": wallet_id, "wallet": wallet}
    return submit_request("crypto_wallet", payload, actor)


def request_wallet_delete(account_id, wallet_id: str, actor: Actor) -> CryptoWalletRequest:
    return submit_request("crypto_wallet", {"account_id": account_id, "request_type": "delete", "wallet_id": wallet_id}, actor)
