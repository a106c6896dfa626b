from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import login_required

from govplane.auth import current_actor
from govplane.utils.accounts import activate_account, suspend_account
from govplane.utils.restrictions import capability_report, effective_restrictions, get_account
from govplane.utils.system_controls import get_controls

accounts_bp = Blueprint("governor_accounts_bp", __name__, url_prefix="/api/governor/accounts")


@accounts_bp.get("/<int:account_id>")
@login_required
def get_one(account_id: int):
    account = get_account(account_id)
    return jsonify({"ok": True, "account": account.to_dict()}), 200


@accounts_bp.get("/<int:account_id>/restrictions")
@login_required
def restrictions(account_id: int):
    account = get_account(account_id)
    return jsonify({
        "ok": True,
        "account_id": account.id,
        "restrictions": effective_restrictions(account),
        "capabilities": capability_report(account, get_controls()),
    }), 200


@accounts_bp.post("/<int:account_id>/suspend")
@login_required
def suspend(account_id: int):
    payload = request.get_json(silent=True) or {}
    account = suspend_account(account_id, payload.get("reason"), current_actor())
    return jsonify({"ok": True, "account": account.to_dict()}), 200


@accounts_bp.post("/<int:account_id>/activate")
@login_required
def activate(account_id: int):
    payload = request.get_json(silent=True) or {}
    account = activate_account(account_id, current_actor(), notes=payload.get("notes"))
    return jsonify({"ok": True, "account": account.to_dict()}), 200
