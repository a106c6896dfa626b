from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import login_required

from govplane.auth import current_actor
from govplane.utils.account_flags import create_flag, get_flag, list_flags, mark_under_review, resolve_flag

flags_bp = Blueprint("account_flags_bp", __name__, url_prefix="/api/governor/flags")


@flags_bp.get("")
@login_required
def list_all():
    account_id = request.args.get("account_id", type=int)
    status = (request.args.get("status") or "").strip() or None
    rows = list_flags(account_id=account_id, status=status)
    return jsonify({"ok": True, "items": [r.to_dict() for r in rows]}), 200


@flags_bp.post("")
@login_required
def create():
    payload = request.get_json(silent=True) or {}
    flag_id = create_flag(
        payload.get("account_id"),
        payload.get("flag_type"),
        payload.get("severity"),
        payload.get("description"),
        payload.get("auto_restrictions"),
        current_actor(),
    )
    return jsonify({"ok": True, "flag": get_flag(flag_id).to_dict()}), 201


@flags_bp.post("/<int:flag_id>/resolve")
@login_required
def resolve(flag_id: int):
    payload = request.get_json(silent=True) or {}
    flag = resolve_flag(flag_id, payload.get("resolution_notes"), current_actor())
    return jsonify({"ok": True, "flag": flag.to_dict()}), 200


@flags_bp.post("/<int:flag_id>/review")
@login_required
def review(flag_id: int):
    flag = mark_under_review(flag_id, current_actor())
    return jsonify({"ok": True, "flag": flag.to_dict()}), 200
