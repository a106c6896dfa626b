from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import login_required

from govplane.auth import current_actor
from govplane.extensions import db
from govplane.models import ShadowBan
from govplane.utils.shadow_bans import create_ban, get_active_ban, remove_ban

bans_bp = Blueprint("shadow_bans_bp", __name__, url_prefix="/api/governor/shadow-bans")


@bans_bp.get("/<int:account_id>")
@login_required
def get_ban(account_id: int):
    ban = get_active_ban(account_id)
    return jsonify({"ok": True, "ban": ban.to_dict() if ban else None}), 200


@bans_bp.post("/<int:account_id>")
@login_required
def ban(account_id: int):
    payload = request.get_json(silent=True) or {}
    ban_id = create_ban(
        account_id,
        payload.get("ban_type"),
        payload.get("reason"),
        current_actor(),
        expires_at=payload.get("expires_at"),
        replace=bool(payload.get("replace")),
    )
    return jsonify({"ok": True, "ban": db.session.get(ShadowBan, ban_id).to_dict()}), 201


@bans_bp.delete("/<int:account_id>")
@login_required
def unban(account_id: int):
    removed = remove_ban(account_id, current_actor())
    return jsonify({"ok": True, "removed": removed}), 200
