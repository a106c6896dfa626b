from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import login_required

from govplane.actors import require_privileged
from govplane.auth import current_actor
from govplane.utils.audit import list_logs

audit_bp = Blueprint("audit_bp", __name__, url_prefix="/api/governor/audit")


@audit_bp.get("")
@login_required
def list_entries():
    require_privileged(current_actor())
    rows = list_logs(
        limit=request.args.get("limit", default=100, type=int),
        action=(request.args.get("action") or "").strip() or None,
        actor_id=(request.args.get("actor_id") or "").strip() or None,
        target_id=(request.args.get("target_id") or "").strip() or None,
        target_type=(request.args.get("target_type") or "").strip() or None,
    )
    return jsonify({"ok": True, "items": [r.to_dict() for r in rows]}), 200
