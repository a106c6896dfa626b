from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import login_required

from govplane.auth import current_actor
from govplane.utils import system_controls as controls

controls_bp = Blueprint("system_controls_bp", __name__, url_prefix="/api/governor/system-controls")


def _ok(state):
    return jsonify({"ok": True, "controls": state.to_dict()}), 200


@controls_bp.get("")
@login_required
def get_state():
    return _ok(controls.get_controls())


@controls_bp.post("/emergency-shutdown")
@login_required
def shutdown():
    payload = request.get_json(silent=True) or {}
    return _ok(controls.emergency_shutdown(current_actor(), payload.get("reason")))


@controls_bp.post("/restore")
@login_required
def restore():
    return _ok(controls.restore_all(current_actor()))


@controls_bp.post("/toggle")
@login_required
def toggle():
    payload = request.get_json(silent=True) or {}
    return _ok(controls.toggle_capability(payload.get("capability"), payload.get("enabled"), current_actor()))


@controls_bp.post("/level")
@login_required
def level():
    payload = request.get_json(silent=True) or {}
    return _ok(controls.set_restriction_level(payload.get("level"), current_actor(), reason=payload.get("reason")))


@controls_bp.post("/allowed-pages")
@login_required
def allowed_pages():
    payload = request.get_json(silent=True) or {}
    return _ok(controls.set_allowed_pages(payload.get("pages"), current_actor()))


@controls_bp.post("/maintenance")
@login_required
def maintenance():
    payload = request.get_json(silent=True) or {}
    return _ok(controls.set_maintenance(payload.get("enabled"), payload.get("message"), current_actor()))
