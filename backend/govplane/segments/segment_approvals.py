from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import login_required

from govplane.auth import current_actor
from govplane.utils import approvals
from govplane.utils.account_closures import complete_closure, days_remaining
from govplane.utils.document_requests import submit_documents
from govplane.utils.withdrawal_flags import flags_for_withdrawal, urgent_flag
from govplane.utils.withdrawal_overrides import override_withdrawal

approvals_bp = Blueprint("approvals_bp", __name__, url_prefix="/api/governor")


@approvals_bp.get("/requests/<kind>")
@login_required
def list_requests(kind: str):
    status = (request.args.get("status") or "").strip() or None
    rows = approvals.list_requests(
        kind,
        status=status,
        account_id=request.args.get("account_id", type=int),
        limit=request.args.get("limit", default=200, type=int),
    )
    return jsonify({"ok": True, "items": [r.to_dict() for r in rows]}), 200


@approvals_bp.get("/requests/<kind>/<int:request_id>")
@login_required
def get_request(kind: str, request_id: int):
    return jsonify({"ok": True, "request": approvals.get_request(kind, request_id).to_dict()}), 200


@approvals_bp.post("/requests/<kind>")
@login_required
def submit(kind: str):
    payload = request.get_json(silent=True) or {}
    req = approvals.submit_request(kind, payload, current_actor())
    return jsonify({"ok": True, "request": req.to_dict()}), 201


@approvals_bp.post("/requests/<kind>/<int:request_id>/approve")
@login_required
def approve(kind: str, request_id: int):
    payload = request.get_json(silent=True) or {}
    req = approvals.approve_request(kind, request_id, current_actor(), comment=payload.get("comment"))
    return jsonify({"ok": True, "request": req.to_dict()}), 200


@approvals_bp.post("/requests/<kind>/<int:request_id>/reject")
@login_required
def reject(kind: str, request_id: int):
    payload = request.get_json(silent=True) or {}
    req = approvals.reject_request(kind, request_id, payload.get("reason"), current_actor())
    return jsonify({"ok": True, "request": req.to_dict()}), 200


@approvals_bp.post("/requests/document_request/<int:request_id>/submit")
@login_required
def submit_docs(request_id: int):
    payload = request.get_json(silent=True) or {}
    req = submit_documents(request_id, payload.get("documents"), current_actor())
    return jsonify({"ok": True, "request": req.to_dict()}), 200


@approvals_bp.post("/withdrawals/<int:withdrawal_id>/override")
@login_required
def override(withdrawal_id: int):
    payload = request.get_json(silent=True) or {}
    req = override_withdrawal(
        withdrawal_id,
        payload.get("new_status"),
        payload.get("reason"),
        current_actor(),
        required_documents=payload.get("required_documents"),
    )
    return jsonify({"ok": True, "request": req.to_dict()}), 200


@approvals_bp.get("/withdrawals/<int:withdrawal_id>/flags")
@login_required
def withdrawal_flags(withdrawal_id: int):
    urgent = urgent_flag(withdrawal_id)
    return jsonify({
        "ok": True,
        "items": [f.to_dict() for f in flags_for_withdrawal(withdrawal_id)],
        "has_urgent": urgent is not None,
        "urgent_comment": urgent.comment if urgent else None,
    }), 200


@approvals_bp.post("/requests/account_closure/<int:request_id>/complete")
@login_required
def complete_account_closure(request_id: int):
    req = complete_closure(request_id, current_actor())
    data = req.to_dict()
    data["days_remaining"] = days_remaining(req)
    return jsonify({"ok": True, "request": data}), 200
