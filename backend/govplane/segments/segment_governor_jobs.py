from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from flask_login import login_required

from govplane.auth import current_actor
from govplane.utils.account_closures import complete_due_closures
from govplane.utils.document_requests import expire_overdue
from govplane.utils.shadow_bans import sweep_expired_bans

jobs_bp = Blueprint("governor_jobs_bp", __name__, url_prefix="/api/governor/jobs")


@jobs_bp.post("/shadow-bans/sweep")
@login_required
def sweep_bans():
    lifted = sweep_expired_bans(current_actor())
    current_app.logger.info("shadow ban sweep lifted %s ban(s)", lifted)
    return jsonify({"ok": True, "lifted": lifted}), 200


@jobs_bp.post("/document-requests/expire")
@login_required
def expire_documents():
    expired = expire_overdue(current_actor())
    current_app.logger.info("document request sweep expired %s request(s)", expired)
    return jsonify({"ok": True, "expired": expired}), 200


@jobs_bp.post("/account-closures/complete")
@login_required
def complete_closures():
    completed = complete_due_closures(current_actor())
    current_app.logger.info("account closure sweep completed %s closure(s)", completed)
    return jsonify({"ok": True, "completed": completed}), 200
