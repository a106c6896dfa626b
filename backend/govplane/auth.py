"""Resolves the calling operator from a bearer token.

Issuing tokens and managing sessions belong to the platform's identity
service; this package only verifies the token and maps it to an ``Actor``.
"""

from __future__ import annotations

from flask import jsonify
from flask_login import current_user

from govplane.actors import Actor
from govplane.extensions import db, login_manager
from govplane.models import User
from govplane.utils.jwt_utils import decode_operator_token, get_bearer_token


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.request_loader
def load_user_from_request(req):
    token = get_bearer_token(req.headers.get("Authorization", ""))
    if not token:
        return None
    payload = decode_operator_token(token)
    if not payload:
        return None
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
    user = db.session.get(User, user_id)
    if not user or (user.role or "admin").strip().lower() != payload.get("role"):
        return None
    return user


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"ok": False, "error": "Unauthorized", "message": "Bearer token required"}), 401


def current_actor() -> Actor:
    return Actor.from_user(current_user)
