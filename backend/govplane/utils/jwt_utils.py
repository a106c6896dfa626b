"""Operator bearer tokens.

Tokens carry the operator's role at issue time; a token whose role no longer
matches the stored operator is refused, so a demoted Governor loses governance
rights without waiting for the token to expire.
"""

import time
from typing import Optional, Dict, Any

import jwt
from flask import current_app

ISSUER = "govplane"
TOKEN_TYPE = "operator"


def _secret() -> str:
    return current_app.config.get("SECRET_KEY") or "dev-secret-change-me"


def create_operator_token(user, ttl_seconds: Optional[int] = None) -> str:
    ttl = int(ttl_seconds or current_app.config.get("OPERATOR_TOKEN_TTL_SECONDS", 60 * 60 * 12))
    now = int(time.time())
    payload = {
        "sub": str(user.id),
        "role": (user.role or "admin").strip().lower(),
        "iss": ISSUER,
        "iat": now,
        "exp": now + ttl,
        "type": TOKEN_TYPE,
    }
    return jwt.encode(payload, _secret(), algorithm="HS256")


def decode_operator_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        payload = jwt.decode(
            token,
            _secret(),
            algorithms=["HS256"],
            issuer=ISSUER,
            options={"require": ["sub", "exp", "role"]},
        )
    except jwt.InvalidTokenError:
        return None
    if payload.get("type") != TOKEN_TYPE:
        return None
    return payload


def get_bearer_token(auth_header: str) -> Optional[str]:
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None
