from __future__ import annotations

from dataclasses import dataclass

from govplane.errors import PermissionDeniedError, ValidationError

ROLE_ADMIN = "admin"
ROLE_GOVERNOR = "governor"
PRIVILEGED_ROLES = (ROLE_ADMIN, ROLE_GOVERNOR)


@dataclass(frozen=True)
class Actor:
    """The operator on whose behalf a governance operation runs."""

    id: str
    name: str
    role: str = ROLE_ADMIN

    @property
    def is_governor(self) -> bool:
        return (self.role or "").strip().lower() == ROLE_GOVERNOR

    @property
    def is_privileged(self) -> bool:
        return (self.role or "").strip().lower() in PRIVILEGED_ROLES

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(
            id=str(user.id),
            name=(getattr(user, "name", None) or getattr(user, "email", None) or str(user.id)),
            role=(getattr(user, "role", None) or ROLE_ADMIN).strip().lower(),
        )


def require_actor(actor: Actor | None) -> Actor:
    if actor is None or not str(actor.id or "").strip():
        raise ValidationError("actor is required")
    return actor


def require_governor(actor: Actor | None) -> Actor:
    actor = require_actor(actor)
    if not actor.is_governor:
        raise PermissionDeniedError("Governor tier required", actor_id=actor.id)
    return actor


def require_privileged(actor: Actor | None) -> Actor:
    actor = require_actor(actor)
    if not actor.is_privileged:
        raise PermissionDeniedError("Admin or Governor tier required", actor_id=actor.id)
    return actor
