"""Shadow bans.

A shadow ban restricts an account covertly: the account status shown to the
investor is left untouched while the restriction keys still block the
affected capabilities. There is at most one ban row per account.
"""

from __future__ import annotations

from datetime import datetime

from govplane.actors import Actor, require_governor
from govplane.errors import ConflictError, ValidationError
from govplane.models import ShadowBan
from govplane.models.shadow_ban import BAN_TYPES
from govplane.extensions import db
from govplane.utils.atomic import run_atomic
from govplane.utils.inputs import clean_choice, clean_text, parse_datetime, to_naive_utc
from govplane.utils.restrictions import (
    SOURCE_SHADOW_BAN,
    Restriction,
    apply_restriction_delta,
    get_account,
)

BAN_BUNDLES = {
    "withdrawal_only": ("withdrawalDisabled",),
    "trading_only": ("tradingDisabled",),
    "full_platform": ("withdrawalDisabled", "platformAccessDisabled"),
}


def ban_restrictions(ban: ShadowBan) -> list[Restriction]:
    bundle = [
        Restriction("shadowBanned", message=ban.reason),
        Restriction("shadowBanType", value=ban.ban_type),
    ]
    bundle.extend(Restriction(k) for k in BAN_BUNDLES[ban.ban_type])
    return bundle


def ban_for_account(account_id: int) -> ShadowBan | None:
    return ShadowBan.query.filter_by(account_id=int(account_id)).first()


def get_active_ban(account_id, now: datetime | None = None) -> ShadowBan | None:
    """The ban currently restricting the account; an expired ban reads as absent."""
    now = to_naive_utc(now) if now else datetime.utcnow()
    ban = ban_for_account(account_id)
    if not ban or not ban.is_active or ban.is_expired(now):
        return None
    return ban


def create_ban(
    account_id,
    ban_type: str,
    reason: str,
    actor: Actor,
    expires_at=None,
    replace: bool = False,
) -> int:
    """Ban an account. ``expires_at`` may be a datetime or an ISO-8601 string."""
    actor = require_governor(actor)
    ban_type = clean_choice(ban_type, "ban_type", BAN_TYPES)
    reason = clean_text(reason, "reason", required=True)
    expires_at = parse_datetime(expires_at, "expires_at")
    now = datetime.utcnow()
    if expires_at is not None and expires_at <= now:
        raise ValidationError("expires_at must be in the future", expires_at=expires_at.isoformat())

    def _create():
        account = get_account(account_id)
        ban = ban_for_account(account.id)
        if ban and ban.is_active and not ban.is_expired(now) and not replace:
            raise ConflictError("Account already has an active shadow ban", account_id=account.id, ban_id=ban.id)
        previous = ban.ban_type if ban and ban.is_active else None
        if ban is None:
            ban = ShadowBan(account_id=account.id)
            db.session.add(ban)
        ban.ban_type = ban_type
        ban.reason = reason
        ban.is_active = True
        ban.banned_by = actor.id
        ban.banned_by_name = actor.name
        ban.banned_at = now
        ban.expires_at = expires_at
        ban.removed_by = None
        ban.removed_at = None
        db.session.flush()
        # Same source id as the old ban: its keys are replaced, never merged.
        apply_restriction_delta(
            account,
            source_type=SOURCE_SHADOW_BAN,
            source_id=ban.id,
            restrictions=ban_restrictions(ban),
            actor=actor,
            action="shadow_ban",
            details={
                "ban_id": ban.id,
                "ban_type": ban_type,
                "reason": reason,
                "expires_at": expires_at.isoformat() if expires_at else None,
                "replaced": previous,
            },
            expires_at=expires_at,
        )
        return ban.id

    return run_atomic(_create)


def lift_ban(ban: ShadowBan, actor: Actor, action: str, details: dict | None = None) -> None:
    account = get_account(ban.account_id)
    ban.is_active = False
    ban.removed_by = actor.id
    ban.removed_at = datetime.utcnow()
    info = {"ban_id": ban.id, "ban_type": ban.ban_type}
    info.update(details or {})
    apply_restriction_delta(
        account,
        source_type=SOURCE_SHADOW_BAN,
        source_id=ban.id,
        actor=actor,
        action=action,
        details=info,
    )


def remove_ban(account_id, actor: Actor) -> bool:
    """Lift the account's ban. Returns False, without an audit entry, when none is active."""
    actor = require_governor(actor)

    def _remove():
        account = get_account(account_id)
        ban = ban_for_account(account.id)
        if not ban or not ban.is_active:
            return False
        lift_ban(ban, actor, "shadow_ban_removal")
        return True

    return run_atomic(_remove)


def sweep_expired_bans(actor: Actor, now: datetime | None = None) -> int:
    """Deactivate every ban past its expiry. Meant for an external scheduler."""
    actor = require_governor(actor)
    now = to_naive_utc(now) if now else datetime.utcnow()

    def _sweep():
        expired = ShadowBan.query.filter(
            ShadowBan.is_active.is_(True),
            ShadowBan.expires_at.isnot(None),
            ShadowBan.expires_at <= now,
        ).all()
        for ban in expired:
            lift_ban(ban, actor, "shadow_ban_expired", {"expires_at": ban.expires_at.isoformat()})
        return len(expired)

    return run_atomic(_sweep)
