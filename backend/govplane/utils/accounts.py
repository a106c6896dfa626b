from __future__ import annotations

from govplane.actors import Actor, require_governor
from govplane.models import Account
from govplane.utils.atomic import run_atomic
from govplane.utils.inputs import clean_text
from govplane.utils.restrictions import (
    SOURCE_GOVERNOR,
    Restriction,
    apply_restriction_delta,
    get_account,
)
from govplane.utils.shadow_bans import ban_for_account, lift_ban

# Governor suspension is a single source per account.
SUSPENSION_SOURCE_ID = "suspension"


def suspend_account(account_id, reason: str, actor: Actor) -> Account:
    actor = require_governor(actor)
    reason = clean_text(reason, "reason", required=True)

    def _suspend():
        account = get_account(account_id)
        apply_restriction_delta(
            account,
            source_type=SOURCE_GOVERNOR,
            source_id=SUSPENSION_SOURCE_ID,
            restrictions=[Restriction("governorSuspended", message=f"SUSPENDED: {reason}")],
            actor=actor,
            action="account_suspension",
            details={"reason": reason},
        )
        return account

    return run_atomic(_suspend)


def activate_account(account_id, actor: Actor, notes: str | None = None) -> Account:
    """Lift the governor suspension and any active shadow ban.

    Restrictions still asserted by open flags or document requests stay in force.
    """
    actor = require_governor(actor)
    notes = clean_text(notes, "notes")

    def _activate():
        account = get_account(account_id)
        ban = ban_for_account(account.id)
        lifted_ban = bool(ban and ban.is_active)
        if lifted_ban:
            lift_ban(ban, actor, "shadow_ban_removal", {"via": "account_activation"})
        apply_restriction_delta(
            account,
            source_type=SOURCE_GOVERNOR,
            source_id=SUSPENSION_SOURCE_ID,
            actor=actor,
            action="account_activation",
            details={"notes": notes, "shadow_ban_lifted": lifted_ban},
        )
        return account

    return run_atomic(_activate)
