"""Restriction store for accounts.

Restrictions are kept as ``RestrictionSource`` rows, one per (source, key).
``Account.restrictions`` is a denormalized copy recomputed from every live
source whenever any source changes: a key is restricted while at least one
source asserts it, so retracting one flag never clears what a ban or another
flag still requires.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from govplane.actors import Actor
from govplane.errors import NotFoundError, ValidationError
from govplane.extensions import db
from govplane.models import Account, RestrictionSource
from govplane.models.account_flag import FLAG_TYPES
from govplane.models.system_controls import CAPABILITIES
from govplane.realtime import feed
from govplane.utils import audit
from govplane.utils.inputs import clean_text, to_naive_utc

SOURCE_FLAG = "flag"
SOURCE_SHADOW_BAN = "shadow_ban"
SOURCE_DOCUMENT_REQUEST = "document_request"
SOURCE_GOVERNOR = "governor"
SOURCE_ACCOUNT_CLOSURE = "account_closure"

BOOLEAN_KEYS = (
    "accountClosure",
    "governorSuspended",
    "withdrawalDisabled",
    "tradingDisabled",
    "platformAccessDisabled",
    "requiresApproval",
    "shadowBanned",
    "pendingDocumentRequest",
)
VALUE_KEYS = ("shadowBanType",)

# Keys that block a capability for one account, on top of the global switches.
DEFAULT_BLOCKERS = ("accountClosure", "governorSuspended", "platformAccessDisabled")
CAPABILITY_BLOCKERS = {
    "withdrawals": DEFAULT_BLOCKERS + ("withdrawalDisabled",),
    "trading": DEFAULT_BLOCKERS + ("tradingDisabled",),
}


@dataclass(frozen=True)
class Restriction:
    key: str
    message: str | None = None
    value: str | None = None


def flag_marker_key(flag_type: str) -> str:
    head, *rest = (flag_type or "").split("_")
    return head + "".join(p.capitalize() for p in rest) + "Flag"


def get_account(account_id) -> Account:
    try:
        aid = int(account_id)
    except (TypeError, ValueError):
        raise NotFoundError("Account not found", account_id=account_id)
    account = db.session.get(Account, aid)
    if not account:
        raise NotFoundError("Account not found", account_id=account_id)
    return account


def _live_sources(sources: Iterable[RestrictionSource], now: datetime) -> list[RestrictionSource]:
    live = [s for s in sources if s.is_live(now)]
    return sorted(live, key=lambda s: (s.created_at or datetime.min, s.id or 0))


def compute_restrictions(sources: Iterable[RestrictionSource], now: datetime | None = None) -> dict:
    now = to_naive_utc(now) if now else datetime.utcnow()
    result: dict = {k: False for k in BOOLEAN_KEYS}
    result.update({flag_marker_key(ft): False for ft in FLAG_TYPES})
    result.update({k: None for k in VALUE_KEYS})
    for s in _live_sources(sources, now):
        result[s.key] = s.value if s.key in VALUE_KEYS else True
        if s.message:
            result[f"{s.key}Message"] = s.message
    return result


def _display_status(account: Account, live: list[RestrictionSource]) -> str:
    # Shadow bans are covert and never show on the account status.
    visible = [s for s in live if s.source_type != SOURCE_SHADOW_BAN and s.message]
    for key in ("accountClosure", "governorSuspended", "withdrawalDisabled"):
        hits = [s for s in visible if s.key == key]
        if hits:
            return hits[-1].message
    if account.approval_conditions:
        return "Active - Conditional Approval"
    return "Active"


def sources_for(account_id: int) -> list[RestrictionSource]:
    return RestrictionSource.query.filter_by(account_id=int(account_id)).all()


def refresh_account(account: Account, now: datetime | None = None) -> dict:
    """Recompute the denormalized restriction copy on ``account`` from its sources."""
    now = to_naive_utc(now) if now else datetime.utcnow()
    sources = sources_for(account.id)
    computed = compute_restrictions(sources, now)
    account.restrictions = computed
    account.is_active = not (computed["governorSuspended"] or computed["accountClosure"])
    account.account_status = _display_status(account, _live_sources(sources, now))[:160]
    account.updated_at = now
    db.session.add(account)
    feed.queue_change(feed.account_channel(account.id), account)
    return computed


def apply_restriction_delta(
    account: Account,
    *,
    source_type: str,
    source_id,
    restrictions: Iterable[Restriction] = (),
    actor: Actor,
    action: str | None = None,
    target_name: str | None = None,
    details: dict | None = None,
    expires_at: datetime | None = None,
) -> dict:
    """Replace everything ``source_type/source_id`` asserts on ``account`` with ``restrictions``.

    An empty ``restrictions`` retracts the source. The account copy is recomputed and,
    when ``action`` is given, one audit entry is staged; callers that stage their own
    entry in the same transaction pass ``action=None``. Must run inside ``run_atomic``.
    """
    sid = str(source_id)
    existing = RestrictionSource.query.filter_by(
        account_id=int(account.id), source_type=source_type, source_id=sid
    ).all()
    for row in existing:
        db.session.delete(row)
    for r in restrictions:
        db.session.add(RestrictionSource(
            account_id=int(account.id),
            source_type=source_type,
            source_id=sid,
            key=r.key,
            value=r.value,
            message=r.message[:240] if r.message else None,
            expires_at=expires_at,
        ))
    db.session.flush()

    computed = refresh_account(account)
    if action:
        audit.record(actor, action, "investor", account.id, target_name or account.name, details)
    return computed


def effective_restrictions(account: Account, now: datetime | None = None) -> dict:
    """Restriction map as of ``now``; expired sources stop counting without any write."""
    return compute_restrictions(sources_for(account.id), now)


def _check_capability(capability: str) -> str:
    cap = clean_text(capability, "capability").lower()
    if cap not in CAPABILITIES:
        raise ValidationError("Unknown capability", capability=capability)
    return cap


def _permitted(restr: dict, cap: str, controls) -> bool:
    if controls.maintenance_mode or not controls.is_enabled(cap):
        return False
    return not any(restr.get(k) for k in CAPABILITY_BLOCKERS.get(cap, DEFAULT_BLOCKERS))


def is_capability_permitted(account: Account, capability: str, controls, now: datetime | None = None) -> bool:
    cap = _check_capability(capability)
    return _permitted(effective_restrictions(account, now), cap, controls)


def capability_report(account: Account, controls, now: datetime | None = None) -> dict:
    restr = effective_restrictions(account, now)
    return {cap: _permitted(restr, cap, controls) for cap in CAPABILITIES}
