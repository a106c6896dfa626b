from __future__ import annotations

from datetime import datetime

from govplane.actors import Actor, require_governor
from govplane.errors import ConflictError, NotFoundError, ValidationError
from govplane.extensions import db
from govplane.models import AccountFlag
from govplane.models.account_flag import FLAG_SEVERITIES, FLAG_TYPES
from govplane.utils import audit
from govplane.utils.atomic import run_atomic
from govplane.utils.inputs import clean_choice, clean_text
from govplane.utils.restrictions import (
    SOURCE_FLAG,
    Restriction,
    apply_restriction_delta,
    flag_marker_key,
    get_account,
)

_AUTO_KEYS = {
    "withdrawal_disabled": "withdrawal_disabled",
    "withdrawalDisabled": "withdrawal_disabled",
    "account_suspended": "account_suspended",
    "accountSuspended": "account_suspended",
    "requires_approval": "requires_approval",
    "requiresApproval": "requires_approval",
}


def _normalize_auto_restrictions(raw) -> dict:
    out = {"withdrawal_disabled": False, "account_suspended": False, "requires_approval": False}
    if raw is None:
        return out
    if not isinstance(raw, dict):
        raise ValidationError("auto_restrictions must be an object")
    for k, v in raw.items():
        if k not in _AUTO_KEYS:
            raise ValidationError("Unknown auto restriction", key=k)
        out[_AUTO_KEYS[k]] = bool(v)
    return out


def flag_restrictions(flag: AccountFlag) -> list[Restriction]:
    """Restriction keys one flag asserts while it is not resolved."""
    label = (flag.flag_type or "").upper()
    bundle = [Restriction(flag_marker_key(flag.flag_type), message=flag.description)]
    if flag.account_suspended:
        bundle.append(Restriction("governorSuspended", message=f"FLAGGED: {label} - SUSPENDED"))
    if flag.withdrawal_disabled:
        bundle.append(Restriction("withdrawalDisabled", message=f"FLAGGED: {label} - WITHDRAWAL RESTRICTED"))
    if flag.requires_approval:
        bundle.append(Restriction("requiresApproval"))
    return bundle


def get_flag(flag_id) -> AccountFlag:
    try:
        fid = int(flag_id)
    except (TypeError, ValueError):
        raise NotFoundError("Flag not found", flag_id=flag_id)
    flag = db.session.get(AccountFlag, fid)
    if not flag:
        raise NotFoundError("Flag not found", flag_id=flag_id)
    return flag


def create_flag(account_id, flag_type: str, severity: str, description: str, auto_restrictions, actor: Actor) -> int:
    """Flag an account and assert the flag's restriction bundle in one commit."""
    actor = require_governor(actor)
    flag_type = clean_choice(flag_type, "flag_type", FLAG_TYPES)
    severity = clean_choice(severity, "severity", FLAG_SEVERITIES)
    description = clean_text(description, "description", required=True)
    auto = _normalize_auto_restrictions(auto_restrictions)

    def _create():
        account = get_account(account_id)
        flag = AccountFlag(
            account_id=account.id,
            flag_type=flag_type,
            severity=severity,
            description=description,
            status="active",
            created_by=actor.id,
            created_by_name=actor.name,
            **auto,
        )
        db.session.add(flag)
        db.session.flush()
        apply_restriction_delta(
            account,
            source_type=SOURCE_FLAG,
            source_id=flag.id,
            restrictions=flag_restrictions(flag),
            actor=actor,
            action="flag_creation",
            details={"flag_id": flag.id, "flag_type": flag_type, "severity": severity, "auto_restrictions": auto},
        )
        return flag.id

    return run_atomic(_create)


def resolve_flag(flag_id, resolution_notes: str, actor: Actor) -> AccountFlag:
    """Resolve a flag; only this flag's restrictions are retracted."""
    actor = require_governor(actor)
    notes = clean_text(resolution_notes, "resolution_notes", required=True)

    def _resolve():
        flag = get_flag(flag_id)
        if flag.status == "resolved":
            raise ConflictError("Flag is already resolved", flag_id=flag.id)
        account = get_account(flag.account_id)
        flag.status = "resolved"
        flag.resolved_by = actor.id
        flag.resolved_at = datetime.utcnow()
        flag.resolution_notes = notes
        apply_restriction_delta(
            account,
            source_type=SOURCE_FLAG,
            source_id=flag.id,
            actor=actor,
            action="flag_resolution",
            details={"flag_id": flag.id, "flag_type": flag.flag_type, "resolution_notes": notes},
        )
        return flag

    return run_atomic(_resolve)


def mark_under_review(flag_id, actor: Actor) -> AccountFlag:
    actor = require_governor(actor)

    def _review():
        flag = get_flag(flag_id)
        if flag.status != "active":
            raise ConflictError("Only active flags can be put under review", flag_id=flag.id, status=flag.status)
        flag.status = "under_review"
        account = get_account(flag.account_id)
        audit.record(actor, "flag_review", "investor", account.id, account.name, {"flag_id": flag.id})
        return flag

    return run_atomic(_review)


def list_flags(account_id=None, status: str | None = None) -> list[AccountFlag]:
    q = AccountFlag.query
    if account_id is not None:
        q = q.filter(AccountFlag.account_id == int(account_id))
    if status:
        q = q.filter(AccountFlag.status == status)
    return q.order_by(AccountFlag.created_at.desc(), AccountFlag.id.desc()).all()
