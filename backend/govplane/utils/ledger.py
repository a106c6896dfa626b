from __future__ import annotations

from datetime import datetime

from govplane.errors import ValidationError
from govplane.extensions import db
from govplane.models import Account, LedgerEntry


def post_entry(
    *,
    account: Account,
    direction: str,
    amount: float,
    entry_type: str,
    reference: str,
    description: str,
    processed_by: str | None = None,
    idempotency_key: str | None = None,
) -> LedgerEntry:
    """Idempotent ledger posting: one entry per idempotency_key (or per account/type/reference/direction).

    Stages the entry and the balance change in the caller's transaction.
    """
    key = (idempotency_key or f"{int(account.id)}:{entry_type}:{direction}:{reference}")[:160]
    existing = LedgerEntry.query.filter_by(idempotency_key=key).first()
    if existing:
        return existing

    amt = float(amount or 0.0)
    if amt <= 0:
        raise ValidationError("amount must be positive", amount=amount)
    if direction not in ("credit", "debit"):
        raise ValidationError("Unknown ledger direction", direction=direction)

    current = float(account.balance or 0.0)
    if direction == "credit":
        account.balance = current + amt
    else:
        if amt > current:
            raise ValidationError("Insufficient balance", balance=current, amount=amt)
        account.balance = current - amt
    account.updated_at = datetime.utcnow()

    entry = LedgerEntry(
        account_id=account.id,
        entry_type=entry_type,
        direction=direction,
        amount=amt,
        balance_after=float(account.balance),
        status="Completed",
        description=(description or "")[:240],
        reference=(reference or "")[:80],
        idempotency_key=key,
        processed_by=processed_by,
    )
    db.session.add(entry)
    db.session.add(account)
    db.session.flush()
    return entry
