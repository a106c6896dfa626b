"""Cleaning of caller-supplied values.

Payloads arrive as decoded JSON, so a field documented as text may hold a
number, a list or an object. Everything is checked here and rejected with
``ValidationError`` before any write happens.
"""

from __future__ import annotations

from datetime import datetime, timezone

from govplane.errors import ValidationError


def clean_text(value, field_name: str, required: bool = False, default: str = "", max_len: int | None = None) -> str:
    if value is None or value == "":
        value = default
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string", field=field_name, type=type(value).__name__)
    value = value.strip()
    if required and not value:
        raise ValidationError(f"{field_name} is required")
    if max_len is not None:
        value = value[:max_len]
    return value


def clean_choice(value, field_name: str, choices, default: str | None = None) -> str:
    """Lower-cased ``value`` when it is one of ``choices``."""
    choice = clean_text(value, field_name, required=default is None, default=default or "").lower()
    if choice not in choices:
        raise ValidationError(f"Unknown {field_name}", **{field_name: choice})
    return choice


def clean_text_list(value, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{field_name} must be a list")
    items = []
    for item in value:
        if not isinstance(item, str):
            raise ValidationError(f"{field_name} must only hold strings", field=field_name)
        if item.strip():
            items.append(item.strip())
    return items


def to_naive_utc(value: datetime) -> datetime:
    # Timestamps are stored naive UTC; a naive input is taken to already be UTC.
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_datetime(value, field_name: str) -> datetime | None:
    """Accept a ``datetime`` or an ISO-8601 string; always returns naive UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be an ISO-8601 datetime", field=field_name)
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 datetime", **{field_name: value})
    return to_naive_utc(parsed)
