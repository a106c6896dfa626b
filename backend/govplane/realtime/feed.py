"""In-process change feed for accounts and the global system controls.

Governance operations queue a change while their transaction is open; the
change is delivered to subscribers only after the commit succeeded, so a
listener never observes state that was rolled back. Transport to browsers
(Socket.IO, SSE, ...) subscribes here and is outside this package.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List

from flask import current_app

from govplane.extensions import db

CONTROLS_CHANNEL = "system_controls"

_PENDING_KEY = "govplane_pending_changes"

Listener = Callable[[str, Dict[str, Any]], None]

_listeners: Dict[str, List[Listener]] = defaultdict(list)
_lock = threading.Lock()


def account_channel(account_id: int) -> str:
    return f"account:{int(account_id)}"


def subscribe(channel: str, callback: Listener) -> Callable[[], None]:
    """Register ``callback(channel, payload)``; returns the unsubscribe function."""
    with _lock:
        _listeners[channel].append(callback)

    def _unsubscribe() -> None:
        with _lock:
            if callback in _listeners.get(channel, []):
                _listeners[channel].remove(callback)

    return _unsubscribe


def queue_change(channel: str, payload: Any) -> None:
    """Stage a change; models are serialized after commit so subscribers see the durable row."""
    db.session.info.setdefault(_PENDING_KEY, []).append((channel, payload))


def discard_pending() -> None:
    db.session.info.pop(_PENDING_KEY, None)


def publish_pending() -> int:
    pending = db.session.info.pop(_PENDING_KEY, [])
    # Latest state per channel wins within one commit.
    latest: Dict[str, Any] = {}
    for channel, payload in pending:
        latest[channel] = payload
    return sum(
        broadcast(channel, payload.to_dict() if hasattr(payload, "to_dict") else payload)
        for channel, payload in latest.items()
    )


def broadcast(channel: str, payload: Dict[str, Any]) -> int:
    """Deliver to every subscriber of ``channel``; returns how many were called."""
    with _lock:
        targets = list(_listeners.get(channel, []))
    delivered = 0
    for cb in targets:
        try:
            cb(channel, payload)
            delivered += 1
        except Exception:
            # The commit already happened; keep delivering to the remaining listeners.
            current_app.logger.exception("change listener failed on %s", channel)
    return delivered


def clear_subscribers() -> None:
    with _lock:
        _listeners.clear()
