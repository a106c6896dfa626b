from __future__ import annotations

from typing import Any, Callable, TypeVar

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from govplane.errors import ConflictError, GovernanceError, TransactionError
from govplane.extensions import db
from govplane.realtime import feed

T = TypeVar("T")


def run_atomic(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run ``fn`` and commit everything it staged as one transaction.

    Accounts, flags, shadow bans, system controls and approval requests carry a
    version column, so a concurrent writer surfaces as ``StaleDataError``; the
    whole unit is rolled back and ``fn`` re-run against fresh state, up to
    ``GOVERNANCE_CAS_RETRIES`` times.
    Any other store failure becomes ``TransactionError`` with nothing applied.
    """
    retries = int(current_app.config.get("GOVERNANCE_CAS_RETRIES", 3))
    name = getattr(fn, "__name__", "operation")
    attempt = 0
    while True:
        attempt += 1
        try:
            result = fn(*args, **kwargs)
            db.session.commit()
        except GovernanceError as e:
            _rollback()
            current_app.logger.warning("governance: %s rolled back: %s", name, e.message)
            raise
        except StaleDataError as e:
            _rollback()
            if attempt > retries:
                raise ConflictError(
                    "Record was modified concurrently; retry the operation",
                    attempts=attempt,
                ) from e
            current_app.logger.warning(
                "governance: %s lost a concurrent write (attempt %s), retrying", name, attempt
            )
            continue
        except SQLAlchemyError as e:
            _rollback()
            current_app.logger.error("governance: %s commit failed: %s", name, e)
            raise TransactionError("Store unavailable; operation was not applied") from e
        feed.publish_pending()
        return result


def _rollback() -> None:
    db.session.rollback()
    feed.discard_pending()
