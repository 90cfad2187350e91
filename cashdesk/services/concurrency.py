# Overview: Transaction boundaries, row locking and optimistic-concurrency retries.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import StorageConflictError
from ..extensions import db

# Failures that mean "someone else wrote first": roll back and re-run the unit.
# IntegrityError covers duplicate (drawer_id, sequence_number) pairs.
RETRYABLE_ERRORS = (OperationalError, StaleDataError, IntegrityError)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE (the version column still
    protects drawers), other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float | None = None):
    """
    Run ``func`` as one unit of work and commit it.

    - Retries on OperationalError (deadlocks, locks), StaleDataError
      (optimistic locking conflicts) and IntegrityError (sequence collisions),
      rolling back before each new attempt.
    - Any other exception rolls back and propagates unchanged.
    - When attempts are exhausted, raises StorageConflictError.

    Either everything ``func`` wrote is committed or nothing is.
    """
    if attempts is None:
        attempts = current_app.config.get("LEDGER_RETRY_ATTEMPTS", 3)
    if backoff_base is None:
        backoff_base = current_app.config.get("LEDGER_RETRY_BACKOFF", 0.05)

    for attempt in range(attempts):
        try:
            result = func()
            db.session.commit()
            return result
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise StorageConflictError(
                    f"Concurrent update conflict after {attempts} attempts; retry the request"
                ) from exc
            current_app.logger.warning(
                "Ledger write conflict (attempt %s/%s): %s", attempt + 1, attempts, exc.__class__.__name__
            )
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
    raise StorageConflictError("No attempts were made")


def compare_and_set(model, *, key: int, expected: dict, values: dict) -> bool:
    """
    Conditional single-row update: UPDATE model SET values WHERE id = key AND
    every expected column matches. Returns True if the row was changed.

    The check and the write are one statement, so concurrent callers with
    the same expectation cannot both succeed.
    """
    conditions = [model.id == key]
    conditions.extend(getattr(model, column) == value for column, value in expected.items())
    stmt = (
        update(model)
        .where(*conditions)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    return result.rowcount == 1
