# Overview: Row locking and retry helpers shared by the shift and ledger services.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    Lock the selected rows for the rest of the transaction.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    The version_id column on locked models still catches lost updates there.
    Rows already in the session are refreshed from the locked read.
    """
    return query.with_for_update().populate_existing()


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float | None = None):
    """
    Run one unit of work, retrying on lock contention and stale versions.

    The session is rolled back before every retry, so a unit that exhausts
    its budget leaves nothing behind. Budget and backoff default to
    LEDGER_RETRY_ATTEMPTS and LEDGER_RETRY_BACKOFF.
    """
    if attempts is None:
        attempts = current_app.config.get("LEDGER_RETRY_ATTEMPTS", 3)
    if backoff_base is None:
        backoff_base = current_app.config.get("LEDGER_RETRY_BACKOFF", 0.1)

    attempt = 0
    while True:
        attempt += 1
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            if attempt >= attempts:
                current_app.logger.warning(
                    "Giving up after %d attempts: %s", attempts, exc.__class__.__name__
                )
                raise
            current_app.logger.info(
                "Retrying after %s (attempt %d of %d)", exc.__class__.__name__, attempt, attempts
            )
            time.sleep(backoff_base * (2 ** (attempt - 1)))
