# Overview: Retry and locking helpers around SQLite write transactions.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError

from ..extensions import db


def lock_for_update(query):
    """
    SELECT ... FOR UPDATE on engines that support it.

    SQLite ignores the clause; its writer lock is taken at the first write
    of the session transaction.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run a write operation, retrying when the database file is locked.

    SQLite reports a busy file as OperationalError ("database is locked").
    The session is rolled back before each retry so `func` starts over from
    a clean transaction; any other exception propagates immediately.
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except OperationalError:
            db.session.rollback()
            if attempt == attempts:
                raise
            current_app.logger.warning("Database busy, retrying (attempt %d of %d)", attempt, attempts)
            time.sleep(backoff_base * (2 ** (attempt - 1)))
