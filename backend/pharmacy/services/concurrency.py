# Overview: Row locking and retry helpers for session-level DB operations.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Lock the selected item rows until the surrounding transaction ends.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func, retrying transient storage failures with exponential backoff.

    OperationalError covers a locked or busy database; StaleDataError means an
    item row moved to a new version_id (usually a sale decrement) while it was
    being edited. The session is rolled back before every retry, so func must
    redo all of its work. Any other exception propagates on the first attempt.
    """
    last_exc = None
    for attempt in range(max(attempts, 1)):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
