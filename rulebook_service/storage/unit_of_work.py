"""
Transactional dispatch.

Every mutating request, and every read that spans several queries, runs
its store calls through ``run_in_transaction``. The work function receives
the connection explicitly and returns an outcome; the transaction commits
only on ``Ok``.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from sqlalchemy.engine import Connection, Engine

from rulebook_service.core.result import Err, ErrorKind, Outcome
from rulebook_service.storage.database import get_engine

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_in_transaction(
    work: Callable[[Connection], Outcome[T]],
    engine: Engine | None = None,
) -> Outcome[T]:
    """Run ``work`` inside one transaction.

    Commits when ``work`` returns ``Ok``. Rolls back when it returns ``Err``
    (the error is passed through unchanged) or raises (the exception becomes
    an INTERNAL error).
    """
    engine = engine or get_engine()
    with engine.connect() as conn:
        trans = conn.begin()
        try:
            outcome = work(conn)
            if outcome.ok:
                trans.commit()
                return outcome
        except Exception as e:
            if trans.is_active:
                trans.rollback()
            logger.debug("Transaction rolled back after unexpected error", exc_info=True)
            return Err(ErrorKind.INTERNAL, str(e))

        trans.rollback()
        logger.debug("Transaction rolled back: %s (%s)", outcome.detail, outcome.kind.value)
        return outcome
