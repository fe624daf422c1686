# Overview: Transaction scoping and row locking helpers for multi-statement writes.

from __future__ import annotations

from contextlib import contextmanager

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def atomic():
    """
    Scoped unit of work over the request session.

    Everything flushed inside the block commits together when the block
    exits normally. Any exception rolls the whole unit back and propagates,
    so a sale can never keep its items without the matching stock changes.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
