from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True, isolation_level: Optional[str] = None):
    """One connection, one transaction: commit on success, rollback on error.

    ``isolation_level`` opens the transaction explicitly. Row-locking callers
    use READ COMMITTED so ``SELECT ... FOR UPDATE`` on a missing row takes no
    gap lock and two first inserts of the same key collide on the unique index
    instead of deadlocking.
    """
    conn = conn_factory.connect()
    cur = None
    try:
        if isolation_level:
            conn.start_transaction(isolation_level=isolation_level)
        cur = conn.cursor(dictionary=dictionary)
        yield conn, cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        if cur is not None:
            cur.close()
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or [])


def as_bool(value: Any) -> bool:
    """MySQL BOOLEAN comes back as 0/1 (or b'\\x00' for BIT columns)."""
    if isinstance(value, (bytes, bytearray)):
        return any(value)
    return bool(value)
