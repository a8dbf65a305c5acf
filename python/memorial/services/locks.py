"""Keyed mutual exclusion for read-modify-write sequences.

Used where two concurrent writers could both read "no row yet" and both
insert, e.g. the notification merge. The lock is scoped to a logical key
(recipient, memorial, actor, type) so unrelated keys never wait on each other.

- PostgreSQL: pg_advisory_xact_lock on a 64-bit hash of the key. The lock
  belongs to the current transaction and is released on commit or rollback,
  so the caller must commit inside the ``key_lock`` block.
- Other dialects (SQLite in tests): a process-local lock per key, held until
  the ``key_lock`` block exits.
"""

import hashlib
import threading
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from memorial.db.dialect import dialect_name
from memorial.logging import get_logger

logger = get_logger(__name__)

KEY_SEPARATOR = "\x1f"


def advisory_key(namespace: str, *parts: object) -> int:
    """Hash a lock key into the signed 64-bit range pg_advisory locks take."""
    raw = KEY_SEPARATOR.join([namespace, *(str(part) for part in parts)])
    digest = hashlib.blake2b(raw.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


class _LocalKeyLocks:
    """Refcounted registry of per-key threading locks.

    Entries are dropped once no thread holds or waits on them, so the
    registry does not grow with the number of distinct keys seen.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[int, list] = {}

    def acquire(self, key: int) -> None:
        with self._guard:
            entry = self._entries.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        entry[0].acquire()

    def release(self, key: int) -> None:
        with self._guard:
            entry = self._entries[key]
            entry[0].release()
            entry[1] -= 1
            if entry[1] == 0:
                del self._entries[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


_local_locks = _LocalKeyLocks()


@contextmanager
def key_lock(db: Session, namespace: str, *parts: object) -> Generator[None, None, None]:
    """Serialize work on one logical key across concurrent callers.

    Usage:
        with key_lock(db, "notification", recipient_id, memorial_id):
            with transaction(db):
                ...  # read, then insert or update
    """
    key = advisory_key(namespace, *parts)

    if dialect_name(db) == "postgresql":
        db.execute(select(func.pg_advisory_xact_lock(key)))
        logger.debug("advisory_lock_acquired", namespace=namespace, key=key)
        yield
        return

    _local_locks.acquire(key)
    try:
        yield
    finally:
        _local_locks.release(key)
