"""Per-entity mutual exclusion.

Cart edits and checkout for one customer, and status changes for one order,
must not interleave. ``KeyedLocks`` hands out one re-entrant lock per key
(``cart:<customer_id>``, ``order:<order_id>``) so unrelated customers and
orders never wait on each other. A lock that cannot be obtained within the
timeout raises ``Conflict``; the caller may retry.

Locks are process-local. Entries are dropped once no thread holds or waits
on them.
"""

import threading
from contextlib import contextmanager

import structlog

from sales.errors import Conflict

logger = structlog.get_logger(__name__)


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.users = 0


class KeyedLocks:
    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, key: str, timeout: float | None = None):
        wait = self.timeout if timeout is None else timeout
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1

        try:
            if not entry.lock.acquire(timeout=wait):
                logger.warning("Lock wait timed out", key=key, timeout=wait)
                raise Conflict(
                    f"Another operation on {key} is in progress",
                    key=key,
                )
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
