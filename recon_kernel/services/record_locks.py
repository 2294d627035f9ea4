"""
Per-record mutual exclusion.

One lock per (collection, record id), created on first use and dropped
when its last holder or waiter leaves, so the table never grows beyond
the records currently being transitioned.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from recon_kernel.exceptions import RecordLockTimeoutError


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class RecordLocks:
    """Process-local lock table keyed by (collection, record id)."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[tuple[str, str], _Entry] = {}

    @contextmanager
    def hold(
        self,
        collection: str,
        record_id: str,
        *,
        timeout: float | None = None,
        entity_kind: str | None = None,
    ) -> Iterator[None]:
        """
        Hold the record's lock for the duration of the ``with`` block.

        Raises:
            RecordLockTimeoutError: If the lock is not acquired within
                ``timeout`` seconds (None waits forever).
        """
        key = (collection, record_id)
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1

        acquired = entry.lock.acquire(timeout=-1 if timeout is None else timeout)
        try:
            if not acquired:
                raise RecordLockTimeoutError(
                    entity_kind or collection, record_id, timeout
                )
            yield
        finally:
            if acquired:
                entry.lock.release()
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[key]

    def active_count(self) -> int:
        """Number of records currently locked or awaited."""
        with self._guard:
            return len(self._entries)


# Shared by every StatusManager in the process unless one is injected.
PROCESS_RECORD_LOCKS = RecordLocks()
