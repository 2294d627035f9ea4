"""
In-memory store adapters (``recon_kernel.stores.memory``).

Thread-safe implementations of ``RecordStore`` and ``AuditSink`` backed by
dicts.  Used as test doubles and for embedding the kernel in tools that
have no database.  Every value crossing the boundary is deep-copied so no
caller can mutate stored state in place.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Mapping
from typing import Any

from recon_kernel.domain.audit import AuditEntry
from recon_kernel.domain.storage import Record


class InMemoryRecordStore:
    """
    Dict-backed record store with a compare-and-set ``save``.

    ``writes`` lists every successful save as ``(collection, record)``, in
    order, for assertions.
    """

    def __init__(self, *, id_field: str = "id", status_field: str = "status"):
        self._id_field = id_field
        self._status_field = status_field
        self._lock = threading.Lock()
        self._collections: dict[str, dict[str, Record]] = {}
        self.writes: list[tuple[str, Record]] = []

    def put(self, collection: str, record: Mapping[str, Any]) -> None:
        """Seed a record directly, bypassing the conditional write."""
        record_id = str(record[self._id_field])
        with self._lock:
            self._collections.setdefault(collection, {})[record_id] = copy.deepcopy(
                dict(record)
            )

    def load(self, collection: str, record_id: str) -> Record | None:
        with self._lock:
            record = self._collections.get(collection, {}).get(str(record_id))
            return copy.deepcopy(record) if record is not None else None

    def save(
        self,
        collection: str,
        record: Mapping[str, Any],
        *,
        expected_status: str | None,
    ) -> bool:
        record_id = str(record[self._id_field])
        with self._lock:
            rows = self._collections.get(collection, {})
            stored = rows.get(record_id)
            if stored is None:
                return False
            if (stored.get(self._status_field) or None) != expected_status:
                return False
            snapshot = copy.deepcopy(dict(record))
            rows[record_id] = snapshot
            self.writes.append((collection, copy.deepcopy(snapshot)))
            return True


class InMemoryAuditSink:
    """List-backed append-only audit sink."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, list[AuditEntry]] = {}

    def append(self, collection: str, entry: AuditEntry) -> None:
        with self._lock:
            self._entries.setdefault(collection, []).append(entry)

    def entries(self, collection: str | None = None) -> tuple[AuditEntry, ...]:
        """Entries in append order; all collections when ``collection`` is None."""
        with self._lock:
            if collection is not None:
                return tuple(self._entries.get(collection, ()))
            return tuple(e for entries in self._entries.values() for e in entries)

    def entries_for(self, entity_type: str, entity_id: str) -> tuple[AuditEntry, ...]:
        return tuple(
            e for e in self.entries()
            if e.entity_type == entity_type and e.entity_id == entity_id
        )
