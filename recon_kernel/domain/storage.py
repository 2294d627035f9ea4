"""
Storage ports (``recon_kernel.domain.storage``).

The kernel owns neither the pipeline records nor the audit trail's
retention.  It reaches both through two narrow interfaces, injected into
``StatusManager``:

* ``RecordStore`` -- ``load`` a record's field set, ``save`` it back with a
  conditional write keyed on the status observed at load.
* ``AuditSink``   -- ``append`` one audit entry.  No update, no delete.

Implementations live in ``recon_kernel.stores`` (in-memory and SQL).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from recon_kernel.domain.audit import AuditEntry

Record = dict[str, Any]


class RecordStore(Protocol):
    """Externally owned record storage, addressed by collection and id."""

    def load(self, collection: str, record_id: str) -> Record | None:
        """Return a copy of the record's fields, or None if it does not exist."""
        ...

    def save(
        self,
        collection: str,
        record: Mapping[str, Any],
        *,
        expected_status: str | None,
    ) -> bool:
        """
        Persist ``record`` only if its stored status still equals
        ``expected_status`` (None meaning "no status").

        Returns False, without writing, on mismatch.
        """
        ...


class AuditSink(Protocol):
    """Durable, append-only destination for audit entries."""

    def append(self, collection: str, entry: AuditEntry) -> None:
        ...
