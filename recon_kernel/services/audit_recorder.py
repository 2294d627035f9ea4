"""
recon_kernel.services.audit_recorder -- status-transition audit trail.

Responsibility:
    Builds exactly one ``AuditEntry`` per successful transition and hands
    it to the injected ``AuditSink``.  Write-once: the recorder never
    reads back, updates, or deletes prior entries.

Architecture position:
    Kernel > Services.  May import from domain/.

Invariants enforced:
    - Fresh entry id (uuid4) per entry.
    - Timestamp generated from the injected Clock at record time, never
      supplied by the caller.
    - Timestamps issued by one recorder are strictly increasing.  If the
      clock stands still or steps back, the entry is stamped one
      microsecond after the previous one, so sorting a record's trail by
      timestamp reproduces call order.
    - from/to status codes copied verbatim; a missing from-status is
      rendered as the "null" marker.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta

from recon_kernel.domain.audit import AUDIT_COLLECTION, AuditEntry
from recon_kernel.domain.catalog import EntityKind, Status
from recon_kernel.domain.clock import Clock, SystemClock
from recon_kernel.domain.storage import AuditSink
from recon_kernel.logging_config import get_logger

logger = get_logger("services.audit_recorder")

_TIMESTAMP_STEP = timedelta(microseconds=1)


class AuditRecorder:
    """Appends one immutable audit entry per executed transition."""

    def __init__(
        self,
        sink: AuditSink,
        clock: Clock | None = None,
        collection: str = AUDIT_COLLECTION,
    ) -> None:
        self._sink = sink
        self._clock = clock or SystemClock()
        self._collection = collection
        self._stamp_lock = threading.Lock()
        self._last_issued: datetime | None = None

    @property
    def collection(self) -> str:
        return self._collection

    def build(
        self,
        *,
        kind: EntityKind,
        record_id: str,
        from_status: Status | None,
        to_status: Status,
        actor: str,
        reason: str,
    ) -> AuditEntry:
        """Build an entry stamped with the next audit timestamp."""
        return AuditEntry.create(
            entity_type=str(kind),
            entity_id=record_id,
            from_status=from_status.code if from_status is not None else None,
            to_status=to_status.code,
            triggered_by=actor,
            reason=reason or "",
            occurred_at=self._next_timestamp(),
        )

    def _next_timestamp(self) -> datetime:
        with self._stamp_lock:
            now = self._clock.now()
            if self._last_issued is not None and now <= self._last_issued:
                logger.debug(
                    "audit_clock_not_advancing",
                    extra={
                        "clock_time": now.isoformat(),
                        "last_issued": self._last_issued.isoformat(),
                    },
                )
                now = self._last_issued + _TIMESTAMP_STEP
            self._last_issued = now
            return now

    def record(
        self,
        *,
        kind: EntityKind,
        record_id: str,
        from_status: Status | None,
        to_status: Status,
        actor: str,
        reason: str,
    ) -> AuditEntry:
        """
        Build and append one entry.

        Raises:
            Whatever the sink raises; the caller decides how to react.
        """
        entry = self.build(
            kind=kind,
            record_id=record_id,
            from_status=from_status,
            to_status=to_status,
            actor=actor,
            reason=reason,
        )
        self._sink.append(self._collection, entry)

        logger.debug(
            "audit_entry_appended",
            extra={
                "entry_id": str(entry.entry_id),
                "collection": self._collection,
                "from_status": entry.from_status,
                "to_status": entry.to_status,
            },
        )
        return entry
