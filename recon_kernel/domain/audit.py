"""
Audit entry value object (``recon_kernel.domain.audit``).

One immutable record of one executed status transition.  The field names
returned by ``AuditEntry.to_row()`` are the persisted external contract:

    id, entity_type, entity_id, from_status, to_status,
    triggered_by, reason, timestamp
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

# Collection the audit sink appends to.
AUDIT_COLLECTION = "audit_log"

# Rendered as from_status when the record had no status before the change.
NULL_STATUS_MARKER = "null"

# Actor identifier for operator-driven transitions (resets, reviews).
OPERATOR = "OPERATOR"


@dataclass(frozen=True)
class AuditEntry:
    """Record of a single executed transition.  Write-once."""

    entity_type: str
    entity_id: str
    from_status: str
    to_status: str
    triggered_by: str
    reason: str
    timestamp: str
    entry_id: UUID = field(default_factory=uuid4)

    @classmethod
    def create(
        cls,
        *,
        entity_type: str,
        entity_id: str,
        from_status: str | None,
        to_status: str,
        triggered_by: str,
        reason: str,
        occurred_at: datetime,
    ) -> AuditEntry:
        """Build an entry, rendering a missing from-status as the null marker."""
        return cls(
            entity_type=entity_type,
            entity_id=entity_id,
            from_status=from_status if from_status is not None else NULL_STATUS_MARKER,
            to_status=to_status,
            triggered_by=triggered_by,
            reason=reason,
            timestamp=occurred_at.astimezone(timezone.utc).isoformat(),
        )

    @property
    def occurred_at(self) -> datetime:
        return datetime.fromisoformat(self.timestamp)

    def to_row(self) -> dict[str, Any]:
        """Persisted field mapping handed to the audit sink."""
        return {
            "id": str(self.entry_id),
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "triggered_by": self.triggered_by,
            "reason": self.reason,
            "timestamp": self.timestamp,
        }
