"""
Module: recon_kernel.models.audit_log
Responsibility: ORM persistence for status-transition audit entries.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/audit.py only.

Invariants enforced:
    Audit rows are append-only; no UPDATE or DELETE (ORM listeners in
    recon_kernel.db.immutability).

Audit relevance:
    This table IS the status audit trail.  Column names are the external
    contract shared with reporting and operator tooling:
    entity_type, entity_id, from_status, to_status, triggered_by, reason,
    timestamp.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from recon_kernel.db.base import Base
from recon_kernel.domain.audit import AUDIT_COLLECTION, AuditEntry


class AuditLogEntry(Base):
    """
    One executed status transition.

    Contract:
        Rows are written once by SqlAuditSink and never updated or deleted.
        ``id`` is the entry id generated by the recorder, not by the table.
    """

    __tablename__ = AUDIT_COLLECTION

    __table_args__ = (
        Index("idx_audit_log_entity", "entity_type", "entity_id"),
        Index("idx_audit_log_timestamp", "timestamp"),
    )

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(255), nullable=False)
    from_status: Mapped[str] = mapped_column(String(50), nullable=False)
    to_status: Mapped[str] = mapped_column(String(50), nullable=False)
    triggered_by: Mapped[str] = mapped_column(String(255), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # ISO-8601, generated server-side by the recorder's clock
    timestamp: Mapped[str] = mapped_column(String(40), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<AuditLogEntry {self.entity_type}:{self.entity_id} "
            f"{self.from_status} -> {self.to_status}>"
        )

    @classmethod
    def from_entry(cls, entry: AuditEntry) -> AuditLogEntry:
        return cls(
            id=entry.entry_id,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            from_status=entry.from_status,
            to_status=entry.to_status,
            triggered_by=entry.triggered_by,
            reason=entry.reason,
            timestamp=entry.timestamp,
        )

    def to_entry(self) -> AuditEntry:
        entry_id = self.id if isinstance(self.id, UUID) else UUID(str(self.id))
        return AuditEntry(
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            from_status=self.from_status,
            to_status=self.to_status,
            triggered_by=self.triggered_by,
            reason=self.reason,
            timestamp=self.timestamp,
            entry_id=entry_id,
        )
