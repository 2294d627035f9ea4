"""
Pure domain layer of the reconciliation kernel.

Everything here is free of I/O: catalogs, the transition registry, the
validator, the audit entry value object, the clock abstraction and the
storage protocols the services depend on.
"""

from recon_kernel.domain.audit import (
    AUDIT_COLLECTION,
    NULL_STATUS_MARKER,
    OPERATOR,
    AuditEntry,
)
from recon_kernel.domain.catalog import EntityKind, Status
from recon_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from recon_kernel.domain.registry import TransitionRegistry
from recon_kernel.domain.storage import AuditSink, Record, RecordStore
from recon_kernel.domain.validator import TransitionValidator

__all__ = [
    "AUDIT_COLLECTION",
    "AuditEntry",
    "AuditSink",
    "Clock",
    "DeterministicClock",
    "EntityKind",
    "NULL_STATUS_MARKER",
    "OPERATOR",
    "Record",
    "RecordStore",
    "Status",
    "SystemClock",
    "TransitionRegistry",
    "TransitionValidator",
]
