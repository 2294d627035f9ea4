"""Services for the reconciliation kernel (write side)."""

from recon_kernel.services.audit_recorder import AuditRecorder
from recon_kernel.services.record_locks import PROCESS_RECORD_LOCKS, RecordLocks
from recon_kernel.services.status_manager import (
    UNCHECKED,
    StatusManager,
    TransitionOutcome,
    TransitionResult,
    TransitionStatus,
)

__all__ = [
    "AuditRecorder",
    "PROCESS_RECORD_LOCKS",
    "RecordLocks",
    "StatusManager",
    "TransitionOutcome",
    "TransitionResult",
    "TransitionStatus",
    "UNCHECKED",
]
