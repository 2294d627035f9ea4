"""ORM models owned by the reconciliation kernel."""

from recon_kernel.models.audit_log import AuditLogEntry

__all__ = [
    "AuditLogEntry",
]
