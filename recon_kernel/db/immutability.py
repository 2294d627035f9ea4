"""
ORM-Level Immutability Enforcement for the audit log.

Audit entries are append-only.  SQLAlchemy fires mapper events before an
UPDATE or DELETE reaches the database; the listeners here intercept those
events for ``AuditLogEntry`` and raise ``ImmutabilityViolationError``, so
the transaction aborts and the row is never touched.

    session.flush()
         |
         v
    [before_update] --> _check_audit_log_immutability() --> ImmutabilityViolationError
    [before_delete] --> _check_audit_log_delete() --------> ImmutabilityViolationError

Usage (once at startup; ``create_tables`` does it for you):

    from recon_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event

from recon_kernel.exceptions import ImmutabilityViolationError
from recon_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _check_audit_log_immutability(mapper, connection, target):
    """Prevent any updates to audit log rows."""
    from recon_kernel.models.audit_log import AuditLogEntry

    if not isinstance(target, AuditLogEntry):
        return

    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "AuditLogEntry",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="AuditLogEntry",
        entity_id=str(target.id),
        reason="Audit entries are immutable and cannot be modified",
    )


def _check_audit_log_delete(mapper, connection, target):
    """Prevent deletion of audit log rows."""
    from recon_kernel.models.audit_log import AuditLogEntry

    if not isinstance(target, AuditLogEntry):
        return

    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "AuditLogEntry",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="AuditLogEntry",
        entity_id=str(target.id),
        reason="Audit entries cannot be deleted",
    )


def register_immutability_listeners():
    """
    Register the audit-log immutability listeners.  Idempotent.

    Call after models are imported and before any database operations.
    """
    from recon_kernel.models.audit_log import AuditLogEntry

    if not event.contains(AuditLogEntry, "before_update", _check_audit_log_immutability):
        event.listen(AuditLogEntry, "before_update", _check_audit_log_immutability)
    if not event.contains(AuditLogEntry, "before_delete", _check_audit_log_delete):
        event.listen(AuditLogEntry, "before_delete", _check_audit_log_delete)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove the audit-log immutability listeners.

    WARNING: Only use this in tests that need to violate immutability on
    purpose.
    """
    from recon_kernel.models.audit_log import AuditLogEntry

    _safe_remove_listener(AuditLogEntry, "before_update", _check_audit_log_immutability)
    _safe_remove_listener(AuditLogEntry, "before_delete", _check_audit_log_delete)
