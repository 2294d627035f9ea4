"""
Kernel Invariants Contract.

These invariants are structural law for every status change in the
reconciliation pipeline.  No deployed registry, setting, or caller may
switch them off.

This module exists solely to declare them explicitly.  Enforcement is
distributed across TransitionRegistry, TransitionValidator, StatusManager,
RecordLocks, the store adapters and the audit-log immutability listeners.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    TRANSITION_LEGALITY = "transition_legality"
    """A status changes only along an edge of its kind's graph.  Enforced
    by TransitionValidator before any write."""

    INITIAL_STATUS_POLICY = "initial_status_policy"
    """A record without a status may only receive one of its kind's
    declared initial statuses."""

    REGISTRY_IMMUTABILITY = "registry_immutability"
    """The registry is validated once at construction and never mutated
    afterward.  Enforced by TransitionRegistry (read-only views)."""

    STATE_AUDIT_ATOMICITY = "state_audit_atomicity"
    """A status write and its audit entry land together or not at all.
    Enforced by StatusManager (ordering + compensation) and by the shared
    session of the SQL adapters."""

    AUDIT_APPEND_ONLY = "audit_append_only"
    """Audit entries are never updated or deleted.  Enforced by
    recon_kernel.db.immutability."""

    RECORD_LINEARIZABILITY = "record_linearizability"
    """At most one transition is in flight per record.  Enforced by
    RecordLocks and the conditional write in the record store."""


ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "recon_config",
)
