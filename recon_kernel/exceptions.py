"""
Typed Exception Hierarchy for the Reconciliation Status Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Pipeline stages (importer, enricher, pairing engine, poster) and operator
tooling must react differently to "your request was illegal" and "the
system could not execute a legal request".  Parsing message strings to
tell them apart is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (kind, record id, from, to)

Example - WRONG way to handle errors:
    try:
        manager.transition(EntityKind.STATEMENT, "S001", Status.POSTED, ...)
    except Exception as e:
        if "Invalid transition" in str(e):  # FRAGILE
            ...

Example - RIGHT way:
    try:
        manager.transition(EntityKind.STATEMENT, "S001", Status.POSTED, ...)
    except InvalidTransitionError as e:
        log.warning("rejected %s -> %s", e.from_status, e.to_status)
    except StorageError as e:
        alert_operations(e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from ReconKernelError:

    ReconKernelError (base)
    |
    +-- InvalidArgumentError
    |
    +-- CatalogError
    |   +-- UnknownStatusCodeError
    |   +-- UnknownEntityKindError
    |
    +-- RecordError
    |   +-- RecordNotFoundError
    |
    +-- TransitionError
    |   +-- InvalidTransitionError
    |
    +-- ConcurrencyError
    |   +-- StaleStatusError
    |   +-- RecordLockTimeoutError
    |
    +-- StorageError
    |   +-- RecordReadError
    |   +-- RecordWriteError
    |   +-- AuditWriteError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- RegistryConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|---------------------------------------
Argument        | INVALID_ARGUMENT              | transition() without kind/target/id
----------------|-------------------------------|---------------------------------------
Catalog         | UNKNOWN_STATUS_CODE           | Stored or supplied code not in catalog
                | UNKNOWN_ENTITY_KIND           | Kind name not in catalog
----------------|-------------------------------|---------------------------------------
Record          | RECORD_NOT_FOUND              | No record with that id in collection
----------------|-------------------------------|---------------------------------------
Transition      | INVALID_TRANSITION            | from -> to not in the registry
----------------|-------------------------------|---------------------------------------
Concurrency     | STALE_STATUS                  | Status changed under the caller (CAS)
                | RECORD_LOCK_TIMEOUT           | Record lock not acquired in time
----------------|-------------------------------|---------------------------------------
Storage         | RECORD_READ_FAILED            | Record store raised on load
                | RECORD_WRITE_FAILED           | Record store raised on save
                | AUDIT_WRITE_FAILED            | Audit sink raised on append
----------------|-------------------------------|---------------------------------------
Immutability    | IMMUTABILITY_VIOLATION        | UPDATE/DELETE of an audit row
----------------|-------------------------------|---------------------------------------
Configuration   | REGISTRY_CONFIGURATION_ERROR  | Registry failed startup validation

===============================================================================
HANDLING PATTERNS
===============================================================================

1. TransitionError is the caller's problem: pick a legal target.
   ``StatusManager.valid_transitions()`` lists them.

2. ConcurrencyError means another writer got there first.  The record
   changed; re-read and decide again.  ``StaleStatusError.still_legal``
   tells whether the same target is legal from the now-current status.

3. StorageError means the system failed a legal request.  The kernel
   never retries; retry/backoff is caller policy.

===============================================================================
"""


class ReconKernelError(Exception):
    """
    Base exception for all reconciliation kernel errors.

    All subclasses must have a `code` class attribute for
    machine-readable error identification.
    """

    code: str = "RECON_KERNEL_ERROR"


class InvalidArgumentError(ReconKernelError):
    """A required argument was missing or empty."""

    code: str = "INVALID_ARGUMENT"

    def __init__(self, argument: str, message: str | None = None):
        self.argument = argument
        super().__init__(message or f"Argument '{argument}' must not be empty")


# Catalog-related exceptions


class CatalogError(ReconKernelError):
    """Base exception for catalog lookup errors."""

    code: str = "CATALOG_ERROR"


class UnknownStatusCodeError(CatalogError):
    """A status code does not map to any known Status."""

    code: str = "UNKNOWN_STATUS_CODE"

    def __init__(self, status_code: str | None):
        self.status_code = status_code
        if status_code is None:
            message = "Status code must not be null"
        else:
            message = f"Unknown status code: {status_code}"
        super().__init__(message)


class UnknownEntityKindError(CatalogError):
    """An entity kind name does not map to any known EntityKind."""

    code: str = "UNKNOWN_ENTITY_KIND"

    def __init__(self, kind_name: str | None):
        self.kind_name = kind_name
        super().__init__(f"Unknown entity kind: {kind_name}")


# Record-related exceptions


class RecordError(ReconKernelError):
    """Base exception for record lookup errors."""

    code: str = "RECORD_ERROR"


class RecordNotFoundError(RecordError):
    """The referenced record does not exist in the store."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, entity_kind: str, record_id: str):
        self.entity_kind = entity_kind
        self.record_id = record_id
        super().__init__(f"Record not found: {entity_kind} / {record_id}")


# Transition-related exceptions


class TransitionError(ReconKernelError):
    """Base exception for illegal transition requests."""

    code: str = "TRANSITION_ERROR"


class InvalidTransitionError(TransitionError):
    """
    The requested from -> to move is not present in the registry.

    Includes illegal initial-status attempts on records without a status
    (``from_status`` is None).  Never auto-corrected.
    """

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        entity_kind: str,
        record_id: str,
        from_status: str | None,
        to_status: str,
    ):
        self.entity_kind = entity_kind
        self.record_id = record_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid transition for {entity_kind} record {record_id}: "
            f"{from_status if from_status is not None else 'null'} -> {to_status}"
        )


# Concurrency-related exceptions


class ConcurrencyError(ReconKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class StaleStatusError(ConcurrencyError):
    """
    The record's status differs from the one the transition was based on.

    Raised when a conditional write finds a different persisted status, or
    when the caller-supplied ``expected_status`` does not match what was
    loaded.  ``still_legal`` is the validation verdict re-run against
    ``actual_status``.
    """

    code: str = "STALE_STATUS"

    def __init__(
        self,
        entity_kind: str,
        record_id: str,
        expected_status: str | None,
        actual_status: str | None,
        still_legal: bool,
    ):
        self.entity_kind = entity_kind
        self.record_id = record_id
        self.expected_status = expected_status
        self.actual_status = actual_status
        self.still_legal = still_legal
        super().__init__(
            f"Stale status on {entity_kind} {record_id}: expected "
            f"{expected_status if expected_status is not None else 'null'}, found "
            f"{actual_status if actual_status is not None else 'null'}"
        )


class RecordLockTimeoutError(ConcurrencyError):
    """Another transition on the same record held the lock too long."""

    code: str = "RECORD_LOCK_TIMEOUT"

    def __init__(self, entity_kind: str, record_id: str, timeout_seconds: float):
        self.entity_kind = entity_kind
        self.record_id = record_id
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Could not lock {entity_kind} {record_id} within {timeout_seconds}s"
        )


# Storage-related exceptions


class StorageError(ReconKernelError):
    """
    Base exception for infrastructure failures after successful validation.

    Distinct from TransitionError: the request was legal, the system
    could not execute it.
    """

    code: str = "STORAGE_ERROR"


class RecordReadError(StorageError):
    """The record store failed to load the record."""

    code: str = "RECORD_READ_FAILED"

    def __init__(self, entity_kind: str, record_id: str, reason: str):
        self.entity_kind = entity_kind
        self.record_id = record_id
        self.reason = reason
        super().__init__(
            f"Record read failed for {entity_kind} {record_id}: {reason}"
        )


class RecordWriteError(StorageError):
    """The record store failed to persist the new status."""

    code: str = "RECORD_WRITE_FAILED"

    def __init__(self, entity_kind: str, record_id: str, reason: str):
        self.entity_kind = entity_kind
        self.record_id = record_id
        self.reason = reason
        super().__init__(
            f"Status write failed for {entity_kind} {record_id}: {reason}"
        )


class AuditWriteError(StorageError):
    """
    The audit sink failed after the status write succeeded.

    ``compensated`` is True when the previous status was restored, so no
    partial outcome remains in the store.
    """

    code: str = "AUDIT_WRITE_FAILED"

    def __init__(
        self,
        entity_kind: str,
        record_id: str,
        reason: str,
        compensated: bool,
    ):
        self.entity_kind = entity_kind
        self.record_id = record_id
        self.reason = reason
        self.compensated = compensated
        state = "status restored" if compensated else "status NOT restored"
        super().__init__(
            f"Audit write failed for {entity_kind} {record_id} ({state}): {reason}"
        )


# Immutability-related exceptions


class ImmutabilityError(ReconKernelError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted modification of an immutable record.

    Audit log rows are append-only: no UPDATE and no DELETE.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify immutable {entity_type} {entity_id}: {reason}"
        )


# Configuration-related exceptions


class RegistryConfigurationError(ReconKernelError):
    """
    The transition registry failed validation at construction.

    This is a startup-time configuration defect, never a runtime error.
    """

    code: str = "REGISTRY_CONFIGURATION_ERROR"

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__(
            "Transition registry is invalid: " + "; ".join(self.problems)
        )
