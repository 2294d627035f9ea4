"""
recon_kernel.services.status_manager -- the status transition orchestrator.

Responsibility:
    The only entry point pipeline stages and operator tooling use to change
    a record's status.  Loads the record, validates the requested move
    against the registry, writes the new status, and appends one audit
    entry, as one logical unit.

Architecture position:
    Kernel > Services.  May import from domain/, stores/, services/.

    caller -> StatusManager.transition()
           -> RecordStore.load -> TransitionValidator
           -> RecordStore.save (conditional) -> AuditRecorder -> AuditSink

Invariants enforced:
    - Validation before write: a rejected request never reaches the store.
    - Write before audit: if the status write fails, no audit entry exists.
    - No partial outcome: if the audit append fails after the status write,
      the previous status is restored (compare-and-set) before the error
      is raised.  With the SQL adapters both writes also share the caller's
      transaction.
    - Linearizable per record: a per-record lock is held for the whole
      read-validate-write-audit sequence, and the write is conditioned on
      the status observed at load.
    - No internal retry for any error class.

Failure modes:
    - InvalidArgumentError   -- missing kind, target, record id or actor,
      or an expected_status that is not a Status.
    - RecordNotFoundError    -- no such record.
    - UnknownStatusCodeError -- stored status is not in the catalog.
    - InvalidTransitionError -- move not in the registry.
    - StaleStatusError       -- status changed under the caller.
    - RecordLockTimeoutError -- record lock not acquired in time.
    - RecordReadError / RecordWriteError / AuditWriteError --
      infrastructure failures.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from recon_kernel.domain.audit import AUDIT_COLLECTION, AuditEntry
from recon_kernel.domain.catalog import EntityKind, Status
from recon_kernel.domain.clock import Clock
from recon_kernel.domain.registry import TransitionRegistry
from recon_kernel.domain.storage import AuditSink, Record, RecordStore
from recon_kernel.domain.validator import TransitionValidator
from recon_kernel.exceptions import (
    AuditWriteError,
    InvalidArgumentError,
    InvalidTransitionError,
    ReconKernelError,
    RecordLockTimeoutError,
    RecordNotFoundError,
    RecordReadError,
    RecordWriteError,
    StaleStatusError,
    StorageError,
    UnknownStatusCodeError,
)
from recon_kernel.logging_config import LogContext, get_logger
from recon_kernel.services.audit_recorder import AuditRecorder
from recon_kernel.services.record_locks import PROCESS_RECORD_LOCKS, RecordLocks
from recon_kernel.stores.sql import SqlAuditSink, SqlRecordStore

logger = get_logger("services.status_manager")


class _Unchecked:
    def __repr__(self) -> str:
        return "UNCHECKED"


# Default for ``expected_status``: do not compare against a caller view.
UNCHECKED: Any = _Unchecked()


class TransitionStatus(str, Enum):
    """Outcome class of a transition attempt."""

    APPLIED = "applied"
    INVALID_ARGUMENT = "invalid_argument"
    RECORD_NOT_FOUND = "record_not_found"
    UNKNOWN_STATUS = "unknown_status"
    INVALID_TRANSITION = "invalid_transition"
    STALE_STATUS = "stale_status"
    LOCK_TIMEOUT = "lock_timeout"
    STORAGE_FAILED = "storage_failed"


@dataclass(frozen=True)
class TransitionResult:
    """A transition that was applied and audited."""

    entity_kind: EntityKind
    record_id: str
    previous_status: Status | None
    new_status: Status
    audit_entry: AuditEntry


@dataclass(frozen=True)
class TransitionOutcome:
    """Result-style report of ``StatusManager.attempt()``."""

    status: TransitionStatus
    result: TransitionResult | None = None
    error: ReconKernelError | None = None

    @property
    def is_success(self) -> bool:
        return self.status == TransitionStatus.APPLIED

    @property
    def previous_status(self) -> Status | None:
        return self.result.previous_status if self.result else None

    @property
    def new_status(self) -> Status | None:
        return self.result.new_status if self.result else None


# Most specific first: StaleStatusError and RecordLockTimeoutError are
# both ConcurrencyErrors; every record or audit I/O failure is a StorageError.
_OUTCOME_BY_ERROR: tuple[tuple[type[ReconKernelError], TransitionStatus], ...] = (
    (InvalidArgumentError, TransitionStatus.INVALID_ARGUMENT),
    (RecordNotFoundError, TransitionStatus.RECORD_NOT_FOUND),
    (UnknownStatusCodeError, TransitionStatus.UNKNOWN_STATUS),
    (InvalidTransitionError, TransitionStatus.INVALID_TRANSITION),
    (StaleStatusError, TransitionStatus.STALE_STATUS),
    (RecordLockTimeoutError, TransitionStatus.LOCK_TIMEOUT),
    (StorageError, TransitionStatus.STORAGE_FAILED),
)


class StatusManager:
    """
    Centralised status lifecycle management for every pipeline entity.

    Contract:
        Every status change goes through ``transition()`` (or its
        result-style twin ``attempt()``).  Writing a status directly to the
        record store bypasses validation and audit and is forbidden.

    Guarantees:
        - A successful call performs exactly one status write and exactly
          one audit append.
        - A rejected call performs neither.
    """

    def __init__(
        self,
        registry: TransitionRegistry,
        record_store: RecordStore,
        audit_sink: AuditSink,
        *,
        clock: Clock | None = None,
        locks: RecordLocks | None = None,
        lock_timeout_seconds: float | None = 30.0,
        audit_collection: str = AUDIT_COLLECTION,
        id_field: str = "id",
        status_field: str = "status",
    ) -> None:
        self._validator = TransitionValidator(registry)
        self._store = record_store
        self._recorder = AuditRecorder(audit_sink, clock, audit_collection)
        self._locks = locks or PROCESS_RECORD_LOCKS
        self._lock_timeout = lock_timeout_seconds
        self._id_field = id_field
        self._status_field = status_field

    @classmethod
    def for_session(
        cls,
        session: Session,
        registry: TransitionRegistry,
        *,
        lock_on_load: bool = False,
        id_field: str = "id",
        status_field: str = "status",
        **kwargs: Any,
    ) -> StatusManager:
        """
        Wire a manager to one SQLAlchemy session.

        Store and sink share the session, so the caller's commit or
        rollback covers the status write and its audit entry together.
        """
        return cls(
            registry,
            SqlRecordStore(
                session,
                id_field=id_field,
                status_field=status_field,
                lock_on_load=lock_on_load,
            ),
            SqlAuditSink(session),
            id_field=id_field,
            status_field=status_field,
            **kwargs,
        )

    @property
    def validator(self) -> TransitionValidator:
        return self._validator

    # ------------------------------------------------------------------
    # Pure validation
    # ------------------------------------------------------------------

    def can_transition(
        self,
        kind: EntityKind | None,
        current_status: Status | None,
        target_status: Status | None,
    ) -> bool:
        """Pure validation, no store access.  Never raises."""
        return self._validator.is_legal(kind, current_status, target_status)

    def valid_transitions(
        self,
        kind: EntityKind | None,
        current_status: Status | None,
    ) -> frozenset[Status]:
        """Legal targets from ``current_status``; empty if terminal or unknown."""
        return self._validator.legal_targets(kind, current_status)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def transition(
        self,
        kind: EntityKind,
        record_id: str,
        target_status: Status,
        actor: str,
        reason: str,
        *,
        expected_status: Status | None = UNCHECKED,
    ) -> TransitionResult:
        """
        Transition a record's status, write it, and audit it.

        Args:
            kind: Entity kind of the record.
            record_id: Primary key of the record in the kind's collection.
            target_status: The desired new status.
            actor: Component name (e.g. "statement-importer") or OPERATOR.
            reason: Human-readable explanation.
            expected_status: Optional precondition.  When given, the call
                fails with StaleStatusError unless the loaded status equals
                it (None meaning "no status yet").

        Returns:
            TransitionResult with the previous and new status.
        """
        if not isinstance(kind, EntityKind):
            raise InvalidArgumentError("kind", "An entity kind is required")
        if not isinstance(target_status, Status):
            raise InvalidArgumentError("target_status", "A target status is required")
        if record_id is None or str(record_id) == "":
            raise InvalidArgumentError("record_id")
        if not actor:
            raise InvalidArgumentError("actor")
        if not (
            expected_status is UNCHECKED
            or expected_status is None
            or isinstance(expected_status, Status)
        ):
            raise InvalidArgumentError(
                "expected_status", "expected_status must be a Status or None",
            )

        record_id = str(record_id)
        with LogContext.bind(entity_kind=str(kind), record_id=record_id, actor=actor):
            with self._locks.hold(
                kind.collection,
                record_id,
                timeout=self._lock_timeout,
                entity_kind=str(kind),
            ):
                return self._transition_locked(
                    kind, record_id, target_status, actor, reason, expected_status,
                )

    def attempt(
        self,
        kind: EntityKind,
        record_id: str,
        target_status: Status,
        actor: str,
        reason: str,
        *,
        expected_status: Status | None = UNCHECKED,
    ) -> TransitionOutcome:
        """
        Result-style ``transition()``: kernel errors come back as values.

        Store and sink failures arrive here already wrapped as
        StorageErrors.  Exceptions that are not ReconKernelErrors
        (programming errors in the kernel itself) still propagate.
        """
        try:
            result = self.transition(
                kind, record_id, target_status, actor, reason,
                expected_status=expected_status,
            )
        except ReconKernelError as exc:
            for error_type, status in _OUTCOME_BY_ERROR:
                if isinstance(exc, error_type):
                    return TransitionOutcome(status=status, error=exc)
            raise
        return TransitionOutcome(status=TransitionStatus.APPLIED, result=result)

    # ------------------------------------------------------------------
    # Internals (caller holds the record lock)
    # ------------------------------------------------------------------

    def _transition_locked(
        self,
        kind: EntityKind,
        record_id: str,
        target: Status,
        actor: str,
        reason: str,
        expected_status: Status | None,
    ) -> TransitionResult:
        collection = kind.collection

        # 1. Load current record
        record = self._load(kind, record_id)
        if record is None:
            raise RecordNotFoundError(str(kind), record_id)

        # 2. Read current status (absent/empty means "no status yet")
        observed_code = self._stored_code(record)
        current = Status.from_code(observed_code) if observed_code is not None else None

        if expected_status is not UNCHECKED and current != expected_status:
            raise self._stale(
                kind, record_id, target,
                expected=expected_status.code if expected_status is not None else None,
                actual=current,
            )

        # 3. Validate
        if not self._validator.is_legal(kind, current, target):
            logger.warning(
                "status_transition_rejected",
                extra={
                    "from_status": current.code if current else None,
                    "to_status": target.code,
                },
            )
            raise InvalidTransitionError(
                str(kind),
                record_id,
                current.code if current else None,
                target.code,
            )

        # 4. Conditional status write
        updated: Record = dict(record)
        updated[self._status_field] = target.code
        try:
            applied = self._store.save(collection, updated, expected_status=observed_code)
        except ReconKernelError:
            raise
        except Exception as exc:
            raise RecordWriteError(str(kind), record_id, str(exc)) from exc

        if not applied:
            reloaded = self._load(kind, record_id)
            if reloaded is None:
                raise RecordNotFoundError(str(kind), record_id)
            actual_code = self._stored_code(reloaded)
            actual = Status.from_code(actual_code) if actual_code is not None else None
            raise self._stale(
                kind, record_id, target,
                expected=current.code if current else None,
                actual=actual,
            )

        # 5. Audit
        try:
            entry = self._recorder.record(
                kind=kind,
                record_id=record_id,
                from_status=current,
                to_status=target,
                actor=actor,
                reason=reason,
            )
        except Exception as exc:
            compensated = self._restore(collection, record, target)
            raise AuditWriteError(str(kind), record_id, str(exc), compensated) from exc

        # 6. Log
        logger.info(
            "status_transition_applied",
            extra={
                "from_status": entry.from_status,
                "to_status": entry.to_status,
                "audit_entry_id": str(entry.entry_id),
            },
        )

        return TransitionResult(
            entity_kind=kind,
            record_id=record_id,
            previous_status=current,
            new_status=target,
            audit_entry=entry,
        )

    def _load(self, kind: EntityKind, record_id: str) -> Record | None:
        try:
            return self._store.load(kind.collection, record_id)
        except ReconKernelError:
            raise
        except Exception as exc:
            raise RecordReadError(str(kind), record_id, str(exc)) from exc

    def _stored_code(self, record: Record) -> str | None:
        raw = record.get(self._status_field)
        if raw is None or str(raw) == "":
            return None
        return str(raw)

    def _stale(
        self,
        kind: EntityKind,
        record_id: str,
        target: Status,
        *,
        expected: str | None,
        actual: Status | None,
    ) -> StaleStatusError:
        still_legal = self._validator.is_legal(kind, actual, target)
        logger.warning(
            "status_transition_conflict",
            extra={
                "expected_status": expected,
                "actual_status": actual.code if actual else None,
                "to_status": target.code,
                "still_legal": still_legal,
            },
        )
        return StaleStatusError(
            str(kind),
            record_id,
            expected,
            actual.code if actual else None,
            still_legal,
        )

    def _restore(self, collection: str, original: Record, written: Status) -> bool:
        """Put the pre-transition record back, if nobody changed it since."""
        try:
            restored = self._store.save(
                collection, original, expected_status=written.code,
            )
        except Exception:
            logger.critical("status_transition_compensation_failed", exc_info=True)
            return False

        if restored:
            logger.error(
                "status_transition_compensated",
                extra={"to_status": written.code},
            )
        else:
            logger.critical(
                "status_transition_compensation_failed",
                extra={"to_status": written.code},
            )
        return restored
