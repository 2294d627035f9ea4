"""
Status and entity-kind catalogs (``recon_kernel.domain.catalog``).

Responsibility
--------------
Closed enumerations of every lifecycle status and every entity kind that
carries a status in the reconciliation pipeline.  This is the single
source of truth for status codes: no string literal for a status value
should appear anywhere else in the codebase.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  Imports only
``recon_kernel.exceptions``.

Invariants enforced
-------------------
* Codes are lowercase and stable; they are what gets persisted.
* Labels are presentation only and never persisted.
* Lookups from codes/names are case-insensitive and never fall back to a
  default member.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum, unique

from recon_kernel.exceptions import UnknownEntityKindError, UnknownStatusCodeError


@unique
class Status(str, Enum):
    """
    Every status value used across the reconciliation pipeline.

    Each member carries:
      * ``code``  -- the lowercase value stored in the record store
      * ``label`` -- the human-readable label for UI dropdowns
    """

    # Universal
    NEW = ("new", "New")
    ERROR = ("error", "Error")

    # Statement-level
    IMPORTING = ("importing", "Importing")
    IMPORTED = ("imported", "Imported")
    CONSOLIDATING = ("consolidating", "Consolidating")
    CONSOLIDATED = ("consolidated", "Consolidated")

    # Transaction-level
    PROCESSING = ("processing", "Processing")
    ENRICHED = ("enriched", "Enriched")
    PAIRED = ("paired", "Paired")
    POSTING_READY = ("posting_ready", "Posting Ready")
    POSTED = ("posted", "Posted")
    MANUAL_REVIEW = ("manual_review", "Manual Review")
    UNMATCHED = ("unmatched", "Unmatched")

    # Pair-level
    AUTO_ACCEPTED = ("auto_accepted", "Auto-Accepted")
    PENDING_REVIEW = ("pending_review", "Pending Review")
    CONFIRMED = ("confirmed", "Confirmed")
    REJECTED = ("rejected", "Rejected")

    # Exception-level
    OPEN = ("open", "Open")
    IN_PROGRESS = ("in_progress", "In Progress")
    RESOLVED = ("resolved", "Resolved")
    DISMISSED = ("dismissed", "Dismissed")

    def __new__(cls, code: str, label: str) -> Status:
        obj = str.__new__(cls, code)
        obj._value_ = code
        obj._label = label
        return obj

    @property
    def code(self) -> str:
        """The lowercase value stored in the record store."""
        return self._value_

    @property
    def label(self) -> str:
        """The human-readable label for presentation layers."""
        return self._label

    def __str__(self) -> str:
        return self._value_

    @classmethod
    def from_code(cls, code: str | None) -> Status:
        """
        Look up a Status by its stored code.  Comparison is case-insensitive.

        Raises:
            UnknownStatusCodeError: If ``code`` is None or matches no member.
        """
        if code is None:
            raise UnknownStatusCodeError(None)
        lowered = str(code).lower()
        for status in cls:
            if status._value_ == lowered:
                return status
        raise UnknownStatusCodeError(code)

    @classmethod
    def choices(cls) -> Iterator[tuple[str, str]]:
        """Yield ``(code, label)`` pairs in declaration order."""
        for status in cls:
            yield status.code, status.label


@unique
class EntityKind(Enum):
    """
    Entity kinds in the pipeline that carry a status lifecycle.

    Each member's value is the bare name of the external collection
    (table) holding its records.
    """

    STATEMENT = "bank_statement"
    BANK_TRX = "bank_total_trx"
    SECU_TRX = "secu_total_trx"
    ENRICHMENT = "trx_enrichment"
    PAIR = "trx_pair"
    EXCEPTION = "exception_queue"

    @property
    def collection(self) -> str:
        """The bare collection/table name used by the record store."""
        return self.value

    def __str__(self) -> str:
        return self.name

    @classmethod
    def from_name(cls, name: str | None) -> EntityKind:
        """
        Look up an EntityKind by member name.  Comparison is case-insensitive.

        Raises:
            UnknownEntityKindError: If ``name`` is None or matches no member.
        """
        if name is None:
            raise UnknownEntityKindError(None)
        member = cls.__members__.get(str(name).upper())
        if member is None:
            raise UnknownEntityKindError(name)
        return member
