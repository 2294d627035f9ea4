"""
Transition validation (``recon_kernel.domain.validator``).

Pure predicates over a ``TransitionRegistry``.  No I/O, no clock, no
exceptions: every question has a boolean or set answer, so the validator
can be called concurrently from any number of callers.
"""

from __future__ import annotations

from recon_kernel.domain.catalog import EntityKind, Status
from recon_kernel.domain.registry import TransitionRegistry


class TransitionValidator:
    """
    Answers "is X -> Y legal for kind K" and "what may follow X for K".

    Contract:
        Total and side-effect free.  Invalid input (None, unknown kind,
        non-catalog values) yields ``False`` / an empty set, never an error.
    """

    def __init__(self, registry: TransitionRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> TransitionRegistry:
        return self._registry

    def is_legal(
        self,
        kind: EntityKind | None,
        current: Status | None,
        target: Status | None,
    ) -> bool:
        """
        True iff ``current -> target`` is an edge of ``kind``'s graph.

        When ``current`` is None the record has no status yet, and only the
        kind's declared initial statuses are legal targets.
        """
        if not isinstance(kind, EntityKind) or not isinstance(target, Status):
            return False
        if kind not in self._registry.kinds():
            return False

        if current is None:
            return target in self._registry.initial_statuses(kind)

        if not isinstance(current, Status):
            return False
        return target in self._registry.targets(kind, current)

    def legal_targets(
        self,
        kind: EntityKind | None,
        current: Status | None,
    ) -> frozenset[Status]:
        """
        Legal next statuses from ``current`` for ``kind``.

        Empty for an unknown kind, a status that is not a from-state of the
        kind, or a terminal status.
        """
        if not isinstance(kind, EntityKind) or not isinstance(current, Status):
            return frozenset()
        return self._registry.targets(kind, current)
