"""
Transition registry (``recon_kernel.domain.registry``).

Responsibility
--------------
The immutable, process-wide table of allowed status transitions: one
adjacency set per (entity kind, current status), plus the set of statuses
a kind may take when a record has no status yet.

Architecture position
---------------------
**Kernel domain layer** -- pure value object.  ZERO I/O.  The registry
contents are not defined here; they are injected at construction (the
deployed table ships as a configuration asset, see ``recon_config``).

Invariants enforced
-------------------
* Totality -- every ``EntityKind`` in the catalog has an entry, even if
  that entry has no edges.
* Initial-status policy -- every kind declares at least one initial
  status.  This is a distinct check from the adjacency table: a kind may
  have several initial statuses.
* Reachability -- every declared "from" status is reachable from one of
  the kind's initial statuses.  Recovery edges back to an earlier status
  (error -> new, manual_review -> new) form cycles; those are intended.
* Read-only after construction -- every view handed out is a
  ``MappingProxyType`` or ``frozenset``.

Failure modes
-------------
* ``RegistryConfigurationError`` from the constructor, listing every
  problem found.  A startup defect, never a runtime error.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from recon_kernel.domain.catalog import EntityKind, Status
from recon_kernel.exceptions import CatalogError, RegistryConfigurationError
from recon_kernel.utils.hashing import hash_payload

_EMPTY: frozenset[Status] = frozenset()
_EMPTY_TABLE: Mapping[Status, frozenset[Status]] = MappingProxyType({})


class TransitionRegistry:
    """
    Immutable table of legal transitions and initial statuses per kind.

    Contract:
        Built once at process start and shared by every caller.  No method
        mutates it, so concurrent reads need no locking.

    Guarantees:
        - ``targets()`` returns exactly the declared edge set (or empty).
        - ``initial_statuses()`` returns exactly the declared initial set.
        - ``checksum`` is stable for identical tables.
    """

    def __init__(
        self,
        transitions: Mapping[EntityKind, Mapping[Status, Iterable[Status]]],
        initial_statuses: Mapping[EntityKind, Iterable[Status]],
    ) -> None:
        table = {
            kind: {
                from_status: frozenset(targets)
                for from_status, targets in edges.items()
            }
            for kind, edges in transitions.items()
        }
        initial = {
            kind: frozenset(statuses)
            for kind, statuses in initial_statuses.items()
        }

        problems = _validate(table, initial)
        if problems:
            raise RegistryConfigurationError(problems)

        self._transitions: Mapping[EntityKind, Mapping[Status, frozenset[Status]]] = (
            MappingProxyType({
                kind: MappingProxyType(dict(edges)) for kind, edges in table.items()
            })
        )
        self._initial: Mapping[EntityKind, frozenset[Status]] = MappingProxyType(initial)
        self._checksum = hash_payload(self._canonical())

    @classmethod
    def build(
        cls,
        transitions: Mapping[str | EntityKind, Mapping[str | Status, Iterable[str | Status]]],
        initial_statuses: Mapping[str | EntityKind, Iterable[str | Status]],
    ) -> TransitionRegistry:
        """
        Build a registry from kind names and status codes.

        Accepts catalog members or their persisted spellings, so a table
        read from a configuration file can be handed over as-is.  Every
        unknown name or code is reported, together with the structural
        problems found by the constructor.

        Raises:
            RegistryConfigurationError: On any unknown name or code, or any
                structural problem.
        """
        problems: list[str] = []

        def kind_of(value: str | EntityKind) -> EntityKind | None:
            if isinstance(value, EntityKind):
                return value
            try:
                return EntityKind.from_name(value)
            except CatalogError:
                problems.append(f"unknown entity kind {value!r}")
                return None

        def status_of(kind: EntityKind, value: str | Status) -> Status | None:
            if isinstance(value, Status):
                return value
            try:
                return Status.from_code(value)
            except CatalogError:
                problems.append(f"{kind}: unknown status code {value!r}")
                return None

        table: dict[EntityKind, dict[Status, set[Status]]] = {}
        for raw_kind, edges in transitions.items():
            kind = kind_of(raw_kind)
            if kind is None:
                continue
            resolved = table.setdefault(kind, {})
            for raw_from, raw_targets in (edges or {}).items():
                from_status = status_of(kind, raw_from)
                targets = {status_of(kind, t) for t in (raw_targets or ())}
                if from_status is not None:
                    resolved.setdefault(from_status, set()).update(
                        t for t in targets if t is not None
                    )

        initial: dict[EntityKind, set[Status]] = {}
        for raw_kind, statuses in initial_statuses.items():
            kind = kind_of(raw_kind)
            if kind is None:
                continue
            resolved_initial = {status_of(kind, s) for s in (statuses or ())}
            initial.setdefault(kind, set()).update(
                s for s in resolved_initial if s is not None
            )

        if problems:
            raise RegistryConfigurationError(problems)
        return cls(table, initial)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def kinds(self) -> frozenset[EntityKind]:
        """Every entity kind with an entry."""
        return frozenset(self._transitions)

    def transitions_for(self, kind: EntityKind) -> Mapping[Status, frozenset[Status]]:
        """The kind's full adjacency table (empty for an unknown kind)."""
        return self._transitions.get(kind, _EMPTY_TABLE)

    def initial_statuses(self, kind: EntityKind) -> frozenset[Status]:
        """Statuses legal for a record of ``kind`` that has no status yet."""
        return self._initial.get(kind, _EMPTY)

    def targets(self, kind: EntityKind, status: Status) -> frozenset[Status]:
        """Legal next statuses from ``status`` (empty if not a from-state)."""
        return self.transitions_for(kind).get(status, _EMPTY)

    def has_from_state(self, kind: EntityKind, status: Status) -> bool:
        return status in self.transitions_for(kind)

    def statuses_for(self, kind: EntityKind) -> frozenset[Status]:
        """The kind's whole status vocabulary: initial, from and to states."""
        edges = self.transitions_for(kind)
        vocabulary = set(self.initial_statuses(kind)) | set(edges)
        for targets in edges.values():
            vocabulary |= targets
        return frozenset(vocabulary)

    def terminal_statuses(self, kind: EntityKind) -> frozenset[Status]:
        """Statuses of ``kind`` with no outgoing edge."""
        return frozenset(
            status for status in self.statuses_for(kind)
            if not self.targets(kind, status)
        )

    def as_mapping(self) -> Mapping[EntityKind, Mapping[Status, frozenset[Status]]]:
        """The whole table as a read-only view."""
        return self._transitions

    @property
    def checksum(self) -> str:
        """SHA-256 of the canonical table, for configuration identity."""
        return self._checksum

    def __repr__(self) -> str:
        return f"<TransitionRegistry kinds={len(self._transitions)} checksum={self._checksum[:12]}>"

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _canonical(self) -> dict:
        return {
            kind.name: {
                "initial": sorted(s.code for s in self._initial[kind]),
                "transitions": {
                    from_status.code: sorted(t.code for t in targets)
                    for from_status, targets in edges.items()
                },
            }
            for kind, edges in self._transitions.items()
        }


def _validate(
    table: dict[EntityKind, dict[Status, frozenset[Status]]],
    initial: dict[EntityKind, frozenset[Status]],
) -> list[str]:
    """Collect every construction problem instead of stopping at the first."""
    problems: list[str] = []

    for kind in EntityKind:
        if kind not in table:
            problems.append(f"{kind}: no transition entry")
        if not initial.get(kind):
            problems.append(f"{kind}: no initial status declared")

    for kind in set(table) | set(initial):
        if not isinstance(kind, EntityKind):
            problems.append(f"{kind!r}: not an EntityKind")
            continue
        edges = table.get(kind, {})
        for from_status, targets in edges.items():
            if not isinstance(from_status, Status):
                problems.append(f"{kind}: from-state {from_status!r} is not a Status")
            for target in targets:
                if not isinstance(target, Status):
                    problems.append(f"{kind}: target {target!r} is not a Status")

        starts = initial.get(kind, frozenset())
        for status in starts:
            if not isinstance(status, Status):
                problems.append(f"{kind}: initial status {status!r} is not a Status")
        if starts:
            reachable = _reachable(edges, starts)
            for from_status in edges:
                if from_status not in reachable:
                    problems.append(
                        f"{kind}: from-state {from_status} is unreachable "
                        f"from initial statuses"
                    )

    return problems


def _reachable(
    edges: Mapping[Status, frozenset[Status]],
    starts: frozenset[Status],
) -> set[Status]:
    seen = set(starts)
    queue = deque(starts)
    while queue:
        current = queue.popleft()
        for target in edges.get(current, ()):
            if target not in seen:
                seen.add(target)
                queue.append(target)
    return seen
