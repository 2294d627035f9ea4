"""
Clock -- injectable time abstraction.

Responsibility:
    Lets the audit recorder stamp entries without calling
    ``datetime.now()`` directly, so tests can pin or step time.

Architecture position:
    Kernel > Domain -- pure, zero I/O (except SystemClock, which is the
    one sanctioned I/O boundary for time).

Audit relevance:
    Every audit entry timestamp is traceable to an injected Clock.
    Timestamps are generated server-side, never supplied by the caller.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Guarantees:
        - ``now()`` returns a timezone-aware UTC ``datetime``.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current UTC time."""
        ...


class SystemClock(Clock):
    """Production clock that returns actual system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    ``now()`` returns the same value on repeated calls until ``advance()``
    or ``set_time()`` is called.  With ``auto_step_seconds`` set, every
    call to ``now()`` moves time forward by that amount first, so
    successive audit entries get strictly increasing timestamps.
    """

    def __init__(
        self,
        fixed_time: datetime | None = None,
        auto_step_seconds: float = 0,
    ):
        self._fixed_time = fixed_time or datetime(
            2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc
        )
        self._advance_seconds = 0.0
        self._auto_step = auto_step_seconds

    def now(self) -> datetime:
        if self._auto_step:
            self._advance_seconds += self._auto_step
        return self._fixed_time + timedelta(seconds=self._advance_seconds)

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._fixed_time = time
        self._advance_seconds = 0.0

    def advance(self, seconds: float = 1) -> None:
        """Advance the clock by the specified seconds."""
        self._advance_seconds += seconds

    def tick(self) -> datetime:
        """Advance by 1 second and return new time."""
        self.advance(1)
        return self._fixed_time + timedelta(seconds=self._advance_seconds)
