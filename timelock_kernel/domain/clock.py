"""
Clock -- Deterministic ledger-time abstraction.

Responsibility:
    Provides an injectable clock interface so that the registry never calls
    ``time.time()`` directly.  Time is whole seconds since the epoch, the
    same unit delays and scheduled execution times are expressed in.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O (except SystemClock,
    which is the one sanctioned I/O boundary for time).

Invariants enforced:
    - Readings are non-decreasing across calls on the same instance.  Ties
      (two calls observing the same second) are normal and expected.

Failure modes:
    - SequentialClock raises ValueError on an empty or decreasing sequence.
    - DeterministicClock raises ValueError when moved backwards.

Audit relevance:
    Every scheduled execution time and every ``executed_at`` carried in a
    notification is traceable to an injected Clock instance.
"""

import time
from abc import ABC, abstractmethod
from threading import Lock
from typing import Iterator


class Clock(ABC):
    """
    Abstract clock interface.

    Contract:
        The registry receives a Clock via constructor injection and queries
        it once per call.  It never mutates the clock.

    Guarantees:
        - ``now()`` returns a non-negative ``int`` of seconds.
        - Successive readings never decrease.
    """

    @abstractmethod
    def now(self) -> int:
        """Get the current time in whole seconds."""
        ...


class SystemClock(Clock):
    """
    Production clock backed by wall-clock time.

    Contract:
        The sole sanctioned I/O boundary for time in the kernel.

    Guarantees:
        Wall clocks can step backwards (NTP, manual changes).  Readings are
        clamped to the highest value already returned, so callers always
        observe a monotonically non-decreasing sequence.

    Non-goals:
        Not suitable for deterministic replay or testing.
    """

    def __init__(self) -> None:
        self._last = 0
        self._lock = Lock()

    def now(self) -> int:
        """Get current system time, never earlier than a previous reading."""
        reading = int(time.time())
        with self._lock:
            if reading > self._last:
                self._last = reading
            return self._last


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    Contract:
        Used in tests and replay scenarios for deterministic behavior.

    Guarantees:
        - ``now()`` returns the same value on repeated calls until
          ``advance()`` or ``set_time()`` is called.
        - ``tick()`` advances by exactly 1 second and returns the new time.
    """

    def __init__(self, start: int = 0):
        """
        Initialize at a fixed starting time.

        Args:
            start: Initial reading in seconds.
        """
        if start < 0:
            raise ValueError(f"Clock cannot start before the epoch: {start}")
        self._now = start

    def now(self) -> int:
        """Get the controlled time."""
        return self._now

    def set_time(self, value: int) -> None:
        """Move the clock to a specific time (never backwards)."""
        if value < self._now:
            raise ValueError(
                f"Clock is monotonic: cannot move from {self._now} back to {value}"
            )
        self._now = value

    def advance(self, seconds: int = 1) -> None:
        """Advance the clock by the specified seconds."""
        if seconds < 0:
            raise ValueError(f"Cannot advance by a negative amount: {seconds}")
        self._now += seconds

    def tick(self) -> int:
        """Advance by 1 second and return new time."""
        self.advance(1)
        return self._now


class SequentialClock(Clock):
    """
    Clock that returns sequential times from a predefined list.

    Contract:
        Initialized with a non-empty, non-decreasing list of readings.
        After exhaustion, repeats the last value.

    Raises:
        ValueError: If initialized with an empty or decreasing list.
    """

    def __init__(self, times: list[int]):
        if not times:
            raise ValueError("SequentialClock requires at least one time")
        if any(later < earlier for earlier, later in zip(times, times[1:])):
            raise ValueError("SequentialClock times must be non-decreasing")
        self._times: Iterator[int] = iter(times)
        self._last: int = times[0]

    def now(self) -> int:
        """Get the next time in sequence."""
        self._last = next(self._times, self._last)
        return self._last
