"""
SequenceService -- named, gap-free counters for the durable notification log.

Responsibility:
    Hands out 1, 2, 3, ... per counter name.  The next value comes from a
    dedicated counter row read ``FOR UPDATE``, never from ``max(seq) + 1``,
    so two writers cannot be given the same number.

Architecture position:
    Kernel > Services -- infrastructure used by SqlNotificationLog.

Invariants enforced:
    - Values are strictly increasing per name.
    - An allocation belongs to the caller's transaction: a rollback returns it.

Failure modes:
    - Two writers creating the same counter at once: the loser's insert hits
      the unique constraint, its savepoint is rolled back, and it locks the
      winner's row instead.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timelock_kernel.logging_config import get_logger
from timelock_kernel.models.sequence_counter import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    """Counter allocation inside a caller-owned transaction (never commits)."""

    NOTIFICATION = "notification"

    def __init__(self, session: Session):
        self._session = session

    def _lock(self, name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _create(self, name: str) -> SequenceCounter | None:
        """Insert a fresh counter at 0, or return None if another writer won."""
        counter = SequenceCounter(name=name, current_value=0)
        savepoint = self._session.begin_nested()
        try:
            self._session.add(counter)
            self._session.flush()
        except IntegrityError:
            savepoint.rollback()
            logger.debug("sequence_counter_race_retry", extra={"sequence_name": name})
            return None
        savepoint.commit()
        return counter

    def next_value(self, name: str) -> int:
        """Allocate and return the next value (first value is 1)."""
        counter = self._lock(name) or self._create(name) or self._lock(name)
        if counter is None:
            raise RuntimeError(f"Sequence counter {name!r} vanished during allocation")

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, name: str) -> int:
        """Last value handed out, 0 if the counter was never used."""
        value = self._session.execute(
            select(SequenceCounter.current_value).where(SequenceCounter.name == name)
        ).scalar_one_or_none()
        return value or 0
