"""
SqlNotificationLog -- durable, tamper-evident notification log.

Responsibility:
    Appends one ``NotificationEntry`` per published registry transition,
    with a monotonically increasing sequence and a hash chain linking every
    entry to its predecessor.

Architecture position:
    Kernel > Services -- imperative shell.  Implements the domain
    ``NotificationLog`` contract on top of a caller-owned session.

Invariants enforced:
    - Sequence monotonicity via SequenceService (never max+1).
    - Chain integrity: ``hash = H(seq | action | subject | payload_hash |
      prev_hash)``.  Validated by NotificationSelector.validate_chain().
    - Append-only: entries are protected by ORM listeners.

Failure modes:
    - Any flush error inside ``publish`` rolls back only the append's
      savepoint and propagates.  The caller's transaction, and therefore
      the registry mutation that preceded the publish, stays intact.

Audit relevance:
    The registry deliberately forgets executed operations.  This log is
    where "executed" remains distinguishable from "never queued".
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from timelock_kernel.domain.clock import Clock, SystemClock
from timelock_kernel.domain.notification import NotificationLog, Topics
from timelock_kernel.logging_config import get_logger
from timelock_kernel.models.notification import NotificationEntry
from timelock_kernel.services.sequence_service import SequenceService
from timelock_kernel.utils.hashing import hash_notification, hash_payload, hash_subject

logger = get_logger("services.notification_log")


class SqlNotificationLog(NotificationLog):
    """
    Hash-chained notification log bound to one session.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
        - Does NOT deliver to observers; readers poll via
          NotificationSelector.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._sequence_service = SequenceService(session)

    def _get_last_hash(self) -> str | None:
        return self._session.execute(
            select(NotificationEntry.hash)
            .order_by(NotificationEntry.seq.desc())
            .limit(1)
        ).scalar_one_or_none()

    def publish(self, topics: Topics, payload: dict[str, Any]) -> None:
        if not topics:
            raise ValueError("A notification needs at least one topic")

        action = topics[0]
        subject = topics[1] if len(topics) > 1 else ""

        savepoint = self._session.begin_nested()
        try:
            seq = self._sequence_service.next_value(SequenceService.NOTIFICATION)
            prev_hash = self._get_last_hash()
            payload_hash = hash_payload(payload)
            entry = NotificationEntry(
                seq=seq,
                action=action,
                subject=subject,
                subject_digest=hash_subject(subject),
                topics=list(topics),
                payload=dict(payload),
                published_at=self._clock.now(),
                payload_hash=payload_hash,
                prev_hash=prev_hash,
                hash=hash_notification(
                    seq=seq,
                    action=action,
                    subject=subject,
                    payload_hash=payload_hash,
                    prev_hash=prev_hash,
                ),
            )
            self._session.add(entry)
            self._session.flush()
            savepoint.commit()
        except Exception:
            savepoint.rollback()
            raise

        logger.info(
            "notification_appended",
            extra={"seq": seq, "action": action, "subject": subject},
        )
