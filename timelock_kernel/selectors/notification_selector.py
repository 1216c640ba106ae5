"""
NotificationSelector -- read side of the durable notification log.

Responsibility:
    Answers audit questions the registry itself cannot: was this identifier
    ever executed, when, and has anyone tampered with the record of it.

Architecture position:
    Kernel > Selectors -- read-only, returns frozen DTOs.

Failure modes:
    - NotificationChainBrokenError from ``validate_chain()`` when a stored
      hash or link does not match its recomputation.
"""

from dataclasses import dataclass
from typing import Any

from sqlalchemy import select

from timelock_kernel.domain.notification import NotificationAction
from timelock_kernel.domain.operation import OperationIdLike, normalize_operation_id
from timelock_kernel.exceptions import NotificationChainBrokenError
from timelock_kernel.logging_config import get_logger
from timelock_kernel.models.notification import NotificationEntry
from timelock_kernel.selectors.base import BaseSelector
from timelock_kernel.utils.hashing import (
    GENESIS,
    hash_notification,
    hash_payload,
    hash_subject,
)

logger = get_logger("selectors.notification")


@dataclass(frozen=True)
class NotificationRecord:
    """A single durable notification."""

    seq: int
    action: str
    topics: tuple[str, ...]
    payload: dict[str, Any]
    published_at: int
    hash: str

    @classmethod
    def from_entry(cls, entry: NotificationEntry) -> "NotificationRecord":
        return cls(
            seq=entry.seq,
            action=entry.action,
            topics=tuple(entry.topics),
            payload=dict(entry.payload),
            published_at=entry.published_at,
            hash=entry.hash,
        )


class NotificationSelector(BaseSelector):
    """Queries over ``notification_entries``."""

    @staticmethod
    def _about(operation_id: OperationIdLike) -> tuple:
        subject = normalize_operation_id(operation_id).hex()
        return (
            NotificationEntry.subject_digest == hash_subject(subject),
            NotificationEntry.subject == subject,
        )

    def history(self, operation_id: OperationIdLike) -> tuple[NotificationRecord, ...]:
        """Every notification about one identifier, oldest first."""
        rows = self.session.execute(
            select(NotificationEntry)
            .where(*self._about(operation_id))
            .order_by(NotificationEntry.seq)
        ).scalars()
        return tuple(NotificationRecord.from_entry(row) for row in rows)

    def by_action(
        self, action: NotificationAction | str
    ) -> tuple[NotificationRecord, ...]:
        value = action.value if isinstance(action, NotificationAction) else action
        rows = self.session.execute(
            select(NotificationEntry)
            .where(NotificationEntry.action == value)
            .order_by(NotificationEntry.seq)
        ).scalars()
        return tuple(NotificationRecord.from_entry(row) for row in rows)

    def last_action(self, operation_id: OperationIdLike) -> str | None:
        """Most recent transition for an identifier, or None if never seen.

        ``"executed"`` here is the Done state the registry does not keep.
        """
        return self.session.execute(
            select(NotificationEntry.action)
            .where(*self._about(operation_id))
            .order_by(NotificationEntry.seq.desc())
            .limit(1)
        ).scalar_one_or_none()

    def validate_chain(self) -> int:
        """
        Recompute every hash and link in sequence order.

        Returns:
            Number of entries verified.

        Raises:
            NotificationChainBrokenError: At the first mismatching entry.
        """
        prev_hash: str | None = None
        count = 0
        rows = self.session.execute(
            select(NotificationEntry).order_by(NotificationEntry.seq)
        ).scalars()
        for entry in rows:
            if entry.prev_hash != prev_hash:
                raise NotificationChainBrokenError(
                    entry.seq, prev_hash or GENESIS, entry.prev_hash or GENESIS
                )
            payload_hash = hash_payload(entry.payload)
            expected = hash_notification(
                seq=entry.seq,
                action=entry.action,
                subject=entry.subject,
                payload_hash=payload_hash,
                prev_hash=entry.prev_hash,
            )
            if payload_hash != entry.payload_hash or expected != entry.hash:
                logger.error(
                    "notification_chain_broken",
                    extra={"seq": entry.seq},
                )
                raise NotificationChainBrokenError(entry.seq, expected, entry.hash)
            prev_hash = entry.hash
            count += 1

        logger.info("notification_chain_verified", extra={"entries": count})
        return count
