"""
NotificationLog -- append-only, best-effort record of state transitions.

Responsibility:
    Receives one structured record per registry transition for off-chain
    observers and indexers.  The registry never reads it back and never
    waits for acknowledgment.

Architecture position:
    Kernel > Domain -- collaborator contract plus the in-memory log.  The
    durable, hash-chained log lives in ``services/notification_log.py``.

Topic layout:
    topics[0]  -- action name: initialized / queued / executed / cancelled
    topics[1]  -- operation identifier as hex (absent for ``initialized``)
    payload    -- non-indexed values read after filtering (timestamps)

    Filtering on the earliest topic positions narrows results without
    scanning every record: ``log.filter("queued")`` for every queue,
    ``log.filter("executed", op_hex)`` for one operation's execution.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable


class NotificationAction(str, Enum):
    """First topic of every registry notification."""

    INITIALIZED = "initialized"
    QUEUED = "queued"
    EXECUTED = "executed"
    CANCELLED = "cancelled"


Topics = tuple[str, ...]


@dataclass(frozen=True)
class Notification:
    """One published record, in publication order."""

    seq: int
    topics: Topics
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def action(self) -> str:
        return self.topics[0]

    def matches(self, *prefix: str) -> bool:
        return self.topics[: len(prefix)] == prefix


class NotificationLog(ABC):
    """
    Collaborator contract for publishing transition records.

    Contract:
        ``publish`` appends a record.  Ordering is preserved per invocation.
        Delivery to any particular observer is not guaranteed.
    """

    @abstractmethod
    def publish(self, topics: Topics, payload: dict[str, Any]) -> None:
        ...


Subscriber = Callable[[Notification], None]


class InMemoryNotificationLog(NotificationLog):
    """
    Process-local notification log.

    Subscribers are called synchronously, in subscription order, after the
    record is appended.  A subscriber exception propagates to the publisher,
    which for the registry means it is logged and dropped.
    """

    def __init__(self) -> None:
        self._records: list[Notification] = []
        self._subscribers: list[Subscriber] = []

    def publish(self, topics: Topics, payload: dict[str, Any]) -> None:
        if not topics:
            raise ValueError("A notification needs at least one topic")
        record = Notification(
            seq=len(self._records) + 1,
            topics=tuple(topics),
            payload=dict(payload),
        )
        self._records.append(record)
        for subscriber in list(self._subscribers):
            subscriber(record)

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    @property
    def records(self) -> tuple[Notification, ...]:
        return tuple(self._records)

    def filter(self, *prefix: str) -> list[Notification]:
        """Records whose leading topics equal ``prefix``."""
        return [r for r in self._records if r.matches(*prefix)]

    def __len__(self) -> int:
        return len(self._records)
