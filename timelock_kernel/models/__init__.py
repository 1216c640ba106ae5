"""ORM models for the timelock kernel."""

from timelock_kernel.models.notification import NotificationEntry
from timelock_kernel.models.sequence_counter import SequenceCounter
from timelock_kernel.models.store_entry import StoreEntry

__all__ = [
    "NotificationEntry",
    "SequenceCounter",
    "StoreEntry",
]
