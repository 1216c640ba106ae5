"""Selectors for the timelock kernel (read side)."""

from timelock_kernel.selectors.base import BaseSelector
from timelock_kernel.selectors.notification_selector import (
    NotificationRecord,
    NotificationSelector,
)

__all__ = [
    "BaseSelector",
    "NotificationRecord",
    "NotificationSelector",
]
