"""Services for the timelock kernel (write side)."""

from timelock_kernel.services.notification_log import SqlNotificationLog
from timelock_kernel.services.operation_registry import OperationRegistry
from timelock_kernel.services.sequence_service import SequenceService

__all__ = [
    "OperationRegistry",
    "SequenceService",
    "SqlNotificationLog",
]
