"""
Pure domain layer.

This module contains value types and collaborator contracts with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O (except SystemClock, the sanctioned time boundary)
"""

from timelock_kernel.domain.authority import (
    AllowAllAuthority,
    AuthorityCheck,
    InvocationAuthority,
    Principal,
)
from timelock_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SequentialClock,
    SystemClock,
)
from timelock_kernel.domain.notification import (
    InMemoryNotificationLog,
    Notification,
    NotificationAction,
    NotificationLog,
)
from timelock_kernel.domain.operation import (
    MAX_TIMESTAMP,
    NO_EXECUTE_AT,
    OperationState,
    ScheduledOperation,
    derive_state,
    normalize_operation_id,
    operation_id_hex,
)
from timelock_kernel.domain.policy import DelayPolicy

__all__ = [
    # Authority
    "AuthorityCheck",
    "AllowAllAuthority",
    "InvocationAuthority",
    "Principal",
    # Clock
    "Clock",
    "DeterministicClock",
    "SequentialClock",
    "SystemClock",
    # Notifications
    "InMemoryNotificationLog",
    "Notification",
    "NotificationAction",
    "NotificationLog",
    # Operations
    "MAX_TIMESTAMP",
    "NO_EXECUTE_AT",
    "OperationState",
    "ScheduledOperation",
    "derive_state",
    "normalize_operation_id",
    "operation_id_hex",
    # Policy
    "DelayPolicy",
]
