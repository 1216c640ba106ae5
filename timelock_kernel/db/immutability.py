"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Two kinds of rows in the timelock database must never be rewritten:

  - Store entries.  A scheduled execution time, once written, is never
    mutated; cancellation and execution REMOVE the record.  The
    administrator slot, once populated, is singular and permanent.
  - Notification entries.  The durable log is append-only and hash-chained;
    rewriting or deleting a row would break every later link.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database.  We register listeners that intercept them:

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

Removing a store entry is legitimate and goes through a single DELETE
statement in SqlStore, which mapper events do not see.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity              | When Immutable                | Why
--------------------|-------------------------------|-------------------------------
StoreEntry          | ALWAYS (write-once)           | Schedules and admin are fixed
NotificationEntry   | ALWAYS (append-only)          | Hash chain would break

===============================================================================
USAGE
===============================================================================

Registered automatically by ``init_engine_from_url()``.  Registration is
idempotent.

To temporarily disable (TESTS ONLY - never in production):

    unregister_immutability_listeners()
    # ... do forbidden operation ...
    register_immutability_listeners()

===============================================================================
"""

from sqlalchemy import event, inspect

from timelock_kernel.exceptions import ImmutabilityViolationError
from timelock_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _blocked(entity_type: str, entity_id: str, operation: str, reason: str):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
    )


def _check_store_entry_immutability(mapper, connection, target):
    """
    Prevent rewriting a persisted store entry.

    before_update fires for every dirty instance, including ones whose
    attributes were set back to their loaded value, so only real changes
    are rejected.
    """
    state = inspect(target)
    if not any(
        state.attrs[name].history.has_changes()
        for name in ("namespace", "key", "value")
    ):
        return

    raise _blocked(
        "StoreEntry",
        f"{target.namespace}:{bytes(target.key).hex()}",
        "UPDATE",
        "Store entries are write-once; remove and re-create instead",
    )


def _check_notification_entry_immutability(mapper, connection, target):
    """Prevent any updates to NotificationEntry records."""
    raise _blocked(
        "NotificationEntry",
        str(target.seq),
        "UPDATE",
        "Notification entries are append-only and cannot be modified",
    )


def _check_notification_entry_delete(mapper, connection, target):
    """Prevent deletion of NotificationEntry records."""
    raise _blocked(
        "NotificationEntry",
        str(target.seq),
        "DELETE",
        "Notification entries are append-only and cannot be deleted",
    )


def _listeners():
    from timelock_kernel.models.notification import NotificationEntry
    from timelock_kernel.models.store_entry import StoreEntry

    return (
        (StoreEntry, "before_update", _check_store_entry_immutability),
        (NotificationEntry, "before_update", _check_notification_entry_immutability),
        (NotificationEntry, "before_delete", _check_notification_entry_delete),
    )


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners.

    Safe to call more than once; already-registered listeners are skipped.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use in tests that deliberately simulate tampering.
    """
    for target, event_name, listener_fn in _listeners():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
