"""
SqlStore -- DurableStore on the ``store_entries`` table.

Responsibility:
    Persists the administrator slot and operation records through a
    caller-owned SQLAlchemy session.

Architecture position:
    Kernel > Storage -- imperative shell.  Flushes, never commits; the
    caller (``session_scope()``, the CLI, a test harness) owns the
    transaction boundary.

Invariants enforced:
    - One row per (namespace, key), backed by a unique constraint.
    - Entries are write-once.  ``set`` on an existing key with a different
      value raises ImmutabilityViolationError via the ORM listener.
    - Values are principal strings or unsigned 64-bit ints and read back
      with the same type and exact value, including above 2**63 - 1.
    - ``delete`` is a single DELETE statement whose row count decides the
      result, so concurrent executors cannot both observe a removal.

Failure modes:
    - StoreWriteConflictError when a concurrent transaction inserted the
      same key first.  The insert runs in a savepoint, so the caller's
      transaction stays usable.
"""

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timelock_kernel.db.base import UINT64_MAX
from timelock_kernel.exceptions import StoreWriteConflictError
from timelock_kernel.logging_config import get_logger
from timelock_kernel.models.store_entry import StoreEntry
from timelock_kernel.storage.base import DurableStore
from timelock_kernel.storage.keys import StorageKey

logger = get_logger("storage.sql")


class SqlStore(DurableStore):
    """Durable store bound to one session."""

    def __init__(self, session: Session):
        self._session = session

    def _find(self, key: StorageKey) -> StoreEntry | None:
        return self._session.execute(
            select(StoreEntry).where(
                StoreEntry.namespace == key.namespace.value,
                StoreEntry.key == key.name,
            )
        ).scalar_one_or_none()

    def has(self, key: StorageKey) -> bool:
        return self._find(key) is not None

    def get(self, key: StorageKey) -> Any | None:
        entry = self._find(key)
        return entry.value if entry is not None else None

    def set(self, key: StorageKey, value: Any) -> None:
        if value is None:
            raise ValueError("DurableStore does not store None")
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise TypeError(
                f"SqlStore stores str or int values, got {type(value).__name__}"
            )
        if isinstance(value, int) and not 0 <= value <= UINT64_MAX:
            raise ValueError(f"{value} is outside the unsigned 64-bit range")

        existing = self._find(key)
        if existing is not None:
            existing.value = value
            self._session.flush()
            return

        savepoint = self._session.begin_nested()
        try:
            self._session.add(
                StoreEntry(namespace=key.namespace.value, key=key.name, value=value)
            )
            self._session.flush()
            savepoint.commit()
        except IntegrityError:
            savepoint.rollback()
            logger.warning(
                "store_write_conflict",
                extra={"namespace": key.namespace.value, "key": key.name.hex()},
            )
            raise StoreWriteConflictError(key.namespace.value, key.name.hex())

        logger.debug(
            "store_entry_written",
            extra={"namespace": key.namespace.value, "key": key.name.hex()},
        )

    def delete(self, key: StorageKey) -> bool:
        result = self._session.execute(
            delete(StoreEntry)
            .where(
                StoreEntry.namespace == key.namespace.value,
                StoreEntry.key == key.name,
            )
            .execution_options(synchronize_session="fetch")
        )
        removed = result.rowcount > 0
        logger.debug(
            "store_entry_deleted",
            extra={
                "namespace": key.namespace.value,
                "key": key.name.hex(),
                "removed": removed,
            },
        )
        return removed
