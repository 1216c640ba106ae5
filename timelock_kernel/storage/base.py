"""
DurableStore -- key/value persistence consumed by the registry.

Contract:
    - ``has(key)`` / ``get(key)`` / ``set(key, value)`` / ``delete(key)``.
    - Read-your-writes within one invocation.
    - Values are principal strings or unsigned 64-bit ints, returned with
      the type and exact value written.  None is never stored, so
      ``get()`` returning None always means "absent".
    - ``delete`` reports whether a value was actually removed.  Two
      callers racing to delete the same key see exactly one True.
"""

from abc import ABC, abstractmethod
from typing import Any

from timelock_kernel.storage.keys import StorageKey


class DurableStore(ABC):
    """Collaborator contract for durable state."""

    @abstractmethod
    def has(self, key: StorageKey) -> bool:
        ...

    @abstractmethod
    def get(self, key: StorageKey) -> Any | None:
        ...

    @abstractmethod
    def set(self, key: StorageKey, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, key: StorageKey) -> bool:
        ...
