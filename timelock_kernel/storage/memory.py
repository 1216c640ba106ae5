"""In-process DurableStore backed by a dict."""

from threading import Lock
from typing import Any

from timelock_kernel.storage.base import DurableStore
from timelock_kernel.storage.keys import KeySpace, StorageKey


class InMemoryStore(DurableStore):
    """
    Dict-backed store.

    Individual operations are atomic under an internal lock; call-level
    serialization is the registry's job.
    """

    def __init__(self) -> None:
        self._data: dict[StorageKey, Any] = {}
        self._lock = Lock()

    def has(self, key: StorageKey) -> bool:
        with self._lock:
            return key in self._data

    def get(self, key: StorageKey) -> Any | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: StorageKey, value: Any) -> None:
        if value is None:
            raise ValueError("DurableStore does not store None")
        with self._lock:
            self._data[key] = value

    def delete(self, key: StorageKey) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def keys(self, namespace: KeySpace | None = None) -> list[StorageKey]:
        with self._lock:
            return [
                k for k in self._data
                if namespace is None or k.namespace == namespace
            ]

    def snapshot(self) -> dict[StorageKey, Any]:
        """Copy of the current contents, for before/after comparisons."""
        with self._lock:
            return dict(self._data)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
