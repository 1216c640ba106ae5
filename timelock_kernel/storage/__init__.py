"""Durable store contract and implementations."""

from timelock_kernel.storage.base import DurableStore
from timelock_kernel.storage.keys import ADMIN_KEY, KeySpace, StorageKey, operation_key
from timelock_kernel.storage.memory import InMemoryStore
from timelock_kernel.storage.sql import SqlStore

__all__ = [
    "ADMIN_KEY",
    "DurableStore",
    "InMemoryStore",
    "KeySpace",
    "SqlStore",
    "StorageKey",
    "operation_key",
]
