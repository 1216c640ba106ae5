"""
Storage keys.

Keys are namespaced so operation records can never collide with the
administrator slot, whatever bytes a caller picks as an identifier.
"""

from dataclasses import dataclass
from enum import Enum


class KeySpace(str, Enum):
    """Disjoint key namespaces."""

    INSTANCE = "instance"
    OPERATION = "operation"


@dataclass(frozen=True)
class StorageKey:
    namespace: KeySpace
    name: bytes

    def __str__(self) -> str:
        return f"{self.namespace.value}:{self.name.hex()}"


ADMIN_KEY = StorageKey(KeySpace.INSTANCE, b"admin")


def operation_key(operation_id: bytes) -> StorageKey:
    """Key of the live record for ``operation_id``."""
    return StorageKey(KeySpace.OPERATION, operation_id)
