"""Utility modules for the timelock kernel."""

from timelock_kernel.utils.hashing import (
    canonicalize_json,
    hash_notification,
    hash_payload,
    hash_subject,
)

__all__ = [
    "canonicalize_json",
    "hash_notification",
    "hash_payload",
    "hash_subject",
]
