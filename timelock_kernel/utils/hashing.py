"""
Hashing for the durable notification log.

Every hash here must be reproducible from stored columns alone, because
``NotificationSelector.validate_chain()`` recomputes them years later.
"""

import hashlib
import json
from typing import Any

GENESIS = "GENESIS"


def _encode_extra(obj: Any) -> str:
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return bytes(obj).hex()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonicalize_json(data: Any) -> str:
    """Sorted keys, no whitespace, byte strings as lowercase hex."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=_encode_extra)


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def hash_payload(payload: dict) -> str:
    return _sha256(canonicalize_json(payload))


def hash_notification(
    seq: int,
    action: str,
    subject: str,
    payload_hash: str,
    prev_hash: str | None,
) -> str:
    """
    Chain hash of one notification entry.

    Covers the entry's position, both indexed topics, its payload hash and
    the previous entry's hash (``GENESIS`` for the first entry), so editing,
    reordering or dropping any entry changes every later hash.
    """
    return _sha256("|".join((str(seq), action, subject, payload_hash, prev_hash or GENESIS)))


def hash_subject(subject: str) -> str:
    """Fixed-width lookup key for a notification subject of any length."""
    return _sha256(subject)
