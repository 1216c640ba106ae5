"""
Operation identifiers, lifecycle states and scheduled records.

Responsibility:
    Pure value types for the registry: normalizing caller-supplied
    identifiers into opaque bytes, the derived lifecycle state, and the
    snapshot returned by ``queue()``.

Architecture position:
    Kernel > Domain -- pure, no I/O, no clock access.  State is always
    derived from a scheduled time and a reading supplied by the caller.

Invariants enforced:
    - Identifiers are opaque byte sequences of any length; the kernel never
      interprets their content.
    - A record is Ready exactly when ``now >= execute_at`` (boundary
      inclusive), Pending otherwise.
"""

from dataclasses import dataclass
from enum import Enum

from timelock_kernel.exceptions import InvalidOperationIdError

# Largest representable scheduled time: an unsigned 64-bit second counter.
MAX_TIMESTAMP = 2**64 - 1

# Returned by get_execute_at() for identifiers with no live record.
NO_EXECUTE_AT = 0

OperationIdLike = bytes | bytearray | memoryview | str


class OperationState(str, Enum):
    """Observable lifecycle state of an operation identifier.

    There is no Done member: executing a record removes it, so an executed
    identifier reads as UNKNOWN, exactly like one never queued.
    """

    UNKNOWN = "unknown"
    PENDING = "pending"
    READY = "ready"


def normalize_operation_id(operation_id: OperationIdLike) -> bytes:
    """Coerce a caller-supplied identifier to immutable bytes.

    ``str`` identifiers are UTF-8 encoded, so ``"op1"`` and ``b"op1"`` name
    the same operation.

    Raises:
        InvalidOperationIdError: For any other type.
    """
    if isinstance(operation_id, bytes):
        return operation_id
    if isinstance(operation_id, (bytearray, memoryview)):
        return bytes(operation_id)
    if isinstance(operation_id, str):
        return operation_id.encode("utf-8")
    raise InvalidOperationIdError(type(operation_id).__name__)


def operation_id_hex(operation_id: bytes) -> str:
    """Render an identifier for logs, errors and notification topics."""
    return operation_id.hex()


def derive_state(execute_at: int | None, now: int) -> OperationState:
    """Derive the lifecycle state from a stored scheduled time."""
    if execute_at is None:
        return OperationState.UNKNOWN
    if now < execute_at:
        return OperationState.PENDING
    return OperationState.READY


@dataclass(frozen=True)
class ScheduledOperation:
    """Snapshot of a live record as written by ``queue()``."""

    operation_id: bytes
    execute_at: int
    queued_at: int

    @property
    def delay(self) -> int:
        return self.execute_at - self.queued_at

    @property
    def operation_id_hex(self) -> str:
        return operation_id_hex(self.operation_id)

    def state_at(self, now: int) -> OperationState:
        return derive_state(self.execute_at, now)
