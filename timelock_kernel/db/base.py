"""
Module: timelock_kernel.db.base
Responsibility: Declarative base and column types shared by every timelock
    ORM model.
Architecture position: Kernel > DB.  Lowest import target in the kernel's
    persistence layer; models import from here and nothing else.

Invariants enforced:
    - Every row has a uuid4 surrogate key.  Natural keys (namespace + key,
      notification seq, counter name) carry their own unique constraints.
    - ``bytes`` columns are binary, never text, so operation identifiers are
      stored exactly as given.
    - ``int`` columns are BIGINT.  Clock readings and scheduled times can
      reach 2**64 - 1, which a signed BIGINT cannot hold; those columns use
      ``UInt64`` and round-trip exactly on every backend.
"""

from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, LargeBinary, String, Text, TypeDecorator, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

UINT64_MAX = 2**64 - 1


def _check_uint64(value) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"Expected an int, got {type(value).__name__}")
    if not 0 <= value <= UINT64_MAX:
        raise ValueError(f"{value} is outside the unsigned 64-bit range")
    return value


class UInt64(TypeDecorator):
    """
    Unsigned 64-bit integer stored as its decimal text.

    Contract:
        - process_bind_param: int in [0, 2**64 - 1] -> decimal str.
        - process_result_value: decimal str -> int.

    SQLite turns integers above 2**63 - 1 into REAL and PostgreSQL BIGINT
    rejects them, so neither native integer type is usable.  Values are
    compared for equality only, never ordered in SQL.
    """

    impl = String(20)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(_check_uint64(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


class StoreValue(TypeDecorator):
    """
    A durable store value: a principal string or an unsigned 64-bit integer.

    Stored as tagged text (``s:<text>`` or ``i:<decimal>``) so both kinds
    share one column and come back with their Python type intact.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            return f"s:{value}"
        return f"i:{_check_uint64(value)}"

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        tag, _, body = value.partition(":")
        if tag == "s":
            return body
        if tag == "i":
            return int(body)
        raise ValueError(f"Unrecognized store value tag {tag!r}")


class Base(DeclarativeBase):
    """Declarative base; see the module docstring for column conventions."""

    type_annotation_map: ClassVar[dict] = {
        UUID: Uuid(as_uuid=True),
        bytes: LargeBinary(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
