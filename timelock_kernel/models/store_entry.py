"""
Module: timelock_kernel.models.store_entry
Responsibility: ORM persistence for the durable key-value store.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (namespace, key) is unique: at most one live record per operation
      identifier, and exactly one administrator slot.
    - Entries are write-once (ORM listener in db/immutability.py).  Removal
      is the only transition a live record can take.

Failure modes:
    - IntegrityError on a concurrent insert of the same (namespace, key);
      SqlStore translates it to StoreWriteConflictError.
    - ImmutabilityViolationError on any UPDATE attempt.
    - TypeError/ValueError at flush for a value that is neither a string
      nor an int in [0, 2**64 - 1].
"""

from sqlalchemy import LargeBinary, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from timelock_kernel.db.base import Base, StoreValue


class StoreEntry(Base):
    """
    One durable store value.

    ``value`` is a principal string (administrator slot) or an unsigned
    64-bit scheduled time, stored exactly via ``StoreValue``.
    """

    __tablename__ = "store_entries"

    __table_args__ = (
        UniqueConstraint("namespace", "key", name="uq_store_entry_key"),
    )

    # Key space ("instance" for the administrator slot, "operation" for records)
    namespace: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
    )

    # Opaque key bytes within the namespace
    key: Mapped[bytes] = mapped_column(
        LargeBinary(),
        nullable=False,
    )

    value: Mapped[str | int] = mapped_column(
        StoreValue,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<StoreEntry {self.namespace}:{bytes(self.key).hex()}>"
