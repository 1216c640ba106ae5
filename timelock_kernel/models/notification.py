"""
Module: timelock_kernel.models.notification
Responsibility: ORM persistence for the durable, hash-chained notification log.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Rows are append-only; no UPDATE or DELETE (ORM listener).
    - seq is unique and monotonically increasing, allocated by SequenceService.
    - hash = H(seq | action | subject | payload_hash | prev_hash).  Validated by
      NotificationSelector.validate_chain().

Failure modes:
    - ImmutabilityViolationError on any UPDATE/DELETE attempt.
    - NotificationChainBrokenError when chain validation detects a mismatch.
"""

from sqlalchemy import JSON, BigInteger, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from timelock_kernel.db.base import Base, UInt64


class NotificationEntry(Base):
    """
    One published registry transition.

    Contract:
        Rows are sacred -- append-only, never updated or deleted.  Each row's
        hash includes the previous row's hash, so retroactive edits are
        detectable.

    Guarantees:
        - ``action`` mirrors topics[0] and ``subject`` mirrors topics[1]
          (empty string when absent).  ``action`` and ``subject_digest``
          are indexed.
        - prev_hash is None only for the first row.
    """

    __tablename__ = "notification_entries"

    __table_args__ = (
        Index("idx_notification_action", "action"),
        Index("idx_notification_subject_digest", "subject_digest"),
        Index("idx_notification_seq", "seq"),
    )

    seq: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        unique=True,
    )

    action: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    # Operation identifier as hex ("" for registry-level notifications).
    # Unbounded; identifiers have no maximum length.
    subject: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )

    # SHA-256 of subject, the indexed lookup key (btree entries are size-capped)
    subject_digest: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    topics: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
    )

    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
    )

    # Clock reading at publication, in seconds (full unsigned 64-bit range)
    published_at: Mapped[int] = mapped_column(
        UInt64,
        nullable=False,
    )

    payload_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    prev_hash: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<NotificationEntry seq={self.seq} {self.action}:{self.subject}>"
