"""Counter rows behind SequenceService; one row per sequence name."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from timelock_kernel.db.base import Base


class SequenceCounter(Base):
    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(50), unique=True)
    # Last value handed out; the next allocation returns current_value + 1
    current_value: Mapped[int] = mapped_column(default=0)
