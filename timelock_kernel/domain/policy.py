"""
DelayPolicy -- the accepted queueing window.

Both bounds are deployment policy, not structure: they are supplied when the
registry is constructed (usually from ``timelock_config``) rather than
hard-coded.
"""

from dataclasses import dataclass

from timelock_kernel.domain.operation import MAX_TIMESTAMP

DEFAULT_MIN_DELAY = 60
DEFAULT_MAX_DELAY = 86_400  # 24 hours


@dataclass(frozen=True)
class DelayPolicy:
    """
    Inclusive ``[min_delay, max_delay]`` window for ``queue()``.

    Guarantees:
        - Both bounds are integers with
          ``0 <= min_delay <= max_delay <= MAX_TIMESTAMP``.

    Raises:
        ValueError: At construction, if the bounds are malformed.
    """

    min_delay: int = DEFAULT_MIN_DELAY
    max_delay: int = DEFAULT_MAX_DELAY

    def __post_init__(self) -> None:
        for name in ("min_delay", "max_delay"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        if self.min_delay < 0:
            raise ValueError(f"min_delay must be non-negative, got {self.min_delay}")
        if self.min_delay > self.max_delay:
            raise ValueError(
                f"min_delay ({self.min_delay}) exceeds max_delay ({self.max_delay})"
            )
        if self.max_delay > MAX_TIMESTAMP:
            raise ValueError(f"max_delay exceeds MAX_TIMESTAMP: {self.max_delay}")

    def accepts(self, delay: int) -> bool:
        return self.min_delay <= delay <= self.max_delay
