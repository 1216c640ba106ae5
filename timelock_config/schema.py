"""
TimelockConfig schema.

Frozen dataclasses for the deployment configuration.  YAML documents are
parsed into these types by the loader and checked by the validator; the
kernel receives only the bridged value objects (``DelayPolicy``).
"""

from __future__ import annotations

from dataclasses import dataclass

from timelock_kernel.domain.policy import DelayPolicy


@dataclass(frozen=True)
class DelayWindowConfig:
    """Accepted queueing window, in seconds."""

    min_delay: int
    max_delay: int
    pinned_admin: str | None = None


@dataclass(frozen=True)
class DatabaseConfig:
    url: str
    echo: bool = False


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class TimelockConfig:
    """The complete, validated deployment configuration."""

    config_id: str
    version: int
    timelock: DelayWindowConfig
    database: DatabaseConfig
    logging: LoggingConfig
    checksum: str = ""

    def delay_policy(self) -> DelayPolicy:
        """Bridge to the kernel's delay window value object."""
        return DelayPolicy(
            min_delay=self.timelock.min_delay,
            max_delay=self.timelock.max_delay,
        )
