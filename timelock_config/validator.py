"""
Configuration validator.

Collects every problem in a parsed ``TimelockConfig`` instead of stopping at
the first, so an operator fixes a broken file in one pass.
"""

from __future__ import annotations

import logging

from timelock_config.schema import TimelockConfig
from timelock_kernel.domain.operation import MAX_TIMESTAMP

_VALID_LEVELS = frozenset(logging.getLevelNamesMapping())


class ConfigValidationError(ValueError):
    """Configuration failed validation.

    Attributes:
        errors: Every problem found, in document order.
    """

    code: str = "CONFIG_VALIDATION_FAILED"

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(
            f"Invalid timelock configuration ({len(errors)} error(s)): "
            + "; ".join(errors)
        )


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_configuration(config: TimelockConfig) -> list[str]:
    """Return a list of validation errors (empty when valid)."""
    errors: list[str] = []
    window = config.timelock

    if not _is_int(config.version) or config.version < 1:
        errors.append(f"version must be a positive integer, got {config.version!r}")

    if not _is_int(window.min_delay):
        errors.append(f"timelock.min_delay must be an integer, got {window.min_delay!r}")
    elif window.min_delay < 0:
        errors.append(f"timelock.min_delay must be non-negative, got {window.min_delay}")

    if not _is_int(window.max_delay):
        errors.append(f"timelock.max_delay must be an integer, got {window.max_delay!r}")
    elif window.max_delay > MAX_TIMESTAMP:
        errors.append("timelock.max_delay exceeds the 64-bit timestamp range")

    if (
        _is_int(window.min_delay)
        and _is_int(window.max_delay)
        and window.min_delay > window.max_delay
    ):
        errors.append(
            f"timelock.min_delay ({window.min_delay}) exceeds "
            f"timelock.max_delay ({window.max_delay})"
        )

    if window.pinned_admin is not None and (
        not isinstance(window.pinned_admin, str) or not window.pinned_admin
    ):
        errors.append("timelock.pinned_admin must be a non-empty string or null")

    if not isinstance(config.database.url, str) or not config.database.url:
        errors.append("database.url must be a non-empty string")
    if not isinstance(config.database.echo, bool):
        errors.append(f"database.echo must be a boolean, got {config.database.echo!r}")

    if config.logging.level.upper() not in _VALID_LEVELS:
        errors.append(f"logging.level is not a logging level: {config.logging.level!r}")

    return errors
