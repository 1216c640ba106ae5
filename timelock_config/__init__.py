"""
timelock_config -- single public entrypoint for timelock configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files.
    Returns a validated, frozen ``TimelockConfig``.

Architecture position:
    Configuration -- sits above ``timelock_kernel``.  The kernel MUST NEVER
    import from ``timelock_config``; ``TimelockConfig.delay_policy()`` bridges
    the configured window into the kernel's ``DelayPolicy``.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``KeyError`` -- a required section or key is missing.
    - ``ConfigValidationError`` -- the document parsed but is invalid.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``TIMELOCK_CONFIG_TRACE`` log entry with the config_id, version, checksum
    and delay window, tying each deployment to the exact configuration that
    governed it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from timelock_config.loader import load_config
from timelock_config.schema import (
    DatabaseConfig,
    DelayWindowConfig,
    LoggingConfig,
    TimelockConfig,
)
from timelock_config.validator import ConfigValidationError, validate_configuration

_logger = logging.getLogger("timelock_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> TimelockConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to ``sets/default.yaml``.

    Raises:
        ConfigValidationError: If the document fails validation.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    config = load_config(path)

    errors = validate_configuration(config)
    if errors:
        raise ConfigValidationError(errors)

    _logger.info(
        "TIMELOCK_CONFIG_TRACE",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "config_checksum": config.checksum,
            "config_path": str(path),
            "min_delay": config.timelock.min_delay,
            "max_delay": config.timelock.max_delay,
            "pinned_admin": config.timelock.pinned_admin,
        },
    )
    return config


__all__ = [
    "ConfigValidationError",
    "DatabaseConfig",
    "DelayWindowConfig",
    "LoggingConfig",
    "TimelockConfig",
    "get_active_config",
]
