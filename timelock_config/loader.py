"""
Configuration Loader (``timelock_config.loader``).

Responsibility
--------------
Loads a YAML configuration document and parses it into the typed
``timelock_config.schema`` dataclasses.  Runtime callers go through
``timelock_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required sections  -> ``KeyError`` propagates.

Audit relevance
---------------
``compute_checksum`` gives every loaded configuration a deterministic
identity, logged with each ``get_active_config()`` call.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from timelock_config.schema import (
    DatabaseConfig,
    DelayWindowConfig,
    LoggingConfig,
    TimelockConfig,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of a raw configuration document."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def parse_config(data: dict[str, Any]) -> TimelockConfig:
    """
    Parse a raw configuration document.

    Types are carried through as written; the validator rejects wrong ones.

    Raises:
        KeyError: if the ``timelock`` section or one of its bounds is missing.
    """
    timelock = data["timelock"]
    database = data.get("database") or {}
    logging_section = data.get("logging") or {}

    return TimelockConfig(
        config_id=str(data.get("config_id", "default")),
        version=data.get("version", 1),
        timelock=DelayWindowConfig(
            min_delay=timelock["min_delay"],
            max_delay=timelock["max_delay"],
            pinned_admin=timelock.get("pinned_admin"),
        ),
        database=DatabaseConfig(
            url=database.get("url", "sqlite:///timelock.db"),
            echo=database.get("echo", False),
        ),
        logging=LoggingConfig(level=str(logging_section.get("level", "INFO"))),
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> TimelockConfig:
    """Load and parse a configuration file (no validation)."""
    return parse_config(load_yaml_file(path))
