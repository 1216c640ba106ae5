"""Tests for configuration loading, validation and the active-config entrypoint."""

from pathlib import Path

import pytest
import yaml

from timelock_config import ConfigValidationError, get_active_config
from timelock_config.loader import compute_checksum, load_config, parse_config
from timelock_config.validator import validate_configuration
from timelock_kernel.domain.policy import DelayPolicy


def _write(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "timelock.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


def _document(**timelock) -> dict:
    window = {"min_delay": 60, "max_delay": 86_400, "pinned_admin": None}
    window.update(timelock)
    return {
        "config_id": "test",
        "version": 1,
        "timelock": window,
        "database": {"url": "sqlite://", "echo": False},
        "logging": {"level": "DEBUG"},
    }


class TestDefaultConfig:
    def test_default_set_loads(self):
        config = get_active_config()
        assert config.config_id == "default"
        assert config.timelock.min_delay == 60
        assert config.timelock.max_delay == 86_400
        assert config.timelock.pinned_admin is None
        assert config.delay_policy() == DelayPolicy(60, 86_400)
        assert len(config.checksum) == 64

    def test_trace_logged(self, captured_logs):
        get_active_config()
        traces = [r for r in captured_logs() if r["message"] == "TIMELOCK_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["config_id"] == "default"
        assert traces[0]["min_delay"] == 60


class TestLoadConfig:
    def test_custom_file(self, tmp_path):
        path = _write(tmp_path, _document(min_delay=300, max_delay=600, pinned_admin="ops"))
        config = get_active_config(path)

        assert config.timelock.pinned_admin == "ops"
        assert config.delay_policy() == DelayPolicy(min_delay=300, max_delay=600)
        assert config.database.url == "sqlite://"
        assert config.logging.level == "DEBUG"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_missing_timelock_section(self, tmp_path):
        path = _write(tmp_path, {"config_id": "x", "version": 1})
        with pytest.raises(KeyError):
            load_config(path)

    def test_optional_sections_defaulted(self):
        config = parse_config({"timelock": {"min_delay": 1, "max_delay": 2}})
        assert config.database.url == "sqlite:///timelock.db"
        assert config.logging.level == "INFO"
        assert validate_configuration(config) == []

    def test_checksum_is_order_independent(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})


class TestValidation:
    def test_min_above_max(self, tmp_path):
        path = _write(tmp_path, _document(min_delay=100, max_delay=50))
        with pytest.raises(ConfigValidationError) as exc_info:
            get_active_config(path)
        assert exc_info.value.code == "CONFIG_VALIDATION_FAILED"
        assert any("exceeds" in e for e in exc_info.value.errors)

    def test_all_errors_reported_together(self):
        data = _document(min_delay=-5, max_delay="soon", pinned_admin="")
        data["version"] = 0
        data["logging"] = {"level": "CHATTY"}
        errors = validate_configuration(parse_config(data))

        assert len(errors) == 5
        assert any("version" in e for e in errors)
        assert any("min_delay" in e for e in errors)
        assert any("max_delay" in e for e in errors)
        assert any("pinned_admin" in e for e in errors)
        assert any("logging.level" in e for e in errors)

    def test_bool_is_not_a_delay(self):
        errors = validate_configuration(parse_config(_document(min_delay=True)))
        assert errors == ["timelock.min_delay must be an integer, got True"]

    def test_database_echo_must_be_bool(self):
        data = _document()
        data["database"]["echo"] = "yes"
        errors = validate_configuration(parse_config(data))
        assert errors == ["database.echo must be a boolean, got 'yes'"]

    def test_zero_width_window_is_valid(self):
        assert validate_configuration(parse_config(_document(min_delay=90, max_delay=90))) == []
