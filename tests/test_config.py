"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from unitfilter.config import (
    LoggingConfig,
    SavedFilter,
    Settings,
    expand_env_vars,
    get_settings,
    load_settings,
    load_yaml_config,
)


def test_defaults() -> None:
    """Settings have sensible defaults."""
    settings = Settings()
    assert settings.registry.units_file.name == "units.yaml"
    assert settings.registry.units_file.is_absolute()
    assert settings.registry.include_disabled is False
    assert settings.saved_filters == []
    assert settings.logging.level == "WARNING"


def test_test_settings_fixture(test_settings: Settings, temp_dir: Path) -> None:
    """Explicit values override defaults."""
    assert test_settings.registry.units_file.parent == temp_dir.resolve()
    assert test_settings.logging.level == "DEBUG"


def test_load_settings_from_yaml(sample_config_yaml: Path, units_yaml: Path) -> None:
    """YAML files populate the settings."""
    settings = load_settings(sample_config_yaml)
    assert settings.registry.units_file == units_yaml.resolve()
    assert [f.name for f in settings.saved_filters] == ["kitchen-lights", "rooms"]
    assert settings.get_saved_filter("rooms").enabled is False
    assert settings.get_saved_filter("missing") is None


def test_load_settings_without_file(temp_dir: Path) -> None:
    """A missing config file means default settings."""
    settings = load_settings(temp_dir / "missing.yaml")
    assert settings.saved_filters == []


def test_load_yaml_config_missing(temp_dir: Path) -> None:
    """Loading a missing file directly raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_yaml_config(temp_dir / "missing.yaml")


def test_expand_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    """${VAR} references are expanded recursively; unknown ones become empty."""
    monkeypatch.setenv("UNITS_DIR", "/srv/home")
    monkeypatch.delenv("NOT_SET_ANYWHERE", raising=False)
    config = {
        "registry": {"units_file": "${UNITS_DIR}/units.yaml"},
        "saved_filters": [{"name": "x${NOT_SET_ANYWHERE}", "expression": "*"}],
        "count": 3,
    }
    assert expand_env_vars(config) == {
        "registry": {"units_file": "/srv/home/units.yaml"},
        "saved_filters": [{"name": "x", "expression": "*"}],
        "count": 3,
    }


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    """UNITFILTER_ environment variables configure nested settings."""
    monkeypatch.setenv("UNITFILTER_REGISTRY__INCLUDE_DISABLED", "true")
    monkeypatch.setenv("UNITFILTER_LOGGING__LEVEL", "debug")
    settings = Settings()
    assert settings.registry.include_disabled is True
    assert settings.logging.level == "DEBUG"


def test_saved_filter_expression_is_validated() -> None:
    """Saved filters with invalid expressions are rejected."""
    with pytest.raises(ValidationError):
        SavedFilter(name="broken", expression="type = TOASTER")


def test_duplicate_saved_filter_names() -> None:
    """Saved filter names must be unique."""
    with pytest.raises(ValidationError, match="Duplicate"):
        Settings(
            saved_filters=[
                {"name": "a", "expression": "*"},
                {"name": "a", "expression": "type = LIGHT"},
            ]
        )


@pytest.mark.parametrize("level", ["verbose", "TRACE"])
def test_invalid_log_level(level: str) -> None:
    """Unknown log levels are rejected."""
    with pytest.raises(ValidationError):
        LoggingConfig(level=level)


def test_invalid_log_format() -> None:
    """Only console and json formats exist."""
    with pytest.raises(ValidationError):
        LoggingConfig(format="xml")


def test_get_settings_caches(sample_config_yaml: Path) -> None:
    """get_settings returns the cached instance until reloaded."""
    first = get_settings(sample_config_yaml, reload=True)
    assert get_settings() is first
    assert get_settings(sample_config_yaml, reload=True) is not first
