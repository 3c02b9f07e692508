"""Configuration management for unitfilter.

Loads configuration from YAML files and environment variables using Pydantic.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


class RegistryConfig(BaseModel):
    """Configuration for the file-backed unit registry."""

    units_file: Path = Field(
        default=Path("./units.yaml"),
        validate_default=True,
        description="YAML or JSON file holding the unit configurations",
    )
    include_disabled: bool = Field(
        default=False,
        description="Include disabled units when querying",
    )

    @field_validator("units_file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        """Expand user home directory and make path absolute."""
        return Path(os.path.expanduser(str(v))).resolve()


class SavedFilter(BaseModel):
    """A named filter expression that can be run from the CLI."""

    name: str = Field(..., min_length=1, description="Name used to refer to the filter")
    expression: str = Field(..., description="Filter expression")
    description: str = Field(default="", description="What the filter selects")
    enabled: bool = Field(default=True, description="Whether this filter can be run")

    @field_validator("expression")
    @classmethod
    def validate_expression(cls, v: str) -> str:
        """Reject expressions that do not parse."""
        from unitfilter.matcher.parser import parse_expression

        parse_expression(v)
        return v


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="WARNING", description="Log level")
    format: str = Field(default="console", description="Log format (console or json)")
    file: Path | None = Field(default=None, description="Optional log file path")

    @field_validator("level", mode="before")
    @classmethod
    def validate_level(cls, v: Any) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if isinstance(v, str):
            v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ("console", "json"):
            raise ValueError(f"Invalid log format: {v}")
        return v


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="UNITFILTER_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    saved_filters: list[SavedFilter] = Field(default_factory=list)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("saved_filters")
    @classmethod
    def unique_filter_names(cls, v: list[SavedFilter]) -> list[SavedFilter]:
        """Reject duplicate saved filter names."""
        names = [f.name for f in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate saved filter names: {', '.join(duplicates)}")
        return v

    def get_saved_filter(self, name: str) -> SavedFilter | None:
        """Look up a saved filter by name."""
        for saved in self.saved_filters:
            if saved.name == name:
                return saved
        return None


def load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Dictionary containing the configuration.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        yaml.YAMLError: If the YAML is invalid.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        config = yaml.safe_load(f)

    return config or {}


def expand_env_vars(config: Any) -> Any:
    """Recursively expand ${VAR_NAME} references in configuration values.

    Unknown variables expand to an empty string.
    """
    if isinstance(config, str):
        return _ENV_VAR_PATTERN.sub(lambda m: os.environ.get(m.group(1), ""), config)
    if isinstance(config, dict):
        return {k: expand_env_vars(v) for k, v in config.items()}
    if isinstance(config, list):
        return [expand_env_vars(item) for item in config]
    return config


def load_settings(config_path: Path | None = None) -> Settings:
    """Load application settings from YAML file and environment variables.

    Values from the YAML file take precedence; UNITFILTER_* environment
    variables fill in anything the file leaves out.

    Args:
        config_path: Optional path to YAML config file. If not provided,
                    looks for config.yaml in the current directory.

    Returns:
        Validated Settings object.
    """
    if config_path is None:
        config_path = Path("config.yaml")

    yaml_config: dict[str, Any] = {}
    if config_path.exists():
        yaml_config = expand_env_vars(load_yaml_config(config_path))

    return Settings(**yaml_config)


# Global settings instance (lazy-loaded)
_settings: Settings | None = None


def get_settings(config_path: Path | None = None, reload: bool = False) -> Settings:
    """Get the global settings instance.

    Args:
        config_path: Optional path to config file for initial load.
        reload: Force reload of settings.

    Returns:
        The global Settings instance.
    """
    global _settings
    if _settings is None or reload:
        _settings = load_settings(config_path)
    return _settings
