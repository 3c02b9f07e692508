"""Read-only unit registry backed by a YAML or JSON file.

The registry resolves the full candidate collection before any filter runs.
It never writes units back.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from unitfilter.logging import get_logger
from unitfilter.matcher.evaluator import select_matching
from unitfilter.matcher.filter import UnitFilter
from unitfilter.units.models import UnitConfig

logger = get_logger(__name__)


class UnitNotFoundError(LookupError):
    """Raised when no unit with the requested ID is registered."""

    def __init__(self, unit_id: str):
        self.unit_id = unit_id
        super().__init__(f"Unit not found: {unit_id}")


class RegistryLoadError(RuntimeError):
    """Raised when the registry contents cannot be loaded."""


class UnitRegistry:
    """In-memory collection of unit configurations, keyed by ID."""

    def __init__(self, units: Iterable[UnitConfig]):
        """Initialize with unit configurations.

        Args:
            units: Units in registry order. IDs must be unique.

        Raises:
            RegistryLoadError: If two units share an ID.
        """
        self._units: dict[str, UnitConfig] = {}
        for unit in units:
            if unit.id in self._units:
                raise RegistryLoadError(f"Duplicate unit ID: {unit.id!r}")
            self._units[unit.id] = unit

    @classmethod
    def from_file(cls, path: Path) -> "UnitRegistry":
        """Load a registry from a YAML or JSON file.

        The file holds either a list of unit configs or a mapping with a
        ``units`` list.

        Args:
            path: Path to the units file.

        Returns:
            UnitRegistry instance.

        Raises:
            RegistryLoadError: If the file is missing or malformed.
        """
        if not path.exists():
            raise RegistryLoadError(f"Units file not found: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise RegistryLoadError(f"Invalid units file {path}: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise RegistryLoadError(f"Cannot read units file {path}: {e}") from e

        registry = cls.from_data(data, source=str(path))
        logger.info("Loaded unit registry", path=str(path), units=len(registry))
        return registry

    @classmethod
    def from_data(cls, data: Any, source: str = "<data>") -> "UnitRegistry":
        """Build a registry from already decoded data.

        Args:
            data: List of unit mappings, a mapping with a ``units`` key, or None.
            source: Label used in error messages.

        Returns:
            UnitRegistry instance.

        Raises:
            RegistryLoadError: If a mapping has no ``units`` key or a unit is invalid.
        """
        if data is None:
            return cls([])
        if isinstance(data, dict):
            if "units" not in data:
                raise RegistryLoadError(f"Missing 'units' key in {source}")
            data = data["units"] or []
        if not isinstance(data, list):
            raise RegistryLoadError(f"Expected a list of units in {source}")

        units = []
        for index, raw in enumerate(data):
            try:
                units.append(UnitConfig.model_validate(raw))
            except ValidationError as e:
                raise RegistryLoadError(f"Invalid unit #{index} in {source}: {e}") from e
        return cls(units)

    def __len__(self) -> int:
        return len(self._units)

    def get_unit_config_by_id(self, unit_id: str) -> UnitConfig:
        """Get a unit by its ID.

        Raises:
            UnitNotFoundError: If no such unit exists.
        """
        try:
            return self._units[unit_id]
        except KeyError:
            raise UnitNotFoundError(unit_id) from None

    def get_unit_configs(self, include_disabled: bool = False) -> list[UnitConfig]:
        """Get units in registry order, skipping disabled ones unless requested."""
        return [unit for unit in self._units.values() if include_disabled or unit.is_enabled]

    def query(self, unit_filter: UnitFilter, include_disabled: bool = False) -> list[UnitConfig]:
        """Get the units matching a filter tree.

        Args:
            unit_filter: Filter tree to apply.
            include_disabled: Also consider disabled units.

        Returns:
            Matching units in registry order.
        """
        return select_matching(unit_filter, self.get_unit_configs(include_disabled))
