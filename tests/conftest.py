"""Pytest configuration and fixtures for unitfilter tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from unitfilter.config import Settings
from unitfilter.units.models import UnitConfig


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def home_units() -> list[UnitConfig]:
    """A small home: root location, two rooms, and devices placed in them."""
    return [
        UnitConfig(
            id="home",
            label="Home",
            unit_type="LOCATION",
            location_config={"root": True, "location_type": "ZONE"},
        ),
        UnitConfig(
            id="kitchen",
            label="Kitchen",
            unit_type="LOCATION",
            placement_config={"location_id": "home"},
            location_config={"location_type": "TILE"},
        ),
        UnitConfig(
            id="hallway",
            label="Hallway",
            unit_type="LOCATION",
            placement_config={"location_id": "home"},
            location_config={"location_type": "TILE"},
        ),
        UnitConfig(
            id="lamp-1",
            label="Kitchen Lamp",
            unit_type="LIGHT",
            placement_config={"location_id": "kitchen"},
        ),
        UnitConfig(
            id="lamp-2",
            label="Hallway Lamp",
            unit_type="LIGHT",
            placement_config={"location_id": "hallway"},
        ),
        UnitConfig(
            id="switch-1",
            label="Kitchen Switch",
            unit_type="SWITCH",
            placement_config={"location_id": "kitchen"},
        ),
        UnitConfig(
            id="lamp-3",
            label="Broken Lamp",
            unit_type="LIGHT",
            placement_config={"location_id": "kitchen"},
            enabling_state="DISABLED",
        ),
    ]


@pytest.fixture
def units_yaml(temp_dir: Path) -> Path:
    """Create a units file for registry and CLI tests."""
    content = """
units:
  - id: home
    label: Home
    unitType: LOCATION
    locationConfig:
      root: true
      locationType: ZONE
  - id: kitchen
    label: Kitchen
    unitType: LOCATION
    placementConfig:
      locationId: home
    locationConfig:
      locationType: TILE
  - id: lamp-1
    label: Kitchen Lamp
    unitType: LIGHT
    placementConfig:
      locationId: kitchen
  - id: switch-1
    label: Kitchen Switch
    unit_type: switch
    placement_config:
      location_id: kitchen
  - id: lamp-3
    label: Broken Lamp
    unitType: LIGHT
    enablingState: DISABLED
    placementConfig:
      locationId: kitchen
"""
    path = temp_dir / "units.yaml"
    path.write_text(content)
    return path


@pytest.fixture
def test_settings(temp_dir: Path) -> Settings:
    """Create test settings with temporary paths."""
    return Settings(
        registry={"units_file": str(temp_dir / "units.yaml")},
        logging={"level": "DEBUG"},
    )


@pytest.fixture
def sample_config_yaml(temp_dir: Path, units_yaml: Path) -> Path:
    """Create a sample config.yaml file for testing."""
    config_content = """
registry:
  units_file: "{units_path}"
  include_disabled: false

saved_filters:
  - name: kitchen-lights
    expression: 'type = LIGHT AND location = kitchen'
    description: Lights placed in the kitchen
  - name: rooms
    expression: '{{type = LOCATION, root = false}}'
    enabled: false

logging:
  level: "WARNING"
  format: "console"
""".format(units_path=str(units_yaml))

    config_path = temp_dir / "config.yaml"
    config_path.write_text(config_content)
    return config_path
