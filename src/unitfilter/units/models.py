"""Pydantic models for unit configurations.

A unit is a smart-home device, service, or location as described by the
registry. Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class UnitType(str, Enum):
    """Classifier of a unit."""

    UNKNOWN = "UNKNOWN"
    LOCATION = "LOCATION"
    CONNECTION = "CONNECTION"
    DEVICE = "DEVICE"
    GATEWAY = "GATEWAY"
    LIGHT = "LIGHT"
    COLORABLE_LIGHT = "COLORABLE_LIGHT"
    DIMMABLE_LIGHT = "DIMMABLE_LIGHT"
    SWITCH = "SWITCH"
    POWER_SWITCH = "POWER_SWITCH"
    BUTTON = "BUTTON"
    MOTION_DETECTOR = "MOTION_DETECTOR"
    TEMPERATURE_SENSOR = "TEMPERATURE_SENSOR"
    REED_CONTACT = "REED_CONTACT"
    ROLLER_SHUTTER = "ROLLER_SHUTTER"
    SCENE = "SCENE"
    AGENT = "AGENT"
    APP = "APP"
    USER = "USER"
    AUTHORIZATION_GROUP = "AUTHORIZATION_GROUP"
    UNIT_GROUP = "UNIT_GROUP"


class LocationType(str, Enum):
    """Kind of location a location unit represents."""

    UNKNOWN = "UNKNOWN"
    ZONE = "ZONE"
    TILE = "TILE"
    REGION = "REGION"


class EnablingState(str, Enum):
    """Whether the registry considers a unit active."""

    ENABLED = "ENABLED"
    DISABLED = "DISABLED"


def _upper_enum_value(v: Any) -> Any:
    """Accept enum names in any case."""
    if isinstance(v, str):
        return v.strip().upper()
    return v


class _UnitBaseModel(BaseModel):
    """Shared model configuration accepting both field names and wire aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class PlacementConfig(_UnitBaseModel):
    """Where a unit is placed."""

    location_id: str = Field(default="", description="ID of the containing location")


class LocationConfig(_UnitBaseModel):
    """Location-specific attributes, meaningful only for location units."""

    root: bool = Field(default=False, description="Whether this is the root location")
    location_type: LocationType = Field(
        default=LocationType.UNKNOWN,
        description="Kind of location (zone, tile, region)",
    )

    @field_validator("location_type", mode="before")
    @classmethod
    def normalize_location_type(cls, v: Any) -> Any:
        """Normalize location type names."""
        return _upper_enum_value(v)


class UnitConfig(_UnitBaseModel):
    """Configuration record of a single unit.

    Used both as a registry record and as the ``properties`` of a filter
    node. In the latter role only explicitly supplied fields constrain a
    match; see ``model_fields_set``.
    """

    id: str = Field(default="", description="Unique unit ID")
    label: str = Field(default="", description="Human-readable label")
    description: str = Field(default="", description="Free-form description")
    unit_type: UnitType = Field(default=UnitType.UNKNOWN, description="Unit classifier")
    enabling_state: EnablingState = Field(
        default=EnablingState.ENABLED,
        description="Whether the unit is enabled",
    )
    placement_config: PlacementConfig = Field(default_factory=PlacementConfig)
    location_config: LocationConfig = Field(default_factory=LocationConfig)

    @field_validator("unit_type", "enabling_state", mode="before")
    @classmethod
    def normalize_enums(cls, v: Any) -> Any:
        """Normalize enum names."""
        return _upper_enum_value(v)

    @property
    def is_enabled(self) -> bool:
        """Check if the unit is enabled."""
        return self.enabling_state == EnablingState.ENABLED

    @property
    def is_location(self) -> bool:
        """Check if the unit represents a location."""
        return self.unit_type == UnitType.LOCATION

    def __repr__(self) -> str:
        return f"<UnitConfig(id={self.id!r}, type={self.unit_type.value}, label={self.label!r})>"
