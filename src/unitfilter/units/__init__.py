"""Unit module for unitfilter.

Provides the unit configuration models. The file-backed registry lives in
``unitfilter.units.registry``.
"""

from unitfilter.units.models import (
    EnablingState,
    LocationConfig,
    LocationType,
    PlacementConfig,
    UnitConfig,
    UnitType,
)

__all__ = [
    "UnitConfig",
    "PlacementConfig",
    "LocationConfig",
    "UnitType",
    "LocationType",
    "EnablingState",
]
