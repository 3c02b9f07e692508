"""Filter tree model for selecting units."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from unitfilter.units.models import LocationConfig, PlacementConfig, UnitConfig


class FilterPlacementConfig(PlacementConfig):
    """Placement constraints of a filter node; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")


class FilterLocationConfig(LocationConfig):
    """Location constraints of a filter node; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")


class FilterProperties(UnitConfig):
    """Partially populated unit used as the properties of a filter node.

    Registry records ignore fields they do not know, but here a misspelled
    key would silently drop a constraint, so unknown keys are an error.
    """

    model_config = ConfigDict(extra="forbid")

    placement_config: FilterPlacementConfig = Field(default_factory=FilterPlacementConfig)
    location_config: FilterLocationConfig = Field(default_factory=FilterLocationConfig)


class UnitFilter(BaseModel):
    """A node of a unit filter tree.

    The node matches a unit when ``(properties AND and_) OR or_`` holds,
    where ``negate`` inverts the local property test only. The wire form uses
    the keys ``properties``, ``not``, ``and`` and ``or``.

    Trees must be acyclic. Nodes are frozen, so a tree built bottom-up
    cannot contain a cycle.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    properties: FilterProperties = Field(
        default_factory=FilterProperties,
        description="Partially populated unit; unset fields do not constrain",
    )
    negate: bool = Field(default=False, alias="not", description="Invert the property test")
    and_: UnitFilter | None = Field(default=None, alias="and", description="Conjoined subtree")
    or_: UnitFilter | None = Field(default=None, alias="or", description="Disjoined subtree")

    @field_validator("properties", mode="before")
    @classmethod
    def accept_unit_config(cls, v: Any) -> Any:
        """Accept a plain UnitConfig, keeping only the fields it has set."""
        if isinstance(v, UnitConfig) and not isinstance(v, FilterProperties):
            return v.model_dump(exclude_unset=True)
        return v

    def to_wire(self) -> dict:
        """Dump the tree using wire keys, omitting unset properties."""
        return self.model_dump(
            mode="json", by_alias=True, exclude_unset=True, exclude_none=True
        )


UnitFilter.model_rebuild()
