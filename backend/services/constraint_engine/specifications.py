"""
Specification registry: the rulebook of minimum and derived values.

The rulebook is an immutable ``SpecificationSet``. It is built once from the
built-in defaults, optionally layered with caller overrides, and then threaded
read-only through every rule pass of a run.
"""

import logging
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from services.layout_constants import get_rulebook_overrides

logger = logging.getLogger(__name__)


class SpecificationSet(BaseModel):
    """All rulebook values, in meters / square meters / fractions of floor area."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Walls
    wall_external: float = Field(default=0.15, gt=0)
    wall_internal: float = Field(default=0.10, gt=0)

    # Rooms
    min_bedroom_couple_area: float = Field(default=8.0, gt=0)
    min_bedroom_single_area: float = Field(default=6.0, gt=0)
    min_bedroom_couple_width: float = Field(default=2.8, gt=0)
    min_bedroom_single_width: float = Field(default=2.2, gt=0)
    min_bedroom_free_wall: float = Field(default=2.6, gt=0)
    min_living_area: float = Field(default=10.0, gt=0)
    min_living_width: float = Field(default=2.5, gt=0)
    min_kitchen_width: float = Field(default=1.8, gt=0)
    min_bathroom_area: float = Field(default=2.5, gt=0)

    # Clearances
    bathroom_circle_diameter: float = Field(default=0.9, gt=0)
    accessible_circle_diameter: float = Field(default=1.5, gt=0)

    # Ceilings
    ceiling_min: float = Field(default=2.5, gt=0)
    short_ceiling_min: float = Field(default=2.3, gt=0)

    # Doors / circulation
    door_entrance: float = Field(default=0.8, gt=0)
    door_room: float = Field(default=0.7, gt=0)
    door_bath: float = Field(default=0.6, gt=0)
    corridor_width: float = Field(default=0.9, gt=0)

    # Openings as fractions of floor area
    window_fraction_lighting: float = Field(default=1 / 8, gt=0, le=1)
    window_fraction_vent: float = Field(default=1 / 16, gt=0, le=1)


class SpecificationOverrides(BaseModel):
    """Partial rulebook; every field left as ``None`` keeps its default."""

    model_config = ConfigDict(extra="forbid")

    wall_external: Optional[float] = None
    wall_internal: Optional[float] = None
    min_bedroom_couple_area: Optional[float] = None
    min_bedroom_single_area: Optional[float] = None
    min_bedroom_couple_width: Optional[float] = None
    min_bedroom_single_width: Optional[float] = None
    min_bedroom_free_wall: Optional[float] = None
    min_living_area: Optional[float] = None
    min_living_width: Optional[float] = None
    min_kitchen_width: Optional[float] = None
    min_bathroom_area: Optional[float] = None
    bathroom_circle_diameter: Optional[float] = None
    accessible_circle_diameter: Optional[float] = None
    ceiling_min: Optional[float] = None
    short_ceiling_min: Optional[float] = None
    door_entrance: Optional[float] = None
    door_room: Optional[float] = None
    door_bath: Optional[float] = None
    corridor_width: Optional[float] = None
    window_fraction_lighting: Optional[float] = None
    window_fraction_vent: Optional[float] = None


DEFAULT_SPECIFICATIONS = SpecificationSet()

OverridesLike = Union[None, SpecificationSet, SpecificationOverrides, Mapping[str, Any]]


def merge_specifications(
    overrides: OverridesLike = None,
    base: Optional[SpecificationSet] = None,
) -> SpecificationSet:
    """
    Layer *overrides* onto *base* (the built-in defaults when omitted).

    Fields that are absent or ``None`` in the override keep the base value.
    Unknown field names and non-positive values are rejected with a
    ``ValueError``.
    """
    base = base or DEFAULT_SPECIFICATIONS
    if overrides is None:
        return base

    if isinstance(overrides, BaseModel):
        values = overrides.model_dump(exclude_none=True)
    else:
        values = {k: v for k, v in dict(overrides).items() if v is not None}

    if not values:
        return base

    merged = {**base.model_dump(), **values}
    try:
        specs = SpecificationSet(**merged)
    except ValidationError as e:
        raise ValueError(f"Invalid specification overrides: {e}") from e

    logger.debug(f"Merged rulebook overrides: {sorted(values)}")
    return specs


def load_house_specifications(overrides: OverridesLike = None) -> SpecificationSet:
    """Built-in defaults ← deployment overrides file ← per-call *overrides*."""
    try:
        house = merge_specifications(get_rulebook_overrides())
    except ValueError as e:
        logger.warning(f"Ignoring rulebook overrides file: {e}")
        house = DEFAULT_SPECIFICATIONS
    return merge_specifications(overrides, base=house)
