"""
Pipeline orchestrator. Runs the rule passes in their fixed order.

    result = enforce_constraints(rooms, BuildingParameters(...))
    result.rooms       # adjusted copies, caller's rooms untouched
    result.warnings    # every adjustment, in order, plus mirrored conflicts
    result.conflicts   # rules that could not be satisfied, or None

The run is synchronous and deterministic: no I/O, no randomness, no state
shared between calls, so concurrent calls need no locking.
"""

import logging
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from services.layout_constants import (
    ALIGN_GRID,
    CONFLICT_PREFIX,
    MIN_COORD,
    MIN_DIMENSION,
)
from .geometry_utils import snap
from .room_model import BuildingParameters, PassResult, PipelineResult, Room
from .rules import (
    PassContext,
    align_walls,
    apply_wall_thickness,
    enforce_kitchen_adjacency,
    enforce_zoning,
    ensure_bathroom_clearance,
    ensure_bedroom_free_wall,
    ensure_doors,
    ensure_min_dimensions,
    ensure_ventilation,
    ensure_windows,
    group_wet_areas,
)
from .specifications import OverridesLike, SpecificationSet, merge_specifications

logger = logging.getLogger(__name__)

RulePass = Callable[[Sequence[Room], PassContext], PassResult]

PASSES: Tuple[Tuple[str, RulePass], ...] = (
    ("wall_thickness", apply_wall_thickness),
    ("min_dimensions", ensure_min_dimensions),
    ("doors", ensure_doors),
    ("windows", ensure_windows),
    ("ventilation", ensure_ventilation),
    ("bathroom_clearance", ensure_bathroom_clearance),
    ("bedroom_free_wall", ensure_bedroom_free_wall),
    ("zoning", enforce_zoning),
    ("kitchen_adjacency", enforce_kitchen_adjacency),
    ("wet_areas", group_wet_areas),
    ("wall_alignment", align_walls),
)


class LayoutInputError(ValueError):
    """Rooms or building parameters violate the engine's input contract."""


RoomLike = Union[Room, Mapping[str, Any]]
BuildingLike = Union[BuildingParameters, Mapping[str, Any]]


def _coerce_rooms(initial_rooms: Sequence[RoomLike]) -> List[Room]:
    rooms: List[Room] = []
    for i, raw in enumerate(initial_rooms):
        try:
            if isinstance(raw, Room):
                # Re-validate: model_copy(update=...) can bypass field checks.
                room = Room.model_validate(raw.model_dump(by_alias=True))
            else:
                room = Room.model_validate(raw)
        except ValidationError as e:
            raise LayoutInputError(f"Invalid room at index {i}: {e}") from e
        rooms.append(room)

    seen = set()
    for room in rooms:
        if room.id in seen:
            raise LayoutInputError(f"Duplicate room id: {room.id!r}")
        seen.add(room.id)
    return rooms


def _coerce_building(building: BuildingLike) -> BuildingParameters:
    if isinstance(building, BuildingParameters):
        return building
    try:
        return BuildingParameters.model_validate(building)
    except ValidationError as e:
        raise LayoutInputError(f"Invalid building parameters: {e}") from e


def normalize_rooms(rooms: Sequence[Room]) -> List[Room]:
    """Final clamp: x, y >= 0.1 and width, height >= 0.5, all on the 0.01 m grid."""
    return [
        room.model_copy(update={
            "x": max(MIN_COORD, snap(room.x, ALIGN_GRID)),
            "y": max(MIN_COORD, snap(room.y, ALIGN_GRID)),
            "width": max(MIN_DIMENSION, snap(room.width, ALIGN_GRID)),
            "height": max(MIN_DIMENSION, snap(room.height, ALIGN_GRID)),
        })
        for room in rooms
    ]


def run_passes(
    rooms: Sequence[Room],
    ctx: PassContext,
    passes: Sequence[Tuple[str, RulePass]] = PASSES,
) -> PassResult:
    """Thread *rooms* through *passes*, concatenating their diagnostics."""
    current = list(rooms)
    warnings: List[str] = []
    conflicts: List[str] = []
    for name, rule in passes:
        current, new_warnings, new_conflicts = rule(current, ctx)
        warnings.extend(new_warnings)
        conflicts.extend(new_conflicts)
        logger.debug(
            f"Pass {name}: {len(new_warnings)} warning(s), {len(new_conflicts)} conflict(s)"
        )
    return PassResult(current, warnings, conflicts)


def enforce_constraints(
    initial_rooms: Sequence[RoomLike],
    building: BuildingLike,
    overrides: OverridesLike = None,
    specs: Optional[SpecificationSet] = None,
) -> PipelineResult:
    """
    Rewrite *initial_rooms* so the layout satisfies the rulebook.

    Parameters
    ----------
    initial_rooms : sequence of Room or dict
        Arbitrary starting geometry. Never mutated.
    building : BuildingParameters or dict
        Lot size, bedroom count, optional area target, accessibility flag.
    overrides : mapping or SpecificationOverrides, optional
        Partial rulebook merged over *specs* (or the built-in defaults).
    specs : SpecificationSet, optional
        Base rulebook. Defaults to the built-in one.

    Raises
    ------
    LayoutInputError
        Zero/negative dimensions, duplicate ids, invalid building parameters
        or invalid overrides. Rule failures never raise; they are conflicts.
    """
    rooms = _coerce_rooms(initial_rooms)
    params = _coerce_building(building)
    try:
        rulebook = merge_specifications(overrides, base=specs)
    except ValueError as e:
        raise LayoutInputError(str(e)) from e

    ctx = PassContext(specs=rulebook, building=params)
    adjusted, warnings, conflicts = run_passes(rooms, ctx)
    adjusted = normalize_rooms(adjusted)

    result = PipelineResult(rooms=adjusted, warnings=list(warnings))
    if conflicts:
        result.conflicts = list(conflicts)
        result.warnings.extend(f"{CONFLICT_PREFIX}{c}" for c in conflicts)

    logger.info(
        f"Constraint run: {len(adjusted)} rooms, {len(warnings)} adjustment(s), "
        f"{len(conflicts)} conflict(s)"
    )
    return result
