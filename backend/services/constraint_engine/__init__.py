"""
Constraint Engine for Floor Plan Layouts.

Takes an arbitrary list of rectangular rooms plus building parameters and
rewrites the layout against a fixed rulebook (minimum dimensions, doors,
daylight, clearances, zoning, adjacency, wet areas, wall alignment),
reporting every adjustment and every rule it could not satisfy.
"""

from .geometry_utils import detect_overlaps, merge_axes, nearest, snap, snap_up
from .pipeline import PASSES, LayoutInputError, enforce_constraints, run_passes
from .room_model import (
    BuildingParameters,
    DoorOpening,
    Occupancy,
    PassResult,
    PipelineResult,
    Room,
    RoomType,
    WindowOpening,
)
from .rules import PassContext
from .specifications import (
    DEFAULT_SPECIFICATIONS,
    SpecificationOverrides,
    SpecificationSet,
    load_house_specifications,
    merge_specifications,
)

__all__ = [
    "enforce_constraints",
    "run_passes",
    "PASSES",
    "LayoutInputError",
    "PassContext",
    "Room",
    "RoomType",
    "Occupancy",
    "WindowOpening",
    "DoorOpening",
    "BuildingParameters",
    "PassResult",
    "PipelineResult",
    "SpecificationSet",
    "SpecificationOverrides",
    "DEFAULT_SPECIFICATIONS",
    "merge_specifications",
    "load_house_specifications",
    "snap",
    "snap_up",
    "nearest",
    "merge_axes",
    "detect_overlaps",
]
