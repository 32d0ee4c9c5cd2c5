"""
Grid snapping, axis merging and overlap utilities.

Every dimension or coordinate the engine writes goes through ``snap`` (or
``snap_up`` when a value is grown to a minimum) so that floating-point drift
never leaks into the plan.
"""

import math
from typing import List, Sequence, Tuple

from shapely.geometry import Polygon, box

from services.layout_constants import ALIGN_GRID, AXIS_MERGE_EPS, GRID_SNAP

_DECIMALS = 10


def snap(value: float, grid: float = GRID_SNAP) -> float:
    """Round *value* to the nearest multiple of *grid* (halves round up)."""
    return round(math.floor(value / grid + 0.5) * grid, _DECIMALS)


def snap_up(value: float, grid: float = GRID_SNAP) -> float:
    """Smallest multiple of *grid* that is >= *value*."""
    steps = math.ceil(round(value / grid, 6))
    return round(steps * grid, _DECIMALS)


def nearest(candidates: Sequence[float], value: float) -> float:
    """
    Return the candidate numerically closest to *value*.

    Ties go to the first occurrence in *candidates*.
    """
    if not candidates:
        raise ValueError("nearest() needs at least one candidate")
    best = candidates[0]
    best_dist = abs(best - value)
    for c in candidates[1:]:
        d = abs(c - value)
        if d < best_dist:
            best, best_dist = c, d
    return best


def merge_axes(
    values: Sequence[float],
    grid: float = ALIGN_GRID,
    eps: float = AXIS_MERGE_EPS,
) -> List[float]:
    """
    Collapse wall x-positions into structural axes.

    Values are snapped to *grid*, deduplicated and sorted; then each pair of
    neighbours closer than *eps* is replaced by its midpoint (walk left to
    right, so a merged value can merge again with the next one).
    """
    axes = sorted({snap(v, grid) for v in values})
    for i in range(len(axes) - 1):
        if abs(axes[i + 1] - axes[i]) < eps:
            mid = (axes[i] + axes[i + 1]) / 2
            axes[i] = mid
            axes[i + 1] = mid
    return axes


def room_center(room) -> Tuple[float, float]:
    return (room.x + room.width / 2, room.y + room.height / 2)


def room_polygon(room) -> Polygon:
    """Room footprint as a Shapely box."""
    return box(room.x, room.y, room.x + room.width, room.y + room.height)


def detect_overlaps(rooms: Sequence, tolerance: float = 0.01) -> List[Tuple[str, str]]:
    """
    Return ``(id_a, id_b)`` pairs of rooms whose footprints overlap.

    Rooms sharing only an edge (zero-area intersection) are **not**
    considered overlapping.

    Parameters
    ----------
    rooms : sequence of Room
        Rooms to check.
    tolerance : float
        Minimum intersection area to count as an overlap (sq m).
    """
    polys = [room_polygon(r) for r in rooms]
    overlaps = []
    for i in range(len(polys)):
        for j in range(i + 1, len(polys)):
            inter = polys[i].intersection(polys[j])
            if inter.area > tolerance:
                overlaps.append((rooms[i].id, rooms[j].id))
    return overlaps
