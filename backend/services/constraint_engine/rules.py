"""
Rule passes of the constraint engine.

Every pass has the same shape::

    pass_fn(rooms, ctx) -> PassResult(rooms, warnings, conflicts)

A pass never mutates the rooms it receives; it returns updated copies plus
the messages it produced. Passes never raise for a rule they cannot satisfy:
they record a conflict and leave that room unchanged for that rule.

Order matters (see ``pipeline.PASSES``):
  1. Wall thickness       5. Ventilation check     9. Kitchen adjacency
  2. Minimum dimensions   6. Bathroom clearance   10. Wet-area grouping
  3. Door widths          7. Bedroom free wall    11. Wall-grid alignment
  4. Daylight windows     8. Zoning
"""

import logging
import math
from typing import List, NamedTuple, Sequence, Tuple

from services.layout_constants import (
    ALIGN_GRID,
    COUPLE_MARKERS,
    KITCHEN_MAX_CENTER_DX,
    KITCHEN_SOCIAL_GAP,
    MAX_CLEARANCE_DIMENSION,
    MAX_FREE_WALL,
    MIN_DIMENSION,
    WET_AREAS,
    WET_AREA_STEP,
    WINDOW_ABS_MIN_WIDTH,
    WINDOW_MAX_HEIGHT,
    WINDOW_MIN_HEIGHT,
    WINDOW_MIN_LIGHT_AREA,
    WINDOW_MIN_WIDTH,
    WINDOW_SIDE_MARGIN,
    WINDOW_WIDTH_FACTOR,
    ZONE_COLUMN_GAP,
    ZONE_MAP,
    ZONE_ORIGIN,
    ZONE_PRIVATE_GAP,
    ZONE_STACK_GAP,
)
from .geometry_utils import merge_axes, nearest, room_center, snap, snap_up
from .room_model import (
    BuildingParameters,
    DoorOpening,
    Occupancy,
    PassResult,
    Room,
    RoomType,
    WindowOpening,
)
from .specifications import SpecificationSet

logger = logging.getLogger(__name__)

_EPS = 1e-9


class PassContext(NamedTuple):
    """Read-only inputs shared by every pass of one run."""

    specs: SpecificationSet
    building: BuildingParameters


def _fmt(value: float) -> str:
    return f"{value:g}"


# ═══════════════════════════════════════════════════════════════════════════
# CLASSIFICATION HELPERS
# ═══════════════════════════════════════════════════════════════════════════

def classify_bedroom(room: Room, specs: SpecificationSet) -> Occupancy:
    """
    Single or double occupancy.

    An explicit ``room.occupancy`` always wins. Otherwise a bedroom is double
    if its name carries a couple marker or it is already as wide as the
    double-occupancy minimum.
    """
    if room.occupancy is not None:
        return room.occupancy
    name = room.name.lower()
    if any(marker in name for marker in COUPLE_MARKERS):
        return Occupancy.DOUBLE
    if room.width >= specs.min_bedroom_couple_width:
        return Occupancy.DOUBLE
    return Occupancy.SINGLE


def bedroom_minimums(occupancy: Occupancy, specs: SpecificationSet) -> Tuple[float, float]:
    """(min_area, min_width) for a bedroom class."""
    if occupancy == Occupancy.DOUBLE:
        return specs.min_bedroom_couple_area, specs.min_bedroom_couple_width
    return specs.min_bedroom_single_area, specs.min_bedroom_single_width


def door_minimum(room: Room, door: DoorOpening, specs: SpecificationSet) -> float:
    if door.entrance:
        return specs.door_entrance
    if room.room_type == RoomType.BATHROOM:
        return specs.door_bath
    return specs.door_room


def turning_diameter(ctx: PassContext) -> float:
    if ctx.building.accessible:
        return ctx.specs.accessible_circle_diameter
    return ctx.specs.bathroom_circle_diameter


# ═══════════════════════════════════════════════════════════════════════════
# 1. WALL THICKNESS
# ═══════════════════════════════════════════════════════════════════════════

def apply_wall_thickness(rooms: Sequence[Room], ctx: PassContext) -> PassResult:
    """Living rooms and bedrooms default to external walls, the rest to internal."""
    out = []
    for room in rooms:
        if room.wall_thickness is None:
            if room.room_type in (RoomType.LIVING, RoomType.BEDROOM):
                thickness = ctx.specs.wall_external
            else:
                thickness = ctx.specs.wall_internal
            room = room.model_copy(update={"wall_thickness": thickness})
        out.append(room)
    return PassResult(out, [], [])


# ═══════════════════════════════════════════════════════════════════════════
# 2. MINIMUM DIMENSIONS
# ═══════════════════════════════════════════════════════════════════════════

def _grow_to_minimum(room: Room, min_width: float, min_area: float) -> Tuple[float, float]:
    """Grow width to *min_width*, then height until the area is met. Never shrinks."""
    width = snap_up(max(room.width, min_width))
    height = snap_up(max(room.height, min_area / width))
    return width, height


def ensure_min_dimensions(rooms: Sequence[Room], ctx: PassContext) -> PassResult:
    """
    Enforce per-type minimum width / area.

    - bedroom: single or double minimums (see ``classify_bedroom``)
    - living: living minimums
    - kitchen: width only (shallow is fine, narrow is not)
    - bathroom: height only, width is kept
    """
    specs = ctx.specs
    warnings: List[str] = []
    out = []

    for room in rooms:
        area = room.area
        rtype = room.room_type

        if rtype == RoomType.BEDROOM:
            occupancy = classify_bedroom(room, specs)
            min_area, min_width = bedroom_minimums(occupancy, specs)
            update = {"occupancy": occupancy}
            if area < min_area or room.width < min_width:
                width, height = _grow_to_minimum(room, min_width, min_area)
                update.update(width=width, height=height)
                warnings.append(
                    f'Adjusted "{room.name}" to minimum dimensions ({_fmt(width)}x{_fmt(height)} m).'
                )
                logger.debug(f"{room.id}: {occupancy.value} bedroom grown to {width}x{height}")
            room = room.model_copy(update=update)

        elif rtype == RoomType.LIVING:
            if area < specs.min_living_area or room.width < specs.min_living_width:
                width, height = _grow_to_minimum(room, specs.min_living_width, specs.min_living_area)
                room = room.model_copy(update={"width": width, "height": height})
                warnings.append(
                    f'Adjusted "{room.name}" to minimum social area ({_fmt(width)}x{_fmt(height)} m).'
                )

        elif rtype == RoomType.KITCHEN:
            if room.width < specs.min_kitchen_width:
                width = snap_up(specs.min_kitchen_width)
                room = room.model_copy(update={"width": width})
                warnings.append(
                    f'Kitchen "{room.name}" width adjusted to {_fmt(width)} m '
                    f'(min {_fmt(specs.min_kitchen_width)} m).'
                )

        elif rtype == RoomType.BATHROOM:
            if area < specs.min_bathroom_area:
                height = snap_up(max(room.height, specs.min_bathroom_area / max(0.1, room.width)))
                room = room.model_copy(update={"height": height})
                warnings.append(
                    f'Bathroom "{room.name}" adjusted to minimum area '
                    f'{_fmt(room.width)}x{_fmt(height)} m.'
                )

        out.append(room)

    return PassResult(out, warnings, [])


# ═══════════════════════════════════════════════════════════════════════════
# 3. DOORS
# ═══════════════════════════════════════════════════════════════════════════

def ensure_doors(rooms: Sequence[Room], ctx: PassContext) -> PassResult:
    """Widen missing or narrow doors to the minimum for their room type."""
    warnings: List[str] = []
    out = []

    for room in rooms:
        doors = []
        changed = False
        for i, door in enumerate(room.doors):
            min_w = door_minimum(room, door, ctx.specs)
            if door.width < min_w:
                door = door.model_copy(update={"width": min_w})
                changed = True
                warnings.append(f'Door {i + 1} in "{room.name}" adjusted to {min_w:.2f} m.')
            doors.append(door)
        if changed:
            room = room.model_copy(update={"doors": doors})
        out.append(room)

    return PassResult(out, warnings, [])


# ═══════════════════════════════════════════════════════════════════════════
# 4–5. WINDOWS (DAYLIGHT) / VENTILATION
# ═══════════════════════════════════════════════════════════════════════════

def _daylight_window(room: Room, need: float) -> WindowOpening:
    """Size one window of roughly *need* square meters that fits the room."""
    max_width = max(room.width - WINDOW_SIDE_MARGIN, WINDOW_ABS_MIN_WIDTH)
    width = min(max_width, max(WINDOW_MIN_WIDTH, math.sqrt(need * WINDOW_WIDTH_FACTOR)))
    # never wider than the wall it sits in
    width = min(max(snap(width, ALIGN_GRID), WINDOW_ABS_MIN_WIDTH), room.width)
    height = min(WINDOW_MAX_HEIGHT, max(WINDOW_MIN_HEIGHT, snap_up(need / width, ALIGN_GRID)))
    return WindowOpening(width=width, height=height)


def daylight_minimum(room: Room, specs: SpecificationSet) -> float:
    return max(WINDOW_MIN_LIGHT_AREA, room.area * specs.window_fraction_lighting)


def meets_daylight(room: Room, specs: SpecificationSet) -> bool:
    return room.window_area >= daylight_minimum(room, specs) - _EPS


def _top_up_daylight(room: Room, specs: SpecificationSet) -> Tuple[Room, List[str], List[str]]:
    """
    Append one window closing the daylight gap of *room*, if any.

    Returns the (possibly updated) room, its warning and, when the clamped
    window still falls short, a daylight conflict.
    """
    min_light = daylight_minimum(room, specs)
    current = room.window_area
    if current >= min_light - _EPS:
        return room, [], []

    window = _daylight_window(room, min_light - current)
    room = room.model_copy(update={"windows": room.windows + [window]})
    warnings = [f'Added window to "{room.name}" (~{window.area:.2f} m²) for minimum daylight.']
    conflicts = []
    if room.window_area < min_light - _EPS:
        conflicts.append(
            f'Room "{room.name}" cannot reach the minimum daylight opening of '
            f'{min_light:.2f} m² automatically (has {room.window_area:.2f} m²).'
        )
        logger.debug(f"{room.id}: daylight window clamped to {window.width}x{window.height}")
    return room, warnings, conflicts


def ensure_windows(rooms: Sequence[Room], ctx: PassContext) -> PassResult:
    """Add one window when glazing is below the daylight fraction of the floor area."""
    warnings: List[str] = []
    conflicts: List[str] = []
    out = []

    for room in rooms:
        room, new_warnings, new_conflicts = _top_up_daylight(room, ctx.specs)
        warnings.extend(new_warnings)
        conflicts.extend(new_conflicts)
        out.append(room)

    return PassResult(out, warnings, conflicts)


def ensure_ventilation(rooms: Sequence[Room], ctx: PassContext) -> PassResult:
    """
    Check the ventilation fraction after daylight sizing.

    The daylight fraction is larger than the ventilation one, so this only
    fires when the daylight window had to be clamped (very narrow or very
    large rooms). Nothing is changed; the shortfall is a conflict.
    """
    conflicts: List[str] = []
    for room in rooms:
        min_vent = room.area * ctx.specs.window_fraction_vent
        current = room.window_area
        if current < min_vent - _EPS:
            conflicts.append(
                f'Room "{room.name}" cannot reach the minimum ventilation opening of '
                f'{min_vent:.2f} m² automatically (has {current:.2f} m²).'
            )
    return PassResult(list(rooms), [], conflicts)


# ═══════════════════════════════════════════════════════════════════════════
# 6–7. CLEARANCES
# ═══════════════════════════════════════════════════════════════════════════

def _keep_daylight(before: Room, grown: Room, specs: SpecificationSet) -> Tuple[Room, List[str], List[str]]:
    """A room that was lit before growing stays lit; an unlit room is left as is."""
    if not meets_daylight(before, specs):
        return grown, [], []
    return _top_up_daylight(grown, specs)


def ensure_bathroom_clearance(rooms: Sequence[Room], ctx: PassContext) -> PassResult:
    """Bathrooms must fit the turning circle; absurd growth becomes a conflict."""
    diameter = turning_diameter(ctx)
    warnings: List[str] = []
    conflicts: List[str] = []
    out = []

    for room in rooms:
        if room.room_type == RoomType.BATHROOM and (room.width < diameter or room.height < diameter):
            need_w = max(room.width, diameter)
            need_h = max(room.height, diameter)
            if need_w > MAX_CLEARANCE_DIMENSION or need_h > MAX_CLEARANCE_DIMENSION:
                conflicts.append(
                    f'Bathroom "{room.name}" requires a {_fmt(diameter)} m turning circle '
                    f'and could not be adjusted automatically.'
                )
            else:
                grown = room.model_copy(update={"width": snap_up(need_w), "height": snap_up(need_h)})
                warnings.append(f'Adjusted "{room.name}" to allow a {_fmt(diameter)} m turning circle.')
                room, lit_warnings, lit_conflicts = _keep_daylight(room, grown, ctx.specs)
                warnings.extend(lit_warnings)
                conflicts.extend(lit_conflicts)
        out.append(room)

    return PassResult(out, warnings, conflicts)


def ensure_bedroom_free_wall(rooms: Sequence[Room], ctx: PassContext) -> PassResult:
    """A bedroom's longer edge must leave a free wall for the bed head."""
    min_free = ctx.specs.min_bedroom_free_wall
    warnings: List[str] = []
    conflicts: List[str] = []
    out = []

    for room in rooms:
        if room.room_type == RoomType.BEDROOM and max(room.width, room.height) < min_free:
            if min_free > MAX_FREE_WALL:
                conflicts.append(
                    f'Bedroom "{room.name}" lacks a free wall of {_fmt(min_free)} m '
                    f'and could not be adjusted automatically.'
                )
            else:
                if room.width >= room.height:
                    grown = room.model_copy(update={"width": snap_up(min_free)})
                else:
                    grown = room.model_copy(update={"height": snap_up(min_free)})
                warnings.append(f'Adjusted "{room.name}" to have a free wall >= {_fmt(min_free)} m.')
                room, lit_warnings, lit_conflicts = _keep_daylight(room, grown, ctx.specs)
                warnings.extend(lit_warnings)
                conflicts.extend(lit_conflicts)
        out.append(room)

    return PassResult(out, warnings, conflicts)


# ═══════════════════════════════════════════════════════════════════════════
# 8. ZONING
# ═══════════════════════════════════════════════════════════════════════════

def enforce_zoning(rooms: Sequence[Room], ctx: PassContext) -> PassResult:
    """
    Place rooms by zone.

    Social rooms stack downward at the origin column, service rooms stack in
    a second column right of the widest social room, private rooms form a
    row below both stacks. Rooms outside the three zones (balconies) keep
    their position. This separates zones; it does not pack rooms.
    """
    out = list(rooms)
    zones = {"social": [], "service": [], "private": []}
    for i, room in enumerate(out):
        zone = ZONE_MAP.get(room.room_type.value)
        if zone:
            zones[zone].append(i)

    x0, y0 = ZONE_ORIGIN

    y = y0
    for i in zones["social"]:
        out[i] = out[i].model_copy(update={"x": snap(x0), "y": snap(y)})
        y += out[i].height + ZONE_STACK_GAP

    service_x = x0 + max((out[i].width for i in zones["social"]), default=0.0) + ZONE_COLUMN_GAP
    sy = y0
    for i in zones["service"]:
        out[i] = out[i].model_copy(update={"x": snap(service_x), "y": snap(sy)})
        sy += out[i].height + ZONE_STACK_GAP

    px = x0
    py = max(y, sy) + ZONE_PRIVATE_GAP
    for i in zones["private"]:
        out[i] = out[i].model_copy(update={"x": snap(px), "y": snap(py)})
        px += out[i].width + ZONE_STACK_GAP

    logger.debug(
        f"Zoning: social={len(zones['social'])} service={len(zones['service'])} "
        f"private={len(zones['private'])}"
    )
    return PassResult(out, ["Applied logical zoning (social / service / private)."], [])


# ═══════════════════════════════════════════════════════════════════════════
# 9. KITCHEN ADJACENCY
# ═══════════════════════════════════════════════════════════════════════════

def enforce_kitchen_adjacency(rooms: Sequence[Room], ctx: PassContext) -> PassResult:
    """Pull the kitchen next to the social area when their centers are too far apart."""
    out = list(rooms)
    k = next((i for i, r in enumerate(out) if r.room_type == RoomType.KITCHEN), None)
    s = next((i for i, r in enumerate(out) if ZONE_MAP.get(r.room_type.value) == "social"), None)
    if k is None or s is None:
        return PassResult(out, [], [])

    kitchen, social = out[k], out[s]
    dx = abs(room_center(kitchen)[0] - room_center(social)[0])
    if dx <= KITCHEN_MAX_CENTER_DX:
        return PassResult(out, [], [])

    out[k] = kitchen.model_copy(update={
        "x": snap(social.x + social.width + KITCHEN_SOCIAL_GAP),
        "y": snap(social.y),
    })
    logger.debug(f"Kitchen {kitchen.id} moved next to {social.id} (dx was {dx:.2f} m)")
    return PassResult(out, [f'Kitchen "{kitchen.name}" relocated next to the social area.'], [])


# ═══════════════════════════════════════════════════════════════════════════
# 10. WET AREAS
# ═══════════════════════════════════════════════════════════════════════════

def group_wet_areas(rooms: Sequence[Room], ctx: PassContext) -> PassResult:
    """Cluster plumbing rooms around their average x, stepping each by 0.1 m."""
    out = list(rooms)
    wet = [i for i, r in enumerate(out) if r.room_type.value in WET_AREAS]
    if len(wet) <= 1:
        return PassResult(out, [], [])

    avg_x = sum(out[i].x for i in wet) / len(wet)
    for n, i in enumerate(wet):
        out[i] = out[i].model_copy(update={"x": snap(avg_x + n * WET_AREA_STEP)})

    return PassResult(out, ["Grouped wet areas to simplify plumbing runs."], [])


# ═══════════════════════════════════════════════════════════════════════════
# 11. WALL-GRID ALIGNMENT
# ═══════════════════════════════════════════════════════════════════════════

def alignment_floor(room: Room, ctx: PassContext) -> float:
    """Narrowest width the room may be aligned to without breaking its rules."""
    specs = ctx.specs
    height = max(room.height, _EPS)
    rtype = room.room_type

    if rtype == RoomType.BEDROOM:
        min_area, min_width = bedroom_minimums(classify_bedroom(room, specs), specs)
        floor = max(min_width, min_area / height)
        if height < specs.min_bedroom_free_wall:
            floor = max(floor, specs.min_bedroom_free_wall)
        return floor
    if rtype == RoomType.LIVING:
        return max(specs.min_living_width, specs.min_living_area / height)
    if rtype == RoomType.KITCHEN:
        return specs.min_kitchen_width
    if rtype == RoomType.BATHROOM:
        return max(turning_diameter(ctx), specs.min_bathroom_area / height)
    return MIN_DIMENSION


def daylight_ceiling(room: Room, specs: SpecificationSet) -> float:
    """Widest the room can get, at its current height, with the glazing it has."""
    limit = room.window_area / (specs.window_fraction_lighting * max(room.height, _EPS))
    return math.floor(round(limit / ALIGN_GRID, 6)) * ALIGN_GRID


def align_walls(rooms: Sequence[Room], ctx: PassContext) -> PassResult:
    """
    Snap room edges onto shared structural axes.

    Left and right x-edges of every room are merged into axes (see
    ``merge_axes``). Each room's left edge moves to the nearest axis and its
    width is re-derived from the axis nearest its old right edge, never below
    0.5 m. When that would narrow a room below its rulebook floor, the width
    stops at the floor (but never above the pre-alignment width). When it
    would widen a room past what its current glazing can light, the width
    stops there (but never below the pre-alignment width).
    """
    out = list(rooms)
    edges: List[float] = []
    for room in out:
        edges.extend((room.x, room.right))
    axes = merge_axes(edges)

    for i, room in enumerate(out):
        left = nearest(axes, room.x)
        right = nearest(axes, room.right)
        width = max(MIN_DIMENSION, right - left)
        if width < room.width:
            floor = snap_up(alignment_floor(room, ctx), ALIGN_GRID)
            if width < floor:
                width = min(floor, room.width)
        elif width > room.width:
            width = max(room.width, min(width, daylight_ceiling(room, ctx.specs)))
        out[i] = room.model_copy(update={
            "x": snap(left, ALIGN_GRID),
            "width": snap(width, ALIGN_GRID),
        })

    logger.debug(f"Aligned {len(out)} rooms onto {len(set(axes))} axes")
    return PassResult(out, ["Aligned walls to a simplified structural grid."], [])
