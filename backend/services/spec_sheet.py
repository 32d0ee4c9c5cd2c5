"""Specification sheet derived from an adjusted layout."""

import logging
from typing import Dict, List

from services.constraint_engine import (
    PipelineResult,
    SpecificationSet,
    detect_overlaps,
)
from services.room_program import HouseProgram

logger = logging.getLogger(__name__)

# Standard openings printed on the sheet: (width, height) in meters
STANDARD_OPENINGS = {
    "main_door": (0.90, 2.10),
    "internal_doors": (0.80, 2.10),
    "living_windows": (1.20, 1.20),
    "bedroom_windows": (1.00, 1.20),
}


def _room_rows(result: PipelineResult) -> List[Dict]:
    rows = []
    for r in result.rooms:
        rows.append({
            "id": r.id,
            "name": r.name,
            "type": r.room_type.value,
            "width": r.width,
            "height": r.height,
            "area": round(r.area, 2),
            "position": {"x": r.x, "y": r.y},
            "wall_thickness": r.wall_thickness,
            "window_area": round(r.window_area, 2),
            "doors": len(r.doors),
        })
    return rows


def build_spec_sheet(
    program: HouseProgram,
    result: PipelineResult,
    specs: SpecificationSet,
) -> Dict:
    """
    Summarize the adjusted plan: room table, areas, structure defaults,
    standard openings and the diagnostics of the constraint run.

    Overlaps are reported, not fixed: the engine separates zones but does
    not pack rooms.
    """
    rooms = result.rooms
    total_area = round(sum(r.area for r in rooms), 2)
    lot_area = program.lot_width * program.lot_depth

    extent_x = max((r.right for r in rooms), default=0.0)
    extent_y = max((r.bottom for r in rooms), default=0.0)

    names = {r.id: r.name for r in rooms}
    overlaps = [
        {"a": names[a], "b": names[b]}
        for a, b in detect_overlaps(rooms)
    ]
    if overlaps:
        logger.info(f"Spec sheet: {len(overlaps)} overlapping room pair(s)")

    conflicts = result.conflicts or []
    return {
        "summary": {
            "bedrooms": program.bedrooms,
            "bathrooms": program.bathrooms,
            "has_garage": program.has_garage,
            "has_balcony": program.has_balcony,
            "style": program.style,
            "lot": {"width": program.lot_width, "depth": program.lot_depth, "area": round(lot_area, 2)},
            "target_area": program.total_area,
            "built_area": total_area,
            "lot_coverage": round(total_area / lot_area, 3) if lot_area > 0 else 0.0,
        },
        "rooms": _room_rows(result),
        "structure": {
            "wall_external": specs.wall_external,
            "wall_internal": specs.wall_internal,
            "ceiling_min": specs.ceiling_min,
            "short_ceiling_min": specs.short_ceiling_min,
            "corridor_width": specs.corridor_width,
        },
        "openings": {
            key: {"width": w, "height": h} for key, (w, h) in STANDARD_OPENINGS.items()
        },
        "layout": {
            "extent": {"width": round(extent_x, 2), "depth": round(extent_y, 2)},
            "fits_lot": extent_x <= program.lot_width and extent_y <= program.lot_depth,
            "overlaps": overlaps,
        },
        "diagnostics": {
            "adjustments": len(result.warnings) - len(conflicts),
            "conflicts": len(conflicts),
        },
    }
