"""
Rough bill of materials for a house program.

Quantities come from simple per-square-meter ratios on the built area and
the lot perimeter; unit prices are fixed reference values (BRL). This is an
order-of-magnitude estimate, not a quantity survey.
"""

import logging
import math
from typing import Dict, List, Optional

from pydantic import BaseModel

from services.room_program import HouseProgram

logger = logging.getLogger(__name__)

CURRENCY = "BRL"

# Ratios
SLAB_DEPTH = 0.12           # m³ of concrete per m² (slab)
FOUNDATION_DEPTH = 0.03     # m³ of concrete per m² (foundation)
STEEL_PER_M2 = 8.0          # kg
WALL_HEIGHT = 3.0           # m, external walls
INTERNAL_WALL_RATIO = 0.8   # m² of internal wall per m² of floor
BLOCKS_PER_M2 = 12.5
ROOF_FACTOR = 1.3           # pitched roof area / floor area
ROOF_TIMBER_PER_M2 = 0.04   # m³
WALL_TILE_PER_BATH = 25.0   # m²
WALL_TILE_KITCHEN = 15.0    # m²
PAINT_COATS = 2
PAINT_COVERAGE = 12.0       # m² per liter
ELECTRICAL_POINTS_PER_M2 = 1.2
PLUMBING_POINTS_PER_BATH = 8
PLUMBING_POINTS_BASE = 6    # kitchen + service area

UNIT_PRICES = {
    "concrete": 380.00,
    "steel": 6.50,
    "blocks": 1.85,
    "roof_tiles": 28.50,
    "roof_structure": 2800.00,
    "ceramic_floor": 45.80,
    "wall_tiles": 38.90,
    "paint": 85.00,
    "windows": 420.00,
    "doors": 320.00,
    "electrical": 85.00,
    "plumbing": 120.00,
}


class MaterialItem(BaseModel):
    id: str
    category: str
    name: str
    unit: str
    quantity: float
    unit_price: float
    total_price: float
    specification: str


class MaterialEstimate(BaseModel):
    built_area: float
    currency: str = CURRENCY
    items: List[MaterialItem]
    total_cost: float

    def by_category(self) -> Dict[str, List[MaterialItem]]:
        groups: Dict[str, List[MaterialItem]] = {}
        for item in self.items:
            groups.setdefault(item.category, []).append(item)
        return groups


def _item(item_id: str, category: str, name: str, unit: str,
          quantity: float, specification: str) -> MaterialItem:
    unit_price = UNIT_PRICES[item_id]
    return MaterialItem(
        id=item_id,
        category=category,
        name=name,
        unit=unit,
        quantity=quantity,
        unit_price=unit_price,
        total_price=round(quantity * unit_price, 2),
        specification=specification,
    )


def estimate_materials(program: HouseProgram, built_area: Optional[float] = None) -> MaterialEstimate:
    """
    Estimate quantities and cost for *program*.

    ``built_area`` (m²) defaults to the program's target area; pass the area
    of the adjusted layout to estimate what the engine actually produced.
    """
    area = built_area if built_area is not None else program.total_area

    perimeter = 2 * program.lot_width + 2 * program.lot_depth
    wall_area = perimeter * WALL_HEIGHT + area * INTERNAL_WALL_RATIO
    roof_area = area * ROOF_FACTOR

    items = [
        # Structure
        _item("concrete", "Structure", "Ready-mix concrete FCK 25", "m³",
              round(area * (SLAB_DEPTH + FOUNDATION_DEPTH), 2),
              "Pumped, with plasticizer"),
        _item("steel", "Structure", "CA-50 rebar", "kg",
              round(area * STEEL_PER_M2),
              "6 mm to 20 mm bars, cut and bent"),
        # Masonry
        _item("blocks", "Masonry", "Ceramic block 14x19x39 cm", "unit",
              math.ceil(wall_area * BLOCKS_PER_M2),
              "Horizontal holes, class 2.5 MPa"),
        # Roofing
        _item("roof_tiles", "Roofing", "Ceramic roof tile", "m²",
              round(roof_area, 2),
              "Natural color, first grade"),
        _item("roof_structure", "Roofing", "Roof framing timber", "m³",
              round(roof_area * ROOF_TIMBER_PER_M2, 2),
              "Treated timber, mixed sections"),
        # Finishes
        _item("ceramic_floor", "Finishes", "Ceramic floor tile 60x60 cm", "m²",
              round(area, 2),
              "Rectified, PEI 4, non-slip"),
        _item("wall_tiles", "Finishes", "Ceramic wall tile 30x60 cm", "m²",
              round(program.bathrooms * WALL_TILE_PER_BATH + WALL_TILE_KITCHEN, 2),
              "Glossy, first grade"),
        # Painting
        _item("paint", "Painting", "Premium acrylic paint", "l",
              math.ceil(wall_area * PAINT_COATS / PAINT_COVERAGE),
              "Washable, off-white"),
        # Frames
        _item("windows", "Frames", "Aluminium windows", "unit",
              program.bedrooms + 2 + program.bathrooms,
              "Tempered glass, hardware included"),
        _item("doors", "Frames", "Timber doors", "unit",
              program.bedrooms + program.bathrooms + 2,
              "Solid wood, frame and hardware"),
        # Installations
        _item("electrical", "Installations", "Electrical material", "point",
              math.ceil(area * ELECTRICAL_POINTS_PER_M2),
              "Wiring, breakers, sockets, switches"),
        _item("plumbing", "Installations", "Plumbing material", "point",
              program.bathrooms * PLUMBING_POINTS_PER_BATH + PLUMBING_POINTS_BASE,
              "PVC pipes, fittings, valves, basic fixtures"),
    ]

    total = round(sum(i.total_price for i in items), 2)
    logger.debug(f"Material estimate for {area:.1f} m²: {len(items)} items, {total:.2f} {CURRENCY}")
    return MaterialEstimate(built_area=round(area, 2), items=items, total_cost=total)
