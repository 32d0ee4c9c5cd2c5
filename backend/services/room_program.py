"""
Room program generator: turns a house program into a naive room list.

This is the collaborator that feeds the constraint engine: it decides which
rooms the house has and roughly how big they are, then drops them on the lot
in plain rows. It makes no attempt to satisfy the rulebook; that is the
engine's job (``services.constraint_engine.enforce_constraints``).
"""

import logging
import math
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from services.constraint_engine import (
    BuildingParameters,
    DoorOpening,
    Room,
    RoomType,
    WindowOpening,
    snap,
)

logger = logging.getLogger(__name__)


class HouseProgram(BaseModel):
    """What the user asked for."""

    lot_width: float = Field(default=12.0, gt=0, le=200, description="Lot width (m)")
    lot_depth: float = Field(default=20.0, gt=0, le=200, description="Lot depth (m)")
    total_area: float = Field(default=120.0, gt=0, le=2000, description="Target built area (m²)")
    bedrooms: int = Field(default=3, ge=0, le=8)
    bathrooms: int = Field(default=2, ge=1, le=6)
    has_garage: bool = True
    has_balcony: bool = True
    accessible: bool = False
    style: str = "modern_minimalist"


# ═══════════════════════════════════════════════════════════════════════════
# ROOM CATALOGUE
# ═══════════════════════════════════════════════════════════════════════════

# Nominal areas (m²) of the standard program
AREA_LIVING = 25.5
AREA_KITCHEN = 12.8
AREA_SERVICE = 6.2
AREA_MASTER_SUITE = 15.6
AREA_SUITE_BATH = 4.8
AREA_BEDROOMS = (11.2, 9.8)   # second bedroom, then every further one
AREA_SOCIAL_BATH = 4.2
AREA_POWDER_ROOM = 2.5
AREA_GARAGE = 15.0
AREA_BALCONY = 8.5

# width / height ratio used to turn an area into a rectangle
ASPECT = {
    RoomType.LIVING:   1.5,
    RoomType.KITCHEN:  1.0,
    RoomType.SERVICE:  0.6,
    RoomType.BEDROOM:  1.1,
    RoomType.BATHROOM: 0.7,
    RoomType.GARAGE:   0.6,
    RoomType.BALCONY:  3.0,
    RoomType.OTHER:    1.0,
}

# Default window per room type: (width, height)
DEFAULT_WINDOWS = {
    RoomType.LIVING:   (1.2, 1.2),
    RoomType.BEDROOM:  (1.0, 1.2),
    RoomType.KITCHEN:  (0.6, 0.6),
    RoomType.BATHROOM: (0.6, 0.6),
}

ENTRANCE_DOOR_WIDTH = 0.9
INTERNAL_DOOR_WIDTH = 0.8


def _slug(name: str) -> str:
    return "-".join(name.lower().replace("/", " ").split())


def _rect(room_type: RoomType, area: float) -> Tuple[float, float]:
    ratio = ASPECT.get(room_type, 1.0)
    width = math.sqrt(area * ratio)
    return snap(width), snap(area / width)


def program_rooms(program: HouseProgram) -> List[Tuple[str, RoomType, float]]:
    """(name, type, nominal area) for every room of the program, in order."""
    rooms = [
        ("Living/Dining", RoomType.LIVING, AREA_LIVING),
        ("Kitchen", RoomType.KITCHEN, AREA_KITCHEN),
        ("Service Area", RoomType.SERVICE, AREA_SERVICE),
    ]

    baths_left = program.bathrooms
    if program.bedrooms >= 1:
        rooms.append(("Master Suite", RoomType.BEDROOM, AREA_MASTER_SUITE))
        rooms.append(("Suite Bathroom", RoomType.BATHROOM, AREA_SUITE_BATH))
        baths_left -= 1
    for n in range(2, program.bedrooms + 1):
        area = AREA_BEDROOMS[0] if n == 2 else AREA_BEDROOMS[1]
        rooms.append((f"Bedroom {n}", RoomType.BEDROOM, area))

    if baths_left > 0:
        rooms.append(("Social Bathroom", RoomType.BATHROOM, AREA_SOCIAL_BATH))
        baths_left -= 1
    for n in range(1, baths_left + 1):
        name = "Powder Room" if n == 1 else f"Powder Room {n}"
        rooms.append((name, RoomType.BATHROOM, AREA_POWDER_ROOM))

    if program.has_garage:
        rooms.append(("Garage", RoomType.GARAGE, AREA_GARAGE))
    if program.has_balcony:
        rooms.append(("Balcony", RoomType.BALCONY, AREA_BALCONY))
    return rooms


def generate_room_program(program: HouseProgram) -> List[Room]:
    """
    Build the initial, unconstrained room list.

    Rooms are packed left to right in rows across the lot width; a room that
    does not fit the current row starts a new one. Rows may run past the lot
    depth; nothing here checks overlaps or minimums.
    """
    rooms: List[Room] = []
    x = y = 0.0
    row_height = 0.0

    for name, room_type, area in program_rooms(program):
        width, height = _rect(room_type, area)
        if x > 0 and x + width > program.lot_width:
            x = 0.0
            y += row_height
            row_height = 0.0

        windows = []
        if room_type in DEFAULT_WINDOWS:
            w, h = DEFAULT_WINDOWS[room_type]
            windows.append(WindowOpening(width=w, height=h))

        if room_type == RoomType.LIVING:
            doors = [DoorOpening(width=ENTRANCE_DOOR_WIDTH, entrance=True)]
        elif room_type == RoomType.BALCONY:
            doors = []
        else:
            doors = [DoorOpening(width=INTERNAL_DOOR_WIDTH)]

        rooms.append(Room(
            id=_slug(name),
            name=name,
            width=width,
            height=height,
            x=snap(x),
            y=snap(y),
            room_type=room_type,
            windows=windows,
            doors=doors,
        ))
        x += width
        row_height = max(row_height, height)

    logger.info(
        f"Generated {len(rooms)} rooms for {program.bedrooms} bed / "
        f"{program.bathrooms} bath on {program.lot_width}x{program.lot_depth} m lot"
    )
    return rooms


def to_building_parameters(program: HouseProgram, total_area: Optional[float] = None) -> BuildingParameters:
    return BuildingParameters(
        lot_width=program.lot_width,
        lot_depth=program.lot_depth,
        bedrooms=program.bedrooms,
        total_area=total_area or program.total_area,
        accessible=program.accessible,
    )
