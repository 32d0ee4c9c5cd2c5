"""
Room data model for the constraint engine.

Rooms are axis-aligned rectangles in meters with the origin at the top-left
corner of the plan. Openings (windows / doors) are closed record types whose
missing numeric fields are filled with ``0`` during validation, so rule passes
never have to guess at ``None``.
"""

from enum import Enum
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RoomType(str, Enum):
    BEDROOM = "bedroom"
    BATHROOM = "bathroom"
    LIVING = "living"
    KITCHEN = "kitchen"
    GARAGE = "garage"
    BALCONY = "balcony"
    SERVICE = "service"
    OTHER = "other"


class Occupancy(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"


class WindowOpening(BaseModel):
    """A window on the room perimeter. ``x``/``y`` are offsets inside the room."""

    width: float = Field(default=0.0, ge=0)
    height: float = Field(default=0.0, ge=0)
    x: float = Field(default=0.0, ge=0)
    y: float = Field(default=0.0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _fill_missing(cls, data):
        return _fill_none(data, ("width", "height", "x", "y"))

    @property
    def area(self) -> float:
        return self.width * self.height


class DoorOpening(BaseModel):
    """A door on the room perimeter. Width ``0`` means "not sized yet"."""

    width: float = Field(default=0.0, ge=0)
    x: float = Field(default=0.0, ge=0)
    y: float = Field(default=0.0, ge=0)
    entrance: bool = False

    @model_validator(mode="before")
    @classmethod
    def _fill_missing(cls, data):
        return _fill_none(data, ("width", "x", "y"))


class Room(BaseModel):
    """One enclosed space of the plan."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    id: str = Field(..., min_length=1)
    name: str
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)
    x: float = Field(default=0.0, ge=0)
    y: float = Field(default=0.0, ge=0)
    room_type: RoomType = Field(default=RoomType.OTHER, alias="type")
    wall_thickness: Optional[float] = Field(default=None, gt=0)
    occupancy: Optional[Occupancy] = None
    windows: List[WindowOpening] = Field(default_factory=list)
    doors: List[DoorOpening] = Field(default_factory=list)

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def window_area(self) -> float:
        return sum(w.area for w in self.windows)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def __repr__(self) -> str:
        return (
            f"Room(id={self.id!r}, type={self.room_type.value}, "
            f"pos=({self.x:.2f},{self.y:.2f}), size={self.width:.2f}x{self.height:.2f})"
        )


class BuildingParameters(BaseModel):
    """Read-only building inputs for one pipeline run."""

    model_config = ConfigDict(frozen=True)

    lot_width: float = Field(..., gt=0)
    lot_depth: float = Field(..., gt=0)
    bedrooms: int = Field(..., ge=0)
    total_area: Optional[float] = Field(default=None, gt=0)
    accessible: bool = False


class PipelineResult(BaseModel):
    """Adjusted rooms plus the ordered diagnostics of one run."""

    rooms: List[Room]
    warnings: List[str] = Field(default_factory=list)
    conflicts: Optional[List[str]] = None

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class PassResult(NamedTuple):
    """What every rule pass returns."""

    rooms: List[Room]
    warnings: List[str]
    conflicts: List[str]


def _fill_none(data, fields):
    if isinstance(data, dict):
        data = dict(data)
        for key in fields:
            if data.get(key) is None:
                data[key] = 0.0
    return data
