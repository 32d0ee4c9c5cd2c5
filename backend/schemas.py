"""Pydantic schemas for API request/response validation."""

from typing import List, Optional

from pydantic import BaseModel, Field

from services.constraint_engine import (
    BuildingParameters,
    Room,
    SpecificationOverrides,
)
from services.materials import MaterialEstimate
from services.room_program import HouseProgram


# ---------- Constraint Engine ----------
class EnforceRequest(BaseModel):
    rooms: List[Room] = Field(..., description="Rooms in their initial, unconstrained geometry")
    building: BuildingParameters
    specifications: Optional[SpecificationOverrides] = None


class EnforceResponse(BaseModel):
    rooms: List[Room]
    warnings: List[str] = []
    conflicts: Optional[List[str]] = None


# ---------- Plan Generation ----------
class PlanRequest(HouseProgram):
    specifications: Optional[SpecificationOverrides] = None


class PlanResponse(BaseModel):
    rooms: List[Room]
    warnings: List[str] = []
    conflicts: Optional[List[str]] = None
    spec_sheet: dict
    materials: MaterialEstimate
