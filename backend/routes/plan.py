"""
Plan Generation API Route.

Turns a house program into a constrained floor plan, a specification sheet
and a rough bill of materials.

Endpoints:
  POST /api/plan/generate - program → rooms → constraint engine → sheet + BOM
"""

import logging
from fastapi import APIRouter, HTTPException

from schemas import PlanRequest, PlanResponse
from services.constraint_engine import (
    enforce_constraints,
    load_house_specifications,
)
from services.materials import estimate_materials
from services.room_program import HouseProgram, generate_room_program, to_building_parameters
from services.spec_sheet import build_spec_sheet

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/plan", tags=["plan"])


@router.post("/generate", response_model=PlanResponse)
async def generate_plan(req: PlanRequest):
    """Generate, constrain and summarize a floor plan for the given program."""
    program = HouseProgram(**req.model_dump(exclude={"specifications"}))
    try:
        specs = load_house_specifications(req.specifications)
        rooms = generate_room_program(program)
        result = enforce_constraints(rooms, to_building_parameters(program), specs=specs)
    except ValueError as e:  # LayoutInputError or a bad rulebook override
        raise HTTPException(status_code=422, detail=str(e))

    sheet = build_spec_sheet(program, result, specs)
    materials = estimate_materials(program, built_area=sheet["summary"]["built_area"])
    logger.info(
        f"Plan generated: {len(result.rooms)} rooms, "
        f"{len(result.conflicts or [])} conflict(s), cost {materials.total_cost:.2f}"
    )

    return PlanResponse(
        rooms=result.rooms,
        warnings=result.warnings,
        conflicts=result.conflicts,
        spec_sheet=sheet,
        materials=materials,
    )
