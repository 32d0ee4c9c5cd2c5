"""
Constraint Engine API Route.

Endpoints:
  GET  /api/constraints/specifications - effective rulebook
  POST /api/constraints/enforce        - run the rule passes over a room list
"""

import logging
from fastapi import APIRouter, HTTPException

from schemas import EnforceRequest, EnforceResponse
from services.constraint_engine import (
    SpecificationSet,
    enforce_constraints,
    load_house_specifications,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/constraints", tags=["constraints"])


@router.get("/specifications", response_model=SpecificationSet)
async def get_specifications():
    """Rulebook in effect: built-in defaults plus the deployment overrides file."""
    return load_house_specifications()


@router.post("/enforce", response_model=EnforceResponse)
async def enforce(req: EnforceRequest):
    """
    Rewrite the given rooms so they satisfy the rulebook.

    Rule violations that could not be fixed come back as ``conflicts``
    (also mirrored into ``warnings``); they are not errors.
    """
    try:
        specs = load_house_specifications(req.specifications)
        result = enforce_constraints(req.rooms, req.building, specs=specs)
    except ValueError as e:  # LayoutInputError or a bad rulebook override
        raise HTTPException(status_code=422, detail=str(e))

    return EnforceResponse(
        rooms=result.rooms,
        warnings=result.warnings,
        conflicts=result.conflicts,
    )
