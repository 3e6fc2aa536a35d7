"""Skill routes: list the catalog and execute single skills."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from workcell.api.deps import get_workcell
from workcell.api.schemas import CellSnapshot, CostModel, SkillInfo, SkillRequest, SkillResponse
from workcell.cell.workcell import Workcell

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[SkillInfo])
async def list_skills(workcell: Workcell = Depends(get_workcell)) -> list[SkillInfo]:
    """List the skills of the current layout with their costs."""
    return [
        SkillInfo(
            id=s.id,
            kind=s.kind.value,
            target=s.target,
            description=s.description,
            cost=CostModel.from_cost(s.cost),
        )
        for s in workcell.registry.definitions
    ]


@router.post("")
async def execute_skill(
    request: SkillRequest,
    workcell: Workcell = Depends(get_workcell),
) -> dict:
    """Execute one skill.

    Precondition failures and unknown skills are reported in the body
    with ``success: false``, not as HTTP errors.
    """
    if not request.skill.strip():
        raise HTTPException(status_code=400, detail="Missing required parameter: skill")

    logger.info("Received request to execute skill: %s", request.skill)
    outcome = await workcell.execute(request.skill)
    response = SkillResponse(
        success=outcome.success,
        message=outcome.message,
        simulation_state=CellSnapshot.from_state(outcome.state),
    )
    return response.model_dump(by_alias=True)
