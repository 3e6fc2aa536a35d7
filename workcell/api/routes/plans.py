"""Plan routes: run explicit plans, and the LLM-backed agents.

``POST /plans/run`` executes a caller-supplied plan. ``POST /planning-agent``
asks the plan generator for a plan and runs it; ``POST /simple-agent``
asks for a single skill and executes it. A generator failure is returned
as 502 before anything touches the cell. Step failures are part of a
normal 200 response.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from workcell.api.deps import get_planner, get_workcell
from workcell.api.schemas import (
    AgentRequest,
    CellSnapshot,
    CostModel,
    PlanRunRequest,
    PlanRunResponse,
    SimpleAgentResponse,
    StepResultResponse,
)
from workcell.cell.workcell import Workcell
from workcell.errors import PlannerError
from workcell.execution.types import PlanExecutionResult
from workcell.planning.ai_planner import AIPlanner

logger = logging.getLogger(__name__)

router = APIRouter()


def _build_response(
    plan: list[str],
    result: PlanExecutionResult,
    workcell: Workcell,
    *,
    explanation: str | None = None,
    model_name: str | None = None,
) -> dict:
    response = PlanRunResponse(
        success=result.success,
        plan=plan,
        steps=[
            StepResultResponse(
                index=s.index,
                skill_id=s.skill_id,
                success=s.success,
                message=s.message,
                cost=CostModel.from_cost(s.cost),
                duration_ms=round(s.duration_ms, 3),
            )
            for s in result.steps
        ],
        results=result.log_lines(),
        failed_step=result.failed_step,
        cancelled=result.cancelled,
        unknown_skills=workcell.registry.unknown_skills(plan),
        declared_cost=(
            CostModel.from_cost(result.declared_cost) if result.declared_cost else None
        ),
        planned_cost=CostModel.from_cost(result.planned_cost),
        actual_cost=CostModel.from_cost(result.actual_cost),
        explanation=explanation,
        model_name=model_name,
        simulation_state=CellSnapshot.from_state(workcell.state),
    )
    return response.model_dump(by_alias=True)


@router.post("/plans/run")
async def run_plan(
    request: PlanRunRequest,
    workcell: Workcell = Depends(get_workcell),
) -> dict:
    """Run a plan supplied by the caller."""
    result = await workcell.run(request.plan, declared=request.declared_cost())
    return _build_response(request.plan, result, workcell)


@router.post("/planning-agent")
async def planning_agent(
    request: AgentRequest,
    workcell: Workcell = Depends(get_workcell),
    planner: AIPlanner = Depends(get_planner),
) -> dict:
    """Generate a plan for ``query`` and run it against the cell."""
    if not request.query.strip():
        raise HTTPException(status_code=400, detail="Missing required parameter: query")

    logger.info("Planning agent received query: %r", request.query)
    try:
        generated = await planner.generate_plan(
            request.query,
            workcell.state.describe(),
            model_name=request.model_name,
        )
    except PlannerError as e:
        raise HTTPException(status_code=502, detail=f"Failed to generate plan: {e}") from e

    result = await workcell.run(generated.plan, declared=generated.declared_cost)
    return _build_response(
        generated.plan,
        result,
        workcell,
        explanation=generated.explanation,
        model_name=generated.model_name,
    )


@router.post("/simple-agent")
async def simple_agent(
    request: AgentRequest,
    workcell: Workcell = Depends(get_workcell),
    planner: AIPlanner = Depends(get_planner),
) -> dict:
    """Pick the single best skill for ``query`` and execute it."""
    if not request.query.strip():
        raise HTTPException(status_code=400, detail="Missing required parameter: query")

    try:
        choice = await planner.select_skill(
            request.query,
            workcell.state.describe(),
            model_name=request.model_name,
        )
    except PlannerError as e:
        raise HTTPException(status_code=502, detail=f"Failed to select skill: {e}") from e

    outcome = await workcell.execute(choice.skill)
    response = SimpleAgentResponse(
        skill=choice.skill,
        explanation=choice.explanation,
        model_name=choice.model_name,
        success=outcome.success,
        message=outcome.message,
        simulation_state=CellSnapshot.from_state(outcome.state),
    )
    return response.model_dump(by_alias=True)
