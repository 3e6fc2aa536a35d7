"""Cell state routes: read, patch and reset the simulated cell."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from workcell.api.deps import get_workcell
from workcell.api.schemas import CellSnapshot, ResetRequest, StateUpdateRequest
from workcell.cell.workcell import Workcell
from workcell.errors import CellStateError, WorkcellError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=CellSnapshot)
async def get_state(workcell: Workcell = Depends(get_workcell)) -> CellSnapshot:
    """Return the current cell state."""
    return CellSnapshot.from_state(workcell.state)


@router.post("", response_model=CellSnapshot)
async def update_state(
    request: StateUpdateRequest,
    workcell: Workcell = Depends(get_workcell),
) -> CellSnapshot:
    """Apply a partial state update.

    Rejected with 422 if an id is unknown or a value breaks a cell
    invariant; nothing is written in that case.
    """
    try:
        await workcell.update_state(
            arms={k: v.model_dump(exclude_none=True) for k, v in request.arms.items()},
            pushers={k: v.model_dump(exclude_none=True) for k, v in request.pushers.items()},
            magazine_count=request.magazine_count,
            workpiece_pushed=request.workpiece_pushed,
            status=request.status,
        )
    except CellStateError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    logger.info("Cell state updated via API")
    return CellSnapshot.from_state(workcell.state)


@router.post("/reset", response_model=CellSnapshot)
async def reset_state(
    body: ResetRequest,
    request: Request,
    workcell: Workcell = Depends(get_workcell),
) -> CellSnapshot:
    """Reset the cell to its power-on state, optionally switching layout."""
    try:
        await workcell.reset(body.layout)
    except WorkcellError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    request.app.state.planner.registry = workcell.registry
    return CellSnapshot.from_state(workcell.state)
