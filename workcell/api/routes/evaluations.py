"""Evaluation routes: user feedback on generated plans."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from workcell.api.deps import get_recorder
from workcell.api.schemas import (
    EvaluationRecord,
    EvaluationRequest,
    EvaluationSummary,
    RecordResult,
)
from workcell.errors import RecorderError
from workcell.evaluation.store import EvaluationRecorder

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=RecordResult, status_code=201)
async def record_evaluation(
    request: EvaluationRequest,
    recorder: EvaluationRecorder = Depends(get_recorder),
) -> RecordResult:
    """Record whether a generated plan was correct."""
    try:
        return recorder.record(
            model_name=request.model_name,
            user_query=request.user_query,
            actions=request.actions,
            is_correct=request.is_correct,
            explanation=request.explanation,
            user_feedback=request.user_feedback,
            initial_state=request.initial_state,
            timestamp=request.timestamp,
        )
    except RecorderError as e:
        logger.error("Evaluation could not be recorded: %s", e)
        raise HTTPException(status_code=503, detail=str(e)) from e


@router.get("", response_model=list[EvaluationRecord])
async def list_evaluations(
    limit: int = Query(100, ge=1),
    recorder: EvaluationRecorder = Depends(get_recorder),
) -> list[EvaluationRecord]:
    """List recorded evaluations, newest first."""
    return recorder.list()[:limit]


@router.get("/summary", response_model=list[EvaluationSummary])
async def evaluation_summary(
    recorder: EvaluationRecorder = Depends(get_recorder),
) -> list[EvaluationSummary]:
    """Per-model accuracy across all recorded evaluations."""
    return recorder.summary()
