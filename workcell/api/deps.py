"""FastAPI dependencies resolving the collaborators stored on ``app.state``."""

from __future__ import annotations

from fastapi import Request

from workcell.cell.workcell import Workcell
from workcell.evaluation.store import EvaluationRecorder
from workcell.planning.ai_planner import AIPlanner


def get_workcell(request: Request) -> Workcell:
    return request.app.state.workcell


def get_planner(request: Request) -> AIPlanner:
    return request.app.state.planner


def get_recorder(request: Request) -> EvaluationRecorder:
    return request.app.state.recorder
