"""FastAPI application for the workcell simulator.

The app owns exactly one :class:`~workcell.cell.workcell.Workcell`, one
plan generator and one evaluation recorder, all stored on ``app.state``
and handed to routes through the dependencies in :mod:`workcell.api.deps`.

Run with::

    uvicorn workcell.api.app:app --reload
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from workcell import __version__
from workcell.api.routes import evaluations, plans, skills, state
from workcell.cell.workcell import Workcell
from workcell.config import Settings, configure_logging, get_settings
from workcell.evaluation.store import EvaluationRecorder, EvaluationStore
from workcell.planning.ai_planner import AIPlanner

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application and its collaborators.

    Args:
        settings: Runtime settings; read from the environment when omitted.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Workcell API starting (layout=%s)", app.state.workcell.layout.name)
        yield
        app.state.workcell.close()
        logger.info("Workcell API stopped")

    app = FastAPI(title="Workcell Planner", version=__version__, lifespan=lifespan)

    workcell = Workcell(settings.layout, settings)
    app.state.settings = settings
    app.state.workcell = workcell
    app.state.planner = AIPlanner(
        workcell.registry,
        api_key=settings.anthropic_api_key,
        model=settings.model,
    )
    app.state.recorder = EvaluationRecorder(EvaluationStore(settings.evaluations_dir))

    app.include_router(state.router, prefix="/simulation-state", tags=["state"])
    app.include_router(skills.router, prefix="/skills", tags=["skills"])
    app.include_router(plans.router, tags=["plans"])
    app.include_router(evaluations.router, prefix="/evaluations", tags=["evaluations"])

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
