"""The workcell: one owned cell state with its executor and plan runner."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from workcell.cell.layout import CellLayout, SkillCost, get_layout
from workcell.cell.skills import SkillRegistry
from workcell.cell.state import CellState, SpeedClass
from workcell.config import Settings
from workcell.execution.executor import SkillExecutor
from workcell.execution.runner import PlanRunner
from workcell.execution.types import PlanExecutionResult, SkillOutcome

logger = logging.getLogger(__name__)


class Workcell:
    """Owner of a single :class:`CellState`.

    Every mutation goes through the executor (single skills) or the runner
    (plans). Create one per process, or one per test.

    Args:
        layout: Cell layout, or the name of a standard layout.
        settings: Supplies the pusher retraction delays.
    """

    def __init__(
        self,
        layout: CellLayout | str = "single",
        settings: Settings | None = None,
    ) -> None:
        if isinstance(layout, str):
            layout = get_layout(layout)
        settings = settings or Settings()
        self.state = CellState.from_layout(layout)
        self.executor = SkillExecutor(
            self.state,
            SkillRegistry(layout),
            retraction_delays={
                SpeedClass.SLOW: settings.slow_retract_s,
                SpeedClass.FAST: settings.fast_retract_s,
            },
        )
        self.runner = PlanRunner(self.executor)
        logger.info("Workcell ready with layout '%s'", layout.name)

    @property
    def registry(self) -> SkillRegistry:
        return self.executor.registry

    @property
    def layout(self) -> CellLayout:
        return self.executor.registry.layout

    async def execute(self, skill_id: str) -> SkillOutcome:
        return await self.executor.execute(skill_id)

    async def run(
        self,
        plan: Sequence[str],
        declared: SkillCost | None = None,
        **kwargs,
    ) -> PlanExecutionResult:
        return await self.runner.run(plan, declared=declared, **kwargs)

    async def update_state(self, **fields) -> None:
        """Apply a partial state update under the executor lock.

        Pushers cleared by the update lose their pending retraction.

        Raises:
            CellStateError: If the update is rejected; nothing is written.
        """
        async with self.executor.lock:
            self.state.update(**fields)
            for pusher_id, pusher_fields in (fields.get("pushers") or {}).items():
                if pusher_fields.get("active") is False:
                    self.executor.cancel_retraction(pusher_id)

    async def reset(self, layout: CellLayout | str | None = None) -> None:
        if isinstance(layout, str):
            layout = get_layout(layout)
        await self.executor.reset(layout)

    def close(self) -> None:
        """Cancel pending timers; call on shutdown."""
        self.executor.cancel_retractions()
