"""Plan runner: drives an ordered skill list through the executor.

Execution policy:

* Steps run strictly in plan order, each against the state left by the
  previous one.
* The run halts at the first failing step (unknown skill or unmet
  precondition). Unknown ids are found at their step, so the valid prefix
  before them still runs.
* Completed steps are never rolled back.
* Costs are recomputed from the skill registry; totals declared by the
  planner are kept for audit only.

Whole runs are serialized per runner. Single skills sent straight to the
executor may still land between two steps of a running plan.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence

from workcell.cell.layout import SkillCost
from workcell.cell.state import CellStatus
from workcell.execution.executor import SkillExecutor
from workcell.execution.types import PlanExecutionResult, StepResult

logger = logging.getLogger(__name__)

StepCallback = Callable[[StepResult], None]


class PlanRunner:
    """Execute plans one skill at a time.

    Args:
        executor: Executor owning the cell state.
    """

    def __init__(self, executor: SkillExecutor) -> None:
        self._executor = executor
        self._run_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    async def _set_status(self, status: CellStatus) -> None:
        async with self._executor.lock:
            self._executor.state.status = status

    async def run(
        self,
        plan: Sequence[str],
        declared: SkillCost | None = None,
        on_step: StepCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> PlanExecutionResult:
        """Run *plan* to completion or to its first failing step.

        Args:
            plan: Skill identifiers in execution order.
            declared: Cost totals claimed by the planner, if any.
            on_step: Called after every step with its result.
            cancel: Checked before each step; once set, the run stops at
                that step boundary.

        Returns:
            PlanExecutionResult with one entry per attempted step.
        """
        async with self._run_lock:
            registry = self._executor.registry
            result = PlanExecutionResult(
                declared_cost=declared,
                planned_cost=registry.cost_of(plan),
            )
            logger.info("Running plan of %d step(s): %s", len(plan), list(plan))
            if plan:
                await self._set_status(CellStatus.BUSY)

            actual = SkillCost.zero()
            for index, skill_id in enumerate(plan):
                if cancel is not None and cancel.is_set():
                    logger.info("Plan cancelled before step %d (%s)", index, skill_id)
                    result.cancelled = True
                    await self._set_status(CellStatus.IDLE)
                    break

                start = time.monotonic()
                outcome = await self._executor.execute(skill_id)
                step = StepResult(
                    index=index,
                    skill_id=skill_id,
                    success=outcome.success,
                    message=outcome.message,
                    cost=outcome.cost,
                    duration_ms=(time.monotonic() - start) * 1000,
                )
                result.steps.append(step)
                if on_step is not None:
                    on_step(step)

                if not step.success:
                    result.failed_step = index
                    logger.warning(
                        "Plan halted at step %d (%s): %s", index, skill_id, step.message
                    )
                    break
                actual = actual + step.cost

            result.actual_cost = actual.rounded()
            result.final_state = self._executor.state.physical()
            result.success = (
                not result.cancelled
                and result.failed_step is None
                and len(result.steps) == len(plan)
            )

        if result.success:
            logger.info(
                "Plan complete: %d step(s), energy=%g time=%g wear=%g",
                len(result.steps),
                result.actual_cost.energy,
                result.actual_cost.time,
                result.actual_cost.wear,
            )
        discrepancy = result.cost_discrepancy()
        if discrepancy is not None and discrepancy != SkillCost.zero():
            logger.info("Declared cost differs from registry cost by %s", discrepancy)
        return result
