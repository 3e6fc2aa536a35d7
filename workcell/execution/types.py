"""Execution layer type definitions.

Shared types used by the skill executor, the plan runner and the API.
Defined separately to avoid circular imports between modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from workcell.cell.layout import SkillCost
from workcell.cell.state import CellState


@dataclass
class SkillOutcome:
    """Result of one skill attempt against the cell.

    Attributes:
        skill_id: Identifier as submitted.
        success: Whether the transition was applied.
        message: Success message or failure reason.
        state: The cell state after the attempt (the live object).
        cost: Static cost of the skill, zero when it did not run.
    """

    skill_id: str
    success: bool
    message: str
    state: CellState
    cost: SkillCost = field(default_factory=SkillCost.zero)


@dataclass
class StepResult:
    """Result from executing a single plan step.

    Attributes:
        index: Position of the step in the plan (0-based).
        skill_id: Skill identifier as it appeared in the plan.
        success: Whether the step completed successfully.
        message: Success message or failure reason.
        cost: Registry cost charged for the step (zero on failure).
        duration_ms: Wall time spent in the executor.
    """

    index: int
    skill_id: str
    success: bool
    message: str
    cost: SkillCost = field(default_factory=SkillCost.zero)
    duration_ms: float = 0.0


@dataclass
class PlanExecutionResult:
    """Outcome of running a plan.

    Attributes:
        steps: Results for every attempted step, in plan order.
        success: True only if every step of the plan succeeded.
        failed_step: Index of the step that halted the run, if any.
        cancelled: True if the run stopped at a step boundary on request.
        declared_cost: Totals claimed by the planner, advisory only.
        planned_cost: Registry cost of every known skill in the plan.
        actual_cost: Registry cost of the steps that actually ran.
        final_state: Physical snapshot of the cell when the run ended.
    """

    steps: list[StepResult] = field(default_factory=list)
    success: bool = False
    failed_step: int | None = None
    cancelled: bool = False
    declared_cost: SkillCost | None = None
    planned_cost: SkillCost = field(default_factory=SkillCost.zero)
    actual_cost: SkillCost = field(default_factory=SkillCost.zero)
    final_state: dict[str, Any] = field(default_factory=dict)

    @property
    def failure(self) -> StepResult | None:
        """The step that halted the run, if one did."""
        if self.failed_step is None:
            return None
        return self.steps[self.failed_step]

    def cost_discrepancy(self) -> SkillCost | None:
        """Declared minus planned cost, or ``None`` if nothing was declared."""
        if self.declared_cost is None:
            return None
        return (self.declared_cost - self.planned_cost).rounded()

    def log_lines(self) -> list[str]:
        """One ``"<skill>: <message>"`` line per attempted step."""
        return [f"{s.skill_id}: {s.message}" for s in self.steps]
