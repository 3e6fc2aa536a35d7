"""API request/response schemas.

All models use camelCase aliases for JSON serialization and accept either
field names or aliases on input.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from workcell.cell.layout import SkillCost, declared_totals
from workcell.cell.state import CellState

# ------------------------------------------------------------------
# Cell state
# ------------------------------------------------------------------


class ArmSnapshot(BaseModel):
    """One arm in a state snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    label: str
    position: str
    holding: bool


class PusherSnapshot(BaseModel):
    """One pusher in a state snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    label: str
    speed: str
    active: bool


class CellSnapshot(BaseModel):
    """Serializable view of the cell state."""

    model_config = ConfigDict(populate_by_name=True)

    layout: str
    arms: list[ArmSnapshot] = Field(default_factory=list)
    pushers: list[PusherSnapshot] = Field(default_factory=list)
    magazine_count: int = Field(0, alias="magazineCount")
    workpiece_pushed: bool = Field(False, alias="workpiecePushed")
    status: str = "idle"
    logs: list[str] = Field(default_factory=list)

    @classmethod
    def from_state(cls, state: CellState) -> CellSnapshot:
        return cls(
            layout=state.layout_name,
            arms=[
                ArmSnapshot(id=a.id, label=a.label, position=a.position.value, holding=a.holding)
                for a in state.arms
            ],
            pushers=[
                PusherSnapshot(id=p.id, label=p.label, speed=p.speed.value, active=p.active)
                for p in state.pushers
            ],
            magazine_count=state.magazine_count,
            workpiece_pushed=state.workpiece_pushed,
            status=state.status.value,
            logs=list(state.log),
        )


class ArmUpdate(BaseModel):
    position: str | None = None
    holding: bool | None = None


class PusherUpdate(BaseModel):
    active: bool | None = None


class StateUpdateRequest(BaseModel):
    """Partial state update. Arms and pushers are keyed by id."""

    model_config = ConfigDict(populate_by_name=True)

    arms: dict[str, ArmUpdate] = Field(default_factory=dict)
    pushers: dict[str, PusherUpdate] = Field(default_factory=dict)
    magazine_count: int | None = Field(None, alias="magazineCount")
    workpiece_pushed: bool | None = Field(None, alias="workpiecePushed")
    status: str | None = None


class ResetRequest(BaseModel):
    """Request body for resetting the cell."""

    layout: str | None = None


# ------------------------------------------------------------------
# Skills and plans
# ------------------------------------------------------------------


class CostModel(BaseModel):
    """Energy/time/wear triple."""

    energy: float = 0.0
    time: float = 0.0
    wear: float = 0.0

    @classmethod
    def from_cost(cls, cost: SkillCost) -> CostModel:
        return cls(energy=cost.energy, time=cost.time, wear=cost.wear)


class SkillInfo(BaseModel):
    """Catalog entry for one skill."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    kind: str
    target: str | None = None
    description: str = ""
    cost: CostModel


class SkillRequest(BaseModel):
    """Request body for executing a single skill."""

    skill: str = ""


class SkillResponse(BaseModel):
    """Outcome of a single skill execution."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    simulation_state: CellSnapshot = Field(alias="simulationState")


class StepResultResponse(BaseModel):
    """One attempted plan step."""

    model_config = ConfigDict(populate_by_name=True)

    index: int
    skill_id: str = Field(alias="skillId")
    success: bool
    message: str
    cost: CostModel
    duration_ms: float = Field(0.0, alias="durationMs")


class PlanRunRequest(BaseModel):
    """Run an explicit plan, optionally with planner-declared totals."""

    model_config = ConfigDict(populate_by_name=True)

    plan: list[str]
    total_energy: float | None = Field(None, alias="totalEnergy")
    total_time: float | None = Field(None, alias="totalTime")
    total_wear: float | None = Field(None, alias="totalWear")

    def declared_cost(self) -> SkillCost | None:
        return declared_totals(self.total_energy, self.total_time, self.total_wear)


class PlanRunResponse(BaseModel):
    """Report of a plan run."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    success: bool
    plan: list[str]
    steps: list[StepResultResponse] = Field(default_factory=list)
    results: list[str] = Field(default_factory=list)
    failed_step: int | None = Field(None, alias="failedStep")
    cancelled: bool = False
    unknown_skills: list[str] = Field(default_factory=list, alias="unknownSkills")
    declared_cost: CostModel | None = Field(None, alias="declaredCost")
    planned_cost: CostModel = Field(alias="plannedCost")
    actual_cost: CostModel = Field(alias="actualCost")
    explanation: str | None = None
    model_name: str | None = Field(None, alias="modelName")
    simulation_state: CellSnapshot = Field(alias="simulationState")


class AgentRequest(BaseModel):
    """Free-text request for the planning or simple agent."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    query: str = ""
    model_name: str | None = Field(None, alias="modelName")


class SimpleAgentResponse(BaseModel):
    """Skill chosen by the simple agent and its execution outcome."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    skill: str
    explanation: str = ""
    model_name: str = Field("", alias="modelName")
    success: bool
    message: str
    simulation_state: CellSnapshot = Field(alias="simulationState")


# ------------------------------------------------------------------
# Evaluations
# ------------------------------------------------------------------


class EvaluationRecord(BaseModel):
    """User feedback on one generated plan."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    id: str
    model_name: str = Field(alias="modelName")
    user_query: str = Field(alias="userQuery")
    actions: list[str] = Field(default_factory=list)
    is_correct: bool = Field(alias="isCorrect")
    explanation: str = ""
    user_feedback: str | None = Field(None, alias="userFeedback")
    timestamp: float = 0.0
    initial_state: dict[str, Any] = Field(default_factory=dict, alias="initialState")


class EvaluationRequest(BaseModel):
    """Request body for recording an evaluation."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model_name: str = Field(alias="modelName")
    user_query: str = Field(alias="userQuery")
    actions: list[str] = Field(default_factory=list)
    is_correct: bool = Field(alias="isCorrect")
    explanation: str = ""
    user_feedback: str | None = Field(None, alias="userFeedback")
    timestamp: float | None = None
    initial_state: dict[str, Any] | None = Field(None, alias="initialState")


class RecordResult(BaseModel):
    """Acknowledgement for a recorded evaluation."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    storage_source: str = Field(alias="storageSource")
    id: str


class EvaluationSummary(BaseModel):
    """Accuracy of one model across recorded evaluations."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model_name: str = Field(alias="modelName")
    total: int = 0
    correct: int = 0
    accuracy: float = 0.0
