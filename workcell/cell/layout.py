"""Static cell layouts and their per-skill cost profiles.

A layout names the arms and pushers of a cell and the skill identifiers
they answer to. The skill registry is generated from a layout, so a cell
with any number of arms and pushers sharing one magazine is described by
data alone.
"""

from __future__ import annotations

from dataclasses import dataclass

from workcell.cell.state import SpeedClass
from workcell.errors import WorkcellError


@dataclass(frozen=True)
class SkillCost:
    """Energy, time and wear charged for one skill execution."""

    energy: float = 0.0
    time: float = 0.0
    wear: float = 0.0

    def __add__(self, other: SkillCost) -> SkillCost:
        return SkillCost(
            energy=self.energy + other.energy,
            time=self.time + other.time,
            wear=self.wear + other.wear,
        )

    def __sub__(self, other: SkillCost) -> SkillCost:
        return SkillCost(
            energy=self.energy - other.energy,
            time=self.time - other.time,
            wear=self.wear - other.wear,
        )

    @classmethod
    def zero(cls) -> SkillCost:
        return cls()

    def rounded(self, ndigits: int = 3) -> SkillCost:
        return SkillCost(
            energy=round(self.energy, ndigits),
            time=round(self.time, ndigits),
            wear=round(self.wear, ndigits),
        )


def declared_totals(
    energy: float | None,
    time: float | None,
    wear: float | None,
) -> SkillCost | None:
    """Combine optional planner-declared totals; ``None`` if none were given."""
    if energy is None and time is None and wear is None:
        return None
    return SkillCost(energy=energy or 0.0, time=time or 0.0, wear=wear or 0.0)


@dataclass(frozen=True)
class ArmSpec:
    """An arm in a layout.

    Attributes:
        id: State identifier of the arm.
        label: Human-readable name used in log messages ("Arm 1").
        skill_prefix: Prepended to the arm skill names ("arm1_" or "").
        move_cost: Cost of a move to either side.
        handle_cost: Cost of a pick or a place.
    """

    id: str  # noqa: A003
    label: str
    skill_prefix: str
    move_cost: SkillCost
    handle_cost: SkillCost


@dataclass(frozen=True)
class PusherSpec:
    """A pusher in a layout."""

    id: str  # noqa: A003
    label: str
    speed: SpeedClass
    skill_id: str
    cost: SkillCost


@dataclass(frozen=True)
class CellLayout:
    """Arms and pushers of a cell plus the magazine loading cost."""

    name: str
    arms: tuple[ArmSpec, ...]
    pushers: tuple[PusherSpec, ...]
    load_cost: SkillCost = SkillCost(energy=2, time=2, wear=0.5)
    description: str = ""


# Cost profiles
_ARM1_MOVE = SkillCost(energy=2, time=1.5, wear=1)
_ARM1_HANDLE = SkillCost(energy=3, time=1.5, wear=1.5)
_ARM2_MOVE = SkillCost(energy=1, time=2, wear=0.5)
_ARM2_HANDLE = SkillCost(energy=2, time=2.5, wear=1)
_PUSH_SLOW = SkillCost(energy=1, time=3, wear=0.5)
_PUSH_FAST = SkillCost(energy=2, time=2, wear=1)

SINGLE_ARM_LAYOUT = CellLayout(
    name="single",
    arms=(
        ArmSpec(
            id="arm",
            label="Arm",
            skill_prefix="",
            move_cost=_ARM1_MOVE,
            handle_cost=_ARM1_HANDLE,
        ),
    ),
    pushers=(
        PusherSpec(
            id="pusher",
            label="Pusher",
            speed=SpeedClass.SLOW,
            skill_id="push_workpiece_skill",
            cost=_PUSH_SLOW,
        ),
    ),
    description="a ROTATING ARM and a STACKED MAGAZINE",
)

DUAL_ARM_LAYOUT = CellLayout(
    name="dual",
    arms=(
        ArmSpec(
            id="arm1",
            label="Arm 1",
            skill_prefix="arm1_",
            move_cost=_ARM1_MOVE,
            handle_cost=_ARM1_HANDLE,
        ),
        ArmSpec(
            id="arm2",
            label="Arm 2",
            skill_prefix="arm2_",
            move_cost=_ARM2_MOVE,
            handle_cost=_ARM2_HANDLE,
        ),
    ),
    pushers=(
        PusherSpec(
            id="pusher1",
            label="Pusher 1",
            speed=SpeedClass.SLOW,
            skill_id="pusher1_push_slow_workpiece_skill",
            cost=_PUSH_SLOW,
        ),
        PusherSpec(
            id="pusher2",
            label="Pusher 2",
            speed=SpeedClass.FAST,
            skill_id="pusher2_push_fast_workpiece_skill",
            cost=_PUSH_FAST,
        ),
    ),
    description="TWO ROTATING ARMS and TWO PUSHERS",
)

LAYOUTS: dict[str, CellLayout] = {
    SINGLE_ARM_LAYOUT.name: SINGLE_ARM_LAYOUT,
    DUAL_ARM_LAYOUT.name: DUAL_ARM_LAYOUT,
}


def get_layout(name: str) -> CellLayout:
    """Return a standard layout by name.

    Raises:
        WorkcellError: If *name* is not a known layout.
    """
    try:
        return LAYOUTS[name.strip().lower()]
    except KeyError as e:
        raise WorkcellError(
            f"Unknown layout '{name}'. Available: {', '.join(sorted(LAYOUTS))}"
        ) from e
