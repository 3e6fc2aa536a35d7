"""Skill definitions and the registry that resolves skill identifiers.

Each :class:`SkillDefinition` is one tagged variant of :class:`SkillKind`
bound to a target (an arm, a pusher, or the magazine). Precondition and
transition logic dispatch on the kind; the registry maps the wire
identifiers used by the planner (``arm1_pick_workpiece_skill``) to
definitions generated from a :class:`~workcell.cell.layout.CellLayout`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from workcell.cell.layout import CellLayout, SkillCost
from workcell.cell.state import MAX_MAGAZINE_CAPACITY, CellState, Position, SpeedClass

logger = logging.getLogger(__name__)


class SkillKind(str, Enum):
    MOVE_LEFT = "move_left"
    MOVE_RIGHT = "move_right"
    PICK = "pick"
    PLACE = "place"
    PUSH = "push"
    LOAD_MAGAZINE = "load_magazine"


@dataclass(frozen=True)
class SkillDefinition:
    """A primitive skill bound to one piece of equipment.

    Attributes:
        id: Wire identifier, lowercase with underscores.
        kind: Which transition this skill performs.
        target: Arm id or pusher id the skill acts on (None for the magazine).
        label: Human-readable equipment name used in messages.
        cost: Static energy/time/wear cost.
        description: One-line description for the planner prompt.
    """

    id: str  # noqa: A003
    kind: SkillKind
    target: str | None
    label: str
    cost: SkillCost
    description: str = ""

    def precondition(self, state: CellState) -> str | None:
        """Check the guard for this skill.

        Returns:
            ``None`` if the skill may run, otherwise the reason it may not.
        """
        kind = self.kind
        if kind in (SkillKind.MOVE_LEFT, SkillKind.MOVE_RIGHT, SkillKind.LOAD_MAGAZINE):
            return None
        if kind == SkillKind.PICK:
            arm = state.arm(self.target)
            if arm.position != Position.LEFT:
                return f"Error: {self.label} must be in left position to pick"
            if not state.workpiece_pushed:
                return f"Error: No workpiece available for {self.label} to pick"
            return None
        if kind == SkillKind.PLACE:
            arm = state.arm(self.target)
            if arm.position != Position.RIGHT:
                return f"Error: {self.label} must be in right position to place"
            if not arm.holding:
                return f"Error: {self.label} is not holding a workpiece"
            return None
        if kind == SkillKind.PUSH:
            if state.magazine_count <= 0:
                return "Error: Magazine is empty"
            if state.workpiece_pushed:
                return "Error: Workpiece already pushed"
            return None
        raise ValueError(f"Unhandled skill kind: {kind}")

    def apply(self, state: CellState) -> str:
        """Apply the transition to *state* in place.

        The caller must have checked :meth:`precondition` first.

        Returns:
            The success message for the event log.
        """
        kind = self.kind
        if kind == SkillKind.MOVE_LEFT:
            state.arm(self.target).position = Position.LEFT
            return f"{self.label} moved to the left position"
        if kind == SkillKind.MOVE_RIGHT:
            state.arm(self.target).position = Position.RIGHT
            return f"{self.label} moved to the right position"
        if kind == SkillKind.PICK:
            state.arm(self.target).holding = True
            state.workpiece_pushed = False
            return f"Workpiece picked by {self.label}"
        if kind == SkillKind.PLACE:
            state.arm(self.target).holding = False
            return f"Workpiece placed by {self.label}"
        if kind == SkillKind.PUSH:
            pusher = state.pusher(self.target)
            pusher.active = True
            state.workpiece_pushed = True
            state.magazine_count -= 1
            manner = "slowly" if pusher.speed == SpeedClass.SLOW else "quickly"
            return f"Workpiece pushed {manner} from magazine by {self.label}"
        if kind == SkillKind.LOAD_MAGAZINE:
            state.magazine_count = MAX_MAGAZINE_CAPACITY
            return f"Magazine loaded with {MAX_MAGAZINE_CAPACITY} workpieces"
        raise ValueError(f"Unhandled skill kind: {kind}")


def normalize_skill_id(skill_id: str) -> str:
    """Normalize a wire identifier (surrounding whitespace, case)."""
    return skill_id.strip().lower()


def _skills_for_layout(layout: CellLayout) -> list[SkillDefinition]:
    """Generate the skill catalog for every arm and pusher in *layout*."""
    skills: list[SkillDefinition] = []
    for arm in layout.arms:
        p = arm.skill_prefix
        name = arm.label.lower()
        skills += [
            SkillDefinition(
                id=f"{p}move_to_left_skill",
                kind=SkillKind.MOVE_LEFT,
                target=arm.id,
                label=arm.label,
                cost=arm.move_cost,
                description=f"{name} moves to the left side, toward the magazine",
            ),
            SkillDefinition(
                id=f"{p}move_to_right_skill",
                kind=SkillKind.MOVE_RIGHT,
                target=arm.id,
                label=arm.label,
                cost=arm.move_cost,
                description=f"{name} moves to the right side",
            ),
            SkillDefinition(
                id=f"{p}pick_workpiece_skill",
                kind=SkillKind.PICK,
                target=arm.id,
                label=arm.label,
                cost=arm.handle_cost,
                description=(
                    f"{name} picks the pushed workpiece "
                    "(workpiece must be pushed first and the arm must be left)"
                ),
            ),
            SkillDefinition(
                id=f"{p}place_workpiece_skill",
                kind=SkillKind.PLACE,
                target=arm.id,
                label=arm.label,
                cost=arm.handle_cost,
                description=f"{name} places the held workpiece (arm must be right)",
            ),
        ]
    for pusher in layout.pushers:
        skills.append(
            SkillDefinition(
                id=pusher.skill_id,
                kind=SkillKind.PUSH,
                target=pusher.id,
                label=pusher.label,
                cost=pusher.cost,
                description=(
                    f"{pusher.label.lower()} pushes a workpiece from the magazine to "
                    f"the arms ({pusher.speed.value}; retracts automatically)"
                ),
            )
        )
    skills.append(
        SkillDefinition(
            id="load_magazine_skill",
            kind=SkillKind.LOAD_MAGAZINE,
            target=None,
            label="Magazine",
            cost=layout.load_cost,
            description=f"loads the magazine to {MAX_MAGAZINE_CAPACITY} workpieces",
        )
    )
    return skills


class SkillRegistry:
    """Authoritative mapping from skill identifier to definition.

    Args:
        layout: Cell layout to generate the catalog from.
    """

    def __init__(self, layout: CellLayout) -> None:
        self.layout = layout
        self._skills: dict[str, SkillDefinition] = {}
        for skill in _skills_for_layout(layout):
            self.register(skill)

    def register(self, skill: SkillDefinition) -> None:
        """Register a skill definition under its normalized id."""
        key = normalize_skill_id(skill.id)
        if key in self._skills:
            raise ValueError(f"Duplicate skill id: {key}")
        self._skills[key] = skill
        logger.debug("Registered skill: %s (%s)", key, skill.kind.value)

    def lookup(self, skill_id: str) -> SkillDefinition | None:
        """Resolve *skill_id*, or return ``None`` if it is not registered."""
        return self._skills.get(normalize_skill_id(skill_id))

    def __contains__(self, skill_id: object) -> bool:
        return isinstance(skill_id, str) and self.lookup(skill_id) is not None

    @property
    def available(self) -> list[str]:
        """Registered skill ids, in catalog order."""
        return list(self._skills.keys())

    @property
    def definitions(self) -> list[SkillDefinition]:
        return list(self._skills.values())

    def unknown_skills(self, plan: Iterable[str]) -> list[str]:
        """Return the ids in *plan* that the registry does not know."""
        return [s for s in plan if self.lookup(s) is None]

    def cost_of(self, plan: Iterable[str]) -> SkillCost:
        """Sum the static costs of the known skills in *plan*."""
        total = SkillCost.zero()
        for skill_id in plan:
            skill = self.lookup(skill_id)
            if skill is not None:
                total = total + skill.cost
        return total.rounded()

    def describe(self) -> str:
        """Render the catalog, with costs, for a planner prompt."""
        lines = []
        for skill in self._skills.values():
            c = skill.cost
            lines.append(
                f"- {skill.id}: {skill.description}\n"
                f"    Energy: {c.energy:g}, Time: {c.time:g}, Wear: {c.wear:g}"
            )
        return "\n".join(lines)
