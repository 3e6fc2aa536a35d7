"""Mutable model of the physical workcell.

A :class:`CellState` holds the arms, the pushers, the shared magazine and
the single left-side conveyor slot. It is owned by a
:class:`~workcell.cell.workcell.Workcell` and mutated in place by the skill
executor; nothing here performs I/O or scheduling.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from workcell.errors import CellStateError

if TYPE_CHECKING:
    from workcell.cell.layout import CellLayout

logger = logging.getLogger(__name__)

MAX_MAGAZINE_CAPACITY: int = 6
LOG_CAPACITY: int = 50


class Position(str, Enum):
    LEFT = "left"
    RIGHT = "right"


class SpeedClass(str, Enum):
    SLOW = "slow"
    FAST = "fast"


class CellStatus(str, Enum):
    IDLE = "idle"
    BUSY = "busy"
    ERROR = "error"


@dataclass
class ArmState:
    """A rotating arm: which side it faces and whether it holds a workpiece."""

    id: str  # noqa: A003
    label: str = "Arm"
    position: Position = Position.RIGHT
    holding: bool = False


@dataclass
class PusherState:
    """A magazine pusher. ``active`` is true while it extends or retracts."""

    id: str  # noqa: A003
    label: str = "Pusher"
    speed: SpeedClass = SpeedClass.SLOW
    active: bool = False


def _new_log() -> deque[str]:
    return deque(maxlen=LOG_CAPACITY)


@dataclass
class CellState:
    """Physical configuration of the cell plus status and a bounded event log.

    Attributes:
        arms: Arms in layout order.
        pushers: Pushers in layout order.
        magazine_count: Workpieces in the magazine (0..MAX_MAGAZINE_CAPACITY).
        workpiece_pushed: True iff one workpiece waits on the left conveyor.
        status: Outcome of the most recent skill attempt.
        log: Event messages, most recent first, capped at LOG_CAPACITY.
        layout_name: Name of the layout this state was built from.
    """

    arms: list[ArmState] = field(default_factory=list)
    pushers: list[PusherState] = field(default_factory=list)
    magazine_count: int = 0
    workpiece_pushed: bool = False
    status: CellStatus = CellStatus.IDLE
    log: deque[str] = field(default_factory=_new_log)
    layout_name: str = "custom"

    @classmethod
    def from_layout(cls, layout: CellLayout) -> CellState:
        """Build the power-on state for *layout*: arms right, pushers retracted."""
        return cls(
            arms=[ArmState(id=a.id, label=a.label) for a in layout.arms],
            pushers=[PusherState(id=p.id, label=p.label, speed=p.speed) for p in layout.pushers],
            layout_name=layout.name,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def arm(self, arm_id: str) -> ArmState:
        for arm in self.arms:
            if arm.id == arm_id:
                return arm
        raise CellStateError(f"Unknown arm: {arm_id}")

    def pusher(self, pusher_id: str) -> PusherState:
        for pusher in self.pushers:
            if pusher.id == pusher_id:
                return pusher
        raise CellStateError(f"Unknown pusher: {pusher_id}")

    def record(self, message: str) -> None:
        """Prepend *message* to the log, evicting the oldest entry when full."""
        self.log.appendleft(message)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def physical(self) -> dict[str, Any]:
        """Return the physical configuration only (no status, no log)."""
        return {
            "arms": [(a.id, a.position.value, a.holding) for a in self.arms],
            "pushers": [(p.id, p.active) for p in self.pushers],
            "magazine_count": self.magazine_count,
            "workpiece_pushed": self.workpiece_pushed,
        }

    def describe(self) -> str:
        """Render the flat state description handed to the plan generator."""
        lines: list[str] = []
        for arm in self.arms:
            lines.append(f"{arm.label} Position: {arm.position.value}")
            lines.append(f"{arm.label} Holding Workpiece: {'Yes' if arm.holding else 'No'}")
        lines.append(f"Magazine Workpiece Count: {self.magazine_count}")
        lines.append(f"Workpiece Pushed: {'Yes' if self.workpiece_pushed else 'No'}")
        for pusher in self.pushers:
            lines.append(f"{pusher.label} Active: {'Yes' if pusher.active else 'No'}")
        lines.append(f"Status: {self.status.value}")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def update(
        self,
        *,
        arms: dict[str, dict[str, Any]] | None = None,
        pushers: dict[str, dict[str, Any]] | None = None,
        magazine_count: int | None = None,
        workpiece_pushed: bool | None = None,
        status: CellStatus | str | None = None,
    ) -> None:
        """Apply a partial snapshot.

        All values are validated before anything is written, so a rejected
        update leaves the state untouched.

        Args:
            arms: Per-arm fields keyed by arm id (``position``, ``holding``).
            pushers: Per-pusher fields keyed by pusher id. ``active`` may only
                be cleared; a pusher is extended only by a push skill.
            magazine_count: New magazine count.
            workpiece_pushed: New conveyor flag.
            status: New status.

        Raises:
            CellStateError: If an id is unknown or a value breaks an invariant.
        """
        if magazine_count is not None and not 0 <= magazine_count <= MAX_MAGAZINE_CAPACITY:
            raise CellStateError(
                f"magazine_count must be between 0 and {MAX_MAGAZINE_CAPACITY}, "
                f"got {magazine_count}"
            )

        arm_updates: list[tuple[ArmState, Position | None, bool | None]] = []
        for arm_id, fields in (arms or {}).items():
            arm = self.arm(arm_id)
            position = fields.get("position")
            try:
                position = Position(position) if position is not None else None
            except ValueError as e:
                raise CellStateError(f"Invalid position for {arm_id}: {position}") from e
            arm_updates.append((arm, position, fields.get("holding")))

        pusher_updates: list[tuple[PusherState, bool | None]] = []
        for pusher_id, fields in (pushers or {}).items():
            pusher = self.pusher(pusher_id)
            active = fields.get("active")
            # Only a push can extend a pusher; its retraction is scheduled with it.
            if active:
                raise CellStateError(f"{pusher.label} can only be activated by a push skill")
            pusher_updates.append((pusher, active))

        try:
            new_status = CellStatus(status) if status is not None else None
        except ValueError as e:
            raise CellStateError(f"Invalid status: {status}") from e

        for arm, position, holding in arm_updates:
            if position is not None:
                arm.position = position
            if holding is not None:
                arm.holding = bool(holding)
        for pusher, active in pusher_updates:
            if active is not None:
                pusher.active = bool(active)
        if magazine_count is not None:
            self.magazine_count = magazine_count
        if workpiece_pushed is not None:
            self.workpiece_pushed = workpiece_pushed
        if new_status is not None:
            self.status = new_status

        logger.debug("Cell state updated: %s", self.physical())

    def reset_to(self, layout: CellLayout) -> None:
        """Restore the power-on configuration of *layout* in place."""
        fresh = CellState.from_layout(layout)
        self.arms = fresh.arms
        self.pushers = fresh.pushers
        self.magazine_count = 0
        self.workpiece_pushed = False
        self.status = CellStatus.IDLE
        self.log.clear()
        self.layout_name = layout.name
