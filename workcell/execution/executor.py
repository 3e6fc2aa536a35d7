"""Skill executor: validates and applies one skill against the cell state.

Each attempt runs under the cell lock with no suspension point between the
precondition check and the transition, so concurrent callers never observe
a half-applied skill. Pusher retraction is the only deferred effect; it is
scheduled on the running event loop and resolves on its own, observable
only through a later state read.
"""

from __future__ import annotations

import asyncio
import logging

from workcell.cell.layout import CellLayout
from workcell.cell.skills import SkillKind, SkillRegistry
from workcell.cell.state import CellState, CellStatus, SpeedClass
from workcell.errors import CellStateError
from workcell.execution.types import SkillOutcome

logger = logging.getLogger(__name__)

DEFAULT_RETRACTION_DELAYS: dict[SpeedClass, float] = {
    SpeedClass.SLOW: 1.0,
    SpeedClass.FAST: 0.8,
}


class SkillExecutor:
    """Execute skills against a single owned :class:`CellState`.

    Args:
        state: The cell state to mutate in place.
        registry: Skill catalog used to resolve identifiers.
        retraction_delays: Seconds until a pusher of each speed class
            retracts after a push.
    """

    def __init__(
        self,
        state: CellState,
        registry: SkillRegistry,
        retraction_delays: dict[SpeedClass, float] | None = None,
    ) -> None:
        self.state = state
        self.registry = registry
        self._delays = {**DEFAULT_RETRACTION_DELAYS, **(retraction_delays or {})}
        self._lock = asyncio.Lock()
        self._retractions: dict[str, asyncio.TimerHandle] = {}

    @property
    def lock(self) -> asyncio.Lock:
        """Lock guarding every mutation of :attr:`state`."""
        return self._lock

    @property
    def pending_retractions(self) -> list[str]:
        """Ids of pushers with a retraction still scheduled."""
        return [pid for pid, handle in self._retractions.items() if not handle.cancelled()]

    async def execute(self, skill_id: str) -> SkillOutcome:
        """Validate and apply one skill.

        Args:
            skill_id: Wire identifier of the skill.

        Returns:
            SkillOutcome. On failure the physical state is untouched; only
            the status and the log record the attempt.
        """
        async with self._lock:
            return self._execute_locked(skill_id)

    def _execute_locked(self, skill_id: str) -> SkillOutcome:
        state = self.state
        skill = self.registry.lookup(skill_id)
        if skill is None:
            return self._fail(skill_id, f"Unknown skill: {skill_id}")

        reason = skill.precondition(state)
        if reason is not None:
            return self._fail(skill_id, reason)

        message = skill.apply(state)
        if skill.kind == SkillKind.PUSH:
            self._schedule_retraction(skill.target)

        state.status = CellStatus.IDLE
        state.record(message)
        logger.info("Skill %s succeeded: %s", skill.id, message)
        return SkillOutcome(
            skill_id=skill_id,
            success=True,
            message=message,
            state=state,
            cost=skill.cost,
        )

    def _fail(self, skill_id: str, message: str) -> SkillOutcome:
        self.state.status = CellStatus.ERROR
        self.state.record(message)
        logger.warning("Skill %s failed: %s", skill_id, message)
        return SkillOutcome(skill_id=skill_id, success=False, message=message, state=self.state)

    # ------------------------------------------------------------------
    # Pusher retraction
    # ------------------------------------------------------------------

    def _schedule_retraction(self, pusher_id: str) -> None:
        pusher = self.state.pusher(pusher_id)
        delay = self._delays[pusher.speed]

        previous = self._retractions.pop(pusher_id, None)
        if previous is not None:
            previous.cancel()

        loop = asyncio.get_running_loop()
        self._retractions[pusher_id] = loop.call_later(delay, self._retract, pusher_id)
        logger.debug("Scheduled retraction of %s in %.2fs", pusher_id, delay)

    def _retract(self, pusher_id: str) -> None:
        # Runs as a plain loop callback, so no coroutine can interleave with it.
        self._retractions.pop(pusher_id, None)
        try:
            pusher = self.state.pusher(pusher_id)
        except CellStateError:
            logger.debug("Pusher %s no longer present, skipping retraction", pusher_id)
            return
        pusher.active = False
        logger.info("%s retracted", pusher.label)

    def cancel_retraction(self, pusher_id: str) -> None:
        handle = self._retractions.pop(pusher_id, None)
        if handle is not None:
            handle.cancel()
            logger.debug("Cancelled retraction of %s", pusher_id)

    def cancel_retractions(self) -> None:
        """Cancel every scheduled retraction."""
        for handle in self._retractions.values():
            handle.cancel()
        self._retractions.clear()

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    async def reset(self, layout: CellLayout | None = None) -> None:
        """Restore the power-on state, optionally switching layout.

        Pending retractions are cancelled first so no stale callback can
        touch the fresh state.
        """
        async with self._lock:
            self.cancel_retractions()
            if layout is not None and layout is not self.registry.layout:
                self.registry = SkillRegistry(layout)
            self.state.reset_to(self.registry.layout)
        logger.info("Cell reset to layout '%s'", self.registry.layout.name)
