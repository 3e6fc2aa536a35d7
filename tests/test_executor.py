"""Tests for the skill executor, including pusher retraction timing."""

from __future__ import annotations

import asyncio

from conftest import FAST_RETRACT_S, SLOW_RETRACT_S

from workcell.cell.state import CellStatus, Position
from workcell.cell.workcell import Workcell


def _snapshot(cell: Workcell) -> dict:
    return cell.state.physical()


# ------------------------------------------------------------------
# Move skills
# ------------------------------------------------------------------


async def test_move_always_succeeds(dual_cell: Workcell) -> None:
    """Moves have no precondition and touch only the targeted arm."""
    before = _snapshot(dual_cell)

    outcome = await dual_cell.execute("arm2_move_to_left_skill")

    assert outcome.success
    assert outcome.message == "Arm 2 moved to the left position"
    assert dual_cell.state.arm("arm2").position == Position.LEFT
    after = _snapshot(dual_cell)
    assert after["arms"][0] == before["arms"][0]
    assert after["magazine_count"] == before["magazine_count"]
    assert after["workpiece_pushed"] == before["workpiece_pushed"]


async def test_double_move_is_allowed(single_cell: Workcell) -> None:
    first = await single_cell.execute("move_to_right_skill")
    second = await single_cell.execute("move_to_right_skill")
    assert first.success and second.success
    assert single_cell.state.arm("arm").position == Position.RIGHT


# ------------------------------------------------------------------
# Pick / place
# ------------------------------------------------------------------


async def test_pick_requires_left_position(single_cell: Workcell) -> None:
    single_cell.state.update(workpiece_pushed=True)
    before = _snapshot(single_cell)

    outcome = await single_cell.execute("pick_workpiece_skill")

    assert not outcome.success
    assert "must be in left position" in outcome.message
    assert _snapshot(single_cell) == before


async def test_pick_requires_pushed_workpiece(single_cell: Workcell) -> None:
    single_cell.state.update(arms={"arm": {"position": "left"}})
    before = _snapshot(single_cell)

    outcome = await single_cell.execute("pick_workpiece_skill")

    assert not outcome.success
    assert "No workpiece available" in outcome.message
    assert _snapshot(single_cell) == before


async def test_pick_success_clears_conveyor(single_cell: Workcell) -> None:
    single_cell.state.update(arms={"arm": {"position": "left"}}, workpiece_pushed=True)

    outcome = await single_cell.execute("pick_workpiece_skill")

    assert outcome.success
    assert single_cell.state.arm("arm").holding is True
    assert single_cell.state.workpiece_pushed is False


async def test_place_requires_holding_and_right(single_cell: Workcell) -> None:
    outcome = await single_cell.execute("place_workpiece_skill")
    assert not outcome.success
    assert outcome.message == "Error: Arm is not holding a workpiece"

    single_cell.state.update(arms={"arm": {"holding": True}})
    outcome = await single_cell.execute("place_workpiece_skill")
    assert outcome.success
    assert single_cell.state.arm("arm").holding is False


# ------------------------------------------------------------------
# Push and retraction
# ------------------------------------------------------------------


async def test_push_empty_magazine(single_cell: Workcell) -> None:
    before = _snapshot(single_cell)

    outcome = await single_cell.execute("push_workpiece_skill")

    assert not outcome.success
    assert outcome.message == "Error: Magazine is empty"
    assert _snapshot(single_cell) == before


async def test_push_blocked_while_workpiece_waiting(single_cell: Workcell) -> None:
    single_cell.state.update(magazine_count=3, workpiece_pushed=True)

    outcome = await single_cell.execute("push_workpiece_skill")

    assert not outcome.success
    assert outcome.message == "Error: Workpiece already pushed"
    assert single_cell.state.magazine_count == 3


async def test_push_decrements_and_retracts(single_cell: Workcell) -> None:
    single_cell.state.update(magazine_count=6)

    outcome = await single_cell.execute("push_workpiece_skill")

    assert outcome.success
    assert single_cell.state.magazine_count == 5
    assert single_cell.state.workpiece_pushed is True
    pusher = single_cell.state.pusher("pusher")
    assert pusher.active is True
    assert single_cell.executor.pending_retractions == ["pusher"]

    await asyncio.sleep(SLOW_RETRACT_S * 3)

    assert pusher.active is False
    assert single_cell.executor.pending_retractions == []
    # Retraction does not touch the conveyor.
    assert single_cell.state.workpiece_pushed is True


async def test_retraction_delay_follows_speed_class(dual_cell: Workcell) -> None:
    loop = asyncio.get_running_loop()
    dual_cell.state.update(magazine_count=6)

    await dual_cell.execute("pusher2_push_fast_workpiece_skill")
    fast_due = dual_cell.executor._retractions["pusher2"].when() - loop.time()
    assert 0 < fast_due <= FAST_RETRACT_S

    await dual_cell.execute("arm2_move_to_left_skill")
    await dual_cell.execute("arm2_pick_workpiece_skill")
    await dual_cell.execute("pusher1_push_slow_workpiece_skill")
    slow_due = dual_cell.executor._retractions["pusher1"].when() - loop.time()
    assert FAST_RETRACT_S < slow_due <= SLOW_RETRACT_S

    await asyncio.sleep(SLOW_RETRACT_S * 3)
    assert dual_cell.state.pusher("pusher1").active is False
    assert dual_cell.state.pusher("pusher2").active is False


async def test_retraction_independent_of_later_skills(dual_cell: Workcell) -> None:
    dual_cell.state.update(magazine_count=6)
    await dual_cell.execute("pusher1_push_slow_workpiece_skill")
    await dual_cell.execute("arm1_move_to_left_skill")
    await dual_cell.execute("arm1_pick_workpiece_skill")

    assert dual_cell.state.pusher("pusher1").active is True
    await asyncio.sleep(SLOW_RETRACT_S * 3)
    assert dual_cell.state.pusher("pusher1").active is False


async def test_reset_cancels_pending_retraction(single_cell: Workcell) -> None:
    single_cell.state.update(magazine_count=6)
    await single_cell.execute("push_workpiece_skill")
    assert single_cell.executor.pending_retractions == ["pusher"]

    await single_cell.reset()

    assert single_cell.executor.pending_retractions == []
    assert single_cell.state.pusher("pusher").active is False
    assert single_cell.state.magazine_count == 0


# ------------------------------------------------------------------
# Magazine, unknown skills, bookkeeping
# ------------------------------------------------------------------


async def test_load_magazine_always_fills(single_cell: Workcell) -> None:
    for start in (0, 3, 6):
        single_cell.state.update(magazine_count=start)
        outcome = await single_cell.execute("load_magazine_skill")
        assert outcome.success
        assert single_cell.state.magazine_count == 6
    assert outcome.message == "Magazine loaded with 6 workpieces"


async def test_unknown_skill(single_cell: Workcell) -> None:
    before = _snapshot(single_cell)

    outcome = await single_cell.execute("teleport_skill")

    assert not outcome.success
    assert outcome.message == "Unknown skill: teleport_skill"
    assert _snapshot(single_cell) == before


async def test_status_and_log_follow_outcome(single_cell: Workcell) -> None:
    await single_cell.execute("push_workpiece_skill")
    assert single_cell.state.status == CellStatus.ERROR
    assert single_cell.state.log[0] == "Error: Magazine is empty"

    await single_cell.execute("load_magazine_skill")
    assert single_cell.state.status == CellStatus.IDLE
    assert list(single_cell.state.log) == [
        "Magazine loaded with 6 workpieces",
        "Error: Magazine is empty",
    ]


async def test_log_bounded_after_many_skills(single_cell: Workcell) -> None:
    for i in range(60):
        skill = "move_to_left_skill" if i % 2 == 0 else "move_to_right_skill"
        await single_cell.execute(skill)

    assert len(single_cell.state.log) == 50
    # i == 59 is the latest and moved right.
    assert single_cell.state.log[0] == "Arm moved to the right position"
    assert single_cell.state.log[1] == "Arm moved to the left position"


async def test_concurrent_pushes_only_one_wins(dual_cell: Workcell) -> None:
    """Two pushers racing for the conveyor: exactly one push applies."""
    dual_cell.state.update(magazine_count=6)

    outcomes = await asyncio.gather(
        dual_cell.execute("pusher1_push_slow_workpiece_skill"),
        dual_cell.execute("pusher2_push_fast_workpiece_skill"),
    )

    assert sorted(o.success for o in outcomes) == [False, True]
    assert dual_cell.state.magazine_count == 5


async def test_clearing_pusher_cancels_its_retraction(single_cell: Workcell) -> None:
    single_cell.state.update(magazine_count=6)
    await single_cell.execute("push_workpiece_skill")

    await single_cell.update_state(pushers={"pusher": {"active": False}})

    assert single_cell.state.pusher("pusher").active is False
    assert single_cell.executor.pending_retractions == []
