"""Run a skill plan against a local workcell, or start the API.

Usage:
    python scripts/demo_flow.py                     # transfer one workpiece (single arm)
    python scripts/demo_flow.py --layout dual \\
        load_magazine_skill pusher2_push_fast_workpiece_skill \\
        arm2_move_to_left_skill arm2_pick_workpiece_skill
    python scripts/demo_flow.py --serve             # start the API on port 8000

The local run needs no API key: the plan is given on the command line and
executed in-process. With ``--serve`` the FastAPI backend runs in a
subprocess until Ctrl+C.
"""

import argparse
import asyncio
import signal
import subprocess
import sys
import time
from pathlib import Path
from urllib.error import URLError
from urllib.request import urlopen

from workcell.api.schemas import CellSnapshot
from workcell.cell.workcell import Workcell
from workcell.config import Settings, configure_logging, get_settings

PROJECT_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_PLAN = [
    "load_magazine_skill",
    "push_workpiece_skill",
    "move_to_left_skill",
    "pick_workpiece_skill",
    "move_to_right_skill",
    "place_workpiece_skill",
]

BANNER = """
╔═══════════════════════════════════════════════╗
║  Workcell Planner API                         ║
║                                               ║
║  API:   http://localhost:8000                 ║
║  Docs:  http://localhost:8000/docs            ║
║                                               ║
║  Ctrl+C to stop                               ║
╚═══════════════════════════════════════════════╝
"""


def wait_for_health(url: str, timeout: float = 15.0) -> bool:
    """Poll the health endpoint until it responds or timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            with urlopen(url, timeout=2) as resp:
                if resp.status == 200:
                    return True
        except (URLError, OSError):
            pass
        time.sleep(0.5)
    return False


async def run_local(settings: Settings, layout: str, plan: list[str]) -> int:
    """Execute *plan* on a fresh in-process workcell and print the report."""
    workcell = Workcell(layout, settings)
    try:
        result = await workcell.run(plan)
    finally:
        workcell.close()

    for step in result.steps:
        mark = "ok " if step.success else "ERR"
        print(f"  [{mark}] {step.index + 1:>2}. {step.skill_id}: {step.message}")
    c = result.actual_cost
    print(f"\n  Cost: energy={c.energy:g} time={c.time:g} wear={c.wear:g}")
    snapshot = CellSnapshot.from_state(workcell.state)
    print(f"  Final state: {snapshot.model_dump_json(by_alias=True, exclude={'logs'})}")
    return 0 if result.success else 1


def serve() -> None:
    """Launch the API with uvicorn and wait for it to exit."""
    print(BANNER)
    proc = subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "workcell.api.app:app", "--port", "8000"],
        cwd=str(PROJECT_ROOT),
    )

    def handle_signal(signum: int, _frame: object) -> None:
        proc.terminate()
        sys.exit(0)

    signal.signal(signal.SIGTERM, handle_signal)

    print("  Waiting for backend...")
    if wait_for_health("http://localhost:8000/health"):
        print("  Backend ready on http://localhost:8000")
    else:
        print("  Warning: backend did not respond within 15s (continuing anyway)")

    try:
        proc.wait()
    except KeyboardInterrupt:
        print("\n  Shutting down...")
        proc.terminate()
        proc.wait(timeout=5)
        print("  Done.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Workcell demo")
    parser.add_argument("plan", nargs="*", help="Skill ids to run in order")
    parser.add_argument("--layout", default="single", choices=["single", "dual"])
    parser.add_argument("--serve", action="store_true", help="Start the API instead")
    args = parser.parse_args()

    if args.serve:
        serve()
        return

    settings = get_settings()
    configure_logging(settings.log_level)
    plan = args.plan or DEFAULT_PLAN
    sys.exit(asyncio.run(run_local(settings, args.layout, plan)))


if __name__ == "__main__":
    main()
