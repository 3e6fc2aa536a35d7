"""Shared test fixtures for the workcell test suite."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from workcell.cell.workcell import Workcell
from workcell.config import Settings

# Short retraction delays keep timer tests fast.
SLOW_RETRACT_S = 0.05
FAST_RETRACT_S = 0.02


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings isolated to tmp_path, with no API key and fast pushers."""
    return Settings(
        layout="single",
        data_dir=tmp_path / "data",
        anthropic_api_key=None,
        model="test-model",
        slow_retract_s=SLOW_RETRACT_S,
        fast_retract_s=FAST_RETRACT_S,
        log_level="DEBUG",
    )


@pytest.fixture()
def single_cell(settings: Settings) -> Iterator[Workcell]:
    """A single-arm, single-pusher cell in its power-on state."""
    cell = Workcell("single", settings)
    yield cell
    cell.close()


@pytest.fixture()
def dual_cell(settings: Settings) -> Iterator[Workcell]:
    """A dual-arm, dual-pusher cell in its power-on state."""
    cell = Workcell("dual", settings)
    yield cell
    cell.close()


@pytest.fixture()
def evaluations_dir(tmp_path: Path) -> Path:
    """Return a clean temporary directory for evaluation data."""
    d = tmp_path / "evaluations"
    d.mkdir()
    return d
