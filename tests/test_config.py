"""Tests for workcell.config."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from workcell import config
from workcell.config import Settings, configure_logging


@pytest.fixture()
def root_logger() -> Iterator[logging.Logger]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_logging_installs_one_handler(root_logger: logging.Logger) -> None:
    configure_logging("DEBUG")
    configure_logging("WARNING")

    assert root_logger.handlers.count(config._handler) == 1
    assert root_logger.level == logging.WARNING


def test_configure_logging_reinstalls_removed_handler(root_logger: logging.Logger) -> None:
    configure_logging("INFO")
    root_logger.removeHandler(config._handler)

    configure_logging("INFO")

    assert config._handler in root_logger.handlers


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WORKCELL_LAYOUT", "dual")
    monkeypatch.setenv("WORKCELL_DATA_DIR", "/tmp/cell")
    monkeypatch.setenv("WORKCELL_FAST_RETRACT_S", "0.25")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    settings = Settings()

    assert settings.layout == "dual"
    assert settings.evaluations_dir == Path("/tmp/cell") / "evaluations"
    assert settings.fast_retract_s == 0.25
    assert settings.slow_retract_s == 1.0
    assert settings.log_level == "DEBUG"
