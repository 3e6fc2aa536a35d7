"""Runtime settings, read from the environment.

Every field falls back to a default so the simulator runs with no
configuration at all. Only the planning routes need ``ANTHROPIC_API_KEY``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_MODEL = "claude-sonnet-4-20250514"

# Handler installed by configure_logging, if any.
_handler: logging.Handler | None = None


@dataclass
class Settings:
    """Workcell settings.

    Attributes:
        layout: Name of the cell layout to build at startup ("single" or "dual").
        data_dir: Directory for the evaluation store.
        anthropic_api_key: Key for the plan generator, if any.
        model: Default model used by the plan generator.
        slow_retract_s: Retraction delay for slow pushers (seconds).
        fast_retract_s: Retraction delay for fast pushers (seconds).
        log_level: Root log level name.
    """

    layout: str = field(default_factory=lambda: os.getenv("WORKCELL_LAYOUT", "single"))
    data_dir: Path = field(
        default_factory=lambda: Path(os.getenv("WORKCELL_DATA_DIR", "data"))
    )
    anthropic_api_key: str | None = field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY") or None
    )
    model: str = field(default_factory=lambda: os.getenv("WORKCELL_MODEL", DEFAULT_MODEL))
    slow_retract_s: float = field(
        default_factory=lambda: float(os.getenv("WORKCELL_SLOW_RETRACT_S", "1.0"))
    )
    fast_retract_s: float = field(
        default_factory=lambda: float(os.getenv("WORKCELL_FAST_RETRACT_S", "0.8"))
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    @property
    def evaluations_dir(self) -> Path:
        return self.data_dir / "evaluations"


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger.

    Safe to call more than once; later calls only adjust the level.
    """
    global _handler
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if _handler is not None and _handler in root.handlers:
        return
    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root.addHandler(_handler)
