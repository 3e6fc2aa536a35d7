"""Exception hierarchy for the workcell package.

Step-level failures (unknown skill, unmet precondition) are reported as
data in :class:`~workcell.execution.types.StepResult`, not raised.
"""

from __future__ import annotations


class WorkcellError(Exception):
    """Base class for all workcell errors."""


class CellStateError(WorkcellError):
    """Raised when a state update would break a cell invariant."""


class PlannerError(WorkcellError):
    """Raised when the plan generator fails or returns an invalid plan."""


class RecorderError(WorkcellError):
    """Raised when an evaluation record cannot be persisted."""
