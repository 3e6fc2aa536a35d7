"""Workcell planner: skill-level simulation of a small factory workcell."""

__version__ = "0.1.0"
