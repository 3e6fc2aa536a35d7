"""Prompt text for the plan generator."""

from __future__ import annotations

from workcell.cell.skills import SkillRegistry
from workcell.cell.state import MAX_MAGAZINE_CAPACITY

OPERATING_RULES = f"""\
1. An arm can only pick a workpiece when a workpiece has been pushed and the arm is in \
the left position.
2. An arm can only place a workpiece when it is holding one and is in the right position.
3. A workpiece must be pushed from the magazine before it can be picked.
4. The magazine holds at most {MAX_MAGAZINE_CAPACITY} workpieces; loading always fills it.
5. Each arm can hold only one workpiece at a time.
6. Only one workpiece can be pushed onto the conveyor at a time.
7. If the magazine is empty, load it before pushing.
8. If a workpiece is already pushed, do not push again."""


def system_prompt(registry: SkillRegistry) -> str:
    """Describe the station, its skills with costs, and the operating rules."""
    layout = registry.layout
    return f"""You are controlling a factory distributing station with {layout.description}.

Physical configuration:
- The magazine is on the left side of the station.
- Pushers sit below the magazine and push a workpiece onto the conveyor at the arms' \
left side.
- Rotating arms pick a workpiece on their left side and place it on their right side.

Available skills with their cost model:
{registry.describe()}

Operating rules:
{OPERATING_RULES}"""


def plan_prompt(query: str, state_description: str) -> str:
    """Build the user message asking for a full plan."""
    return f"""Current state of the system:
{state_description}

Based on the following user request, create an efficient plan of skills to execute:
"{query}"

Respond with ONLY a JSON object (no markdown fences, no extra text):
{{
  "plan": ["skill_id", "..."],
  "explanation": "why this plan was chosen",
  "totalEnergy": <numeric sum of the energy costs, e.g. 12>,
  "totalTime": <numeric sum of the time costs, e.g. 8.5>,
  "totalWear": <numeric sum of the wear costs, e.g. 4.5>
}}

Use only skill ids from the list above. Make sure the plan follows the operating rules \
and accounts for the current state of the system."""


def skill_prompt(query: str, state_description: str) -> str:
    """Build the user message asking for the single best next skill."""
    return f"""Current state of the system:
{state_description}

Based on the following user request, identify the SINGLE BEST skill to execute right now:
"{query}"

Do NOT create a plan. Respond with ONLY a JSON object (no markdown fences, no extra text):
{{
  "skill": "skill_id",
  "explanation": "why this skill was chosen"
}}"""
