"""Language-model plan generation using Claude.

Sends the station description, the skill catalog and the current cell
state to Claude, and parses back either a full plan (ordered skill ids
plus declared cost totals) or a single next skill. The generator never
touches the cell; its output is executed by the plan runner.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any

from workcell.cell.layout import SkillCost, declared_totals
from workcell.cell.skills import SkillRegistry
from workcell.config import DEFAULT_MODEL
from workcell.errors import PlannerError
from workcell.planning.prompts import plan_prompt, skill_prompt, system_prompt

logger = logging.getLogger(__name__)


@dataclass
class GeneratedPlan:
    """A plan returned by the generator.

    Attributes:
        plan: Skill identifiers in execution order (not yet validated).
        explanation: The model's reasoning.
        declared_energy: Energy total claimed by the model, if given.
        declared_time: Time total claimed by the model, if given.
        declared_wear: Wear total claimed by the model, if given.
        model_name: Model that produced the plan.
    """

    plan: list[str] = field(default_factory=list)
    explanation: str = ""
    declared_energy: float | None = None
    declared_time: float | None = None
    declared_wear: float | None = None
    model_name: str = ""

    @property
    def declared_cost(self) -> SkillCost | None:
        """Declared totals as a SkillCost, or None if the model gave none."""
        return declared_totals(self.declared_energy, self.declared_time, self.declared_wear)


@dataclass
class SkillChoice:
    """A single skill picked by the generator."""

    skill: str
    explanation: str = ""
    model_name: str = ""


def _strip_fences(raw_text: str) -> str:
    text = raw_text.strip()
    if text.startswith("```"):
        first_newline = text.find("\n")
        text = text[first_newline + 1 :] if first_newline != -1 else text[3:]
    if text.endswith("```"):
        text = text[:-3].rstrip()
    return text


def _optional_number(data: dict[str, Any], key: str) -> float | None:
    value = data.get(key)
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric %s from planner: %r", key, value)
        return None


class AIPlanner:
    """Generate skill plans with Claude.

    Args:
        registry: Skill catalog described to the model.
        api_key: Anthropic API key. Falls back to ANTHROPIC_API_KEY env var.
        model: Claude model used when a call does not name one.
    """

    def __init__(
        self,
        registry: SkillRegistry,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
    ) -> None:
        self.registry = registry
        self._api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def generate_plan(
        self,
        query: str,
        state_description: str,
        model_name: str | None = None,
    ) -> GeneratedPlan:
        """Ask the model for a plan that satisfies *query*.

        Args:
            query: Free-text user request.
            state_description: Flat description of the current cell state.
            model_name: Override for the configured model.

        Returns:
            GeneratedPlan. Skill ids are returned as given; unknown ids are
            reported by the plan runner at their step.

        Raises:
            PlannerError: If the API key is missing, the API call fails,
                or the response is not a valid plan object.
        """
        model = model_name or self._model
        raw_text = await self._complete(plan_prompt(query, state_description), model)
        plan = self._parse_plan(raw_text)
        plan.model_name = model
        logger.info("Generated plan with %s: %s", model, plan.plan)
        return plan

    async def select_skill(
        self,
        query: str,
        state_description: str,
        model_name: str | None = None,
    ) -> SkillChoice:
        """Ask the model for the one skill that best answers *query*.

        Raises:
            PlannerError: Same conditions as :meth:`generate_plan`.
        """
        model = model_name or self._model
        raw_text = await self._complete(skill_prompt(query, state_description), model)
        choice = self._parse_skill(raw_text)
        choice.model_name = model
        logger.info("Selected skill with %s: %s", model, choice.skill)
        return choice

    async def _complete(self, prompt: str, model: str) -> str:
        """Send one user message and return the text of the reply."""
        if not self._api_key:
            raise PlannerError(
                "ANTHROPIC_API_KEY not set. Configure it in the environment "
                "or pass api_key to AIPlanner."
            )

        try:
            from anthropic import AsyncAnthropic
        except ImportError as e:
            raise PlannerError("anthropic package not installed. Run: pip install anthropic") from e

        try:
            client = AsyncAnthropic(api_key=self._api_key)
            message = await client.messages.create(
                model=model,
                max_tokens=1024,
                temperature=0,
                system=system_prompt(self.registry),
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            logger.error("Anthropic API call failed: %s", e)
            raise PlannerError(f"Plan generation failed: {e}") from e

        if not message.content:
            raise PlannerError("Plan generation returned an empty response")
        raw_text = message.content[0].text
        logger.debug("Planner response (%d chars)", len(raw_text))
        return raw_text

    def _load_json(self, raw_text: str) -> dict[str, Any]:
        try:
            data = json.loads(_strip_fences(raw_text))
        except json.JSONDecodeError as e:
            logger.error("Failed to parse planner response: %s\nRaw: %.500s", e, raw_text)
            raise PlannerError("Planner returned invalid JSON response") from e
        if not isinstance(data, dict):
            raise PlannerError("Planner response is not a JSON object")
        return data

    def _parse_plan(self, raw_text: str) -> GeneratedPlan:
        """Parse the model's JSON reply into a GeneratedPlan."""
        data = self._load_json(raw_text)
        plan = data.get("plan")
        if not isinstance(plan, list) or not all(isinstance(s, str) for s in plan):
            raise PlannerError("Planner response has no valid 'plan' list of skill ids")

        return GeneratedPlan(
            plan=[s.strip() for s in plan],
            explanation=str(data.get("explanation") or "Unable to determine explanation"),
            declared_energy=_optional_number(data, "totalEnergy"),
            declared_time=_optional_number(data, "totalTime"),
            declared_wear=_optional_number(data, "totalWear"),
        )

    def _parse_skill(self, raw_text: str) -> SkillChoice:
        data = self._load_json(raw_text)
        skill = data.get("skill")
        if not isinstance(skill, str) or not skill.strip():
            raise PlannerError("Planner response has no valid 'skill'")
        return SkillChoice(skill=skill.strip(), explanation=str(data.get("explanation", "")))
