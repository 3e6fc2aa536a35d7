"""Tests for workcell.planning.ai_planner."""

from __future__ import annotations

import pytest

from workcell.cell.layout import DUAL_ARM_LAYOUT, SINGLE_ARM_LAYOUT, SkillCost
from workcell.cell.skills import SkillRegistry
from workcell.errors import PlannerError
from workcell.planning.ai_planner import AIPlanner
from workcell.planning.prompts import plan_prompt, skill_prompt, system_prompt


def _planner(layout=SINGLE_ARM_LAYOUT, api_key: str | None = "test-key") -> AIPlanner:
    return AIPlanner(SkillRegistry(layout), api_key=api_key, model="test-model")


def _stub_completion(monkeypatch: pytest.MonkeyPatch, planner: AIPlanner, reply: str) -> list:
    """Replace the API call with a canned reply; returns the captured calls."""
    calls: list[tuple[str, str]] = []

    async def fake_complete(prompt: str, model: str) -> str:
        calls.append((prompt, model))
        return reply

    monkeypatch.setattr(planner, "_complete", fake_complete)
    return calls


# ---------------------------------------------------------------------------
# _parse_plan
# ---------------------------------------------------------------------------


class TestParsePlan:
    """Tests for AIPlanner._parse_plan()."""

    def test_malformed_json_raises(self) -> None:
        """Garbage input raises PlannerError."""
        with pytest.raises(PlannerError, match="invalid JSON"):
            _planner()._parse_plan("this is not json {{{")

    def test_non_object_raises(self) -> None:
        with pytest.raises(PlannerError, match="not a JSON object"):
            _planner()._parse_plan('["load_magazine_skill"]')

    def test_valid_json_parses(self) -> None:
        """Well-formed JSON produces a GeneratedPlan with declared totals."""
        raw = """{
            "plan": ["load_magazine_skill", "push_workpiece_skill"],
            "explanation": "Fill the magazine, then push one workpiece.",
            "totalEnergy": 3,
            "totalTime": 5,
            "totalWear": 1
        }"""
        plan = _planner()._parse_plan(raw)
        assert plan.plan == ["load_magazine_skill", "push_workpiece_skill"]
        assert "Fill the magazine" in plan.explanation
        assert plan.declared_cost == SkillCost(energy=3, time=5, wear=1)

    def test_strips_markdown_fences(self) -> None:
        """Markdown-fenced JSON is parsed correctly."""
        raw = '```json\n{"plan": ["move_to_left_skill"]}\n```'
        plan = _planner()._parse_plan(raw)
        assert plan.plan == ["move_to_left_skill"]
        assert plan.explanation == "Unable to determine explanation"

    def test_missing_plan_raises(self) -> None:
        with pytest.raises(PlannerError, match="'plan'"):
            _planner()._parse_plan('{"explanation": "nothing to do"}')

    def test_non_string_step_raises(self) -> None:
        with pytest.raises(PlannerError, match="'plan'"):
            _planner()._parse_plan('{"plan": ["load_magazine_skill", 3]}')

    def test_unknown_skill_ids_kept(self) -> None:
        """Validation belongs to the runner; the parser keeps ids as given."""
        plan = _planner()._parse_plan('{"plan": ["fly_skill"]}')
        assert plan.plan == ["fly_skill"]

    def test_non_numeric_totals_ignored(self) -> None:
        raw = '{"plan": [], "totalEnergy": "lots", "totalTime": true, "totalWear": 2}'
        plan = _planner()._parse_plan(raw)
        assert plan.declared_energy is None
        assert plan.declared_time is None
        assert plan.declared_wear == 2
        assert plan.declared_cost == SkillCost(energy=0, time=0, wear=2)

    def test_no_totals_means_no_declared_cost(self) -> None:
        plan = _planner()._parse_plan('{"plan": ["load_magazine_skill"]}')
        assert plan.declared_cost is None

    def test_string_totals_coerced(self) -> None:
        raw = '{"plan": [], "totalEnergy": "4", "totalTime": "2.5", "totalWear": 0}'
        plan = _planner()._parse_plan(raw)
        assert plan.declared_cost == SkillCost(energy=4, time=2.5, wear=0)


class TestParseSkill:
    def test_valid_skill(self) -> None:
        choice = _planner()._parse_skill('{"skill": " load_magazine_skill ", "explanation": "x"}')
        assert choice.skill == "load_magazine_skill"
        assert choice.explanation == "x"

    def test_missing_skill_raises(self) -> None:
        with pytest.raises(PlannerError, match="'skill'"):
            _planner()._parse_skill('{"explanation": "no idea"}')


# ---------------------------------------------------------------------------
# API calls
# ---------------------------------------------------------------------------


class TestCompletion:
    async def test_missing_api_key_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        planner = _planner(api_key=None)
        with pytest.raises(PlannerError, match="ANTHROPIC_API_KEY"):
            await planner.generate_plan("load the magazine", "Status: idle")

    async def test_generate_plan_uses_override_model(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        planner = _planner()
        calls = _stub_completion(
            monkeypatch,
            planner,
            '{"plan": ["load_magazine_skill"], "explanation": "empty magazine",'
            ' "totalEnergy": 2, "totalTime": 2, "totalWear": 0.5}',
        )

        plan = await planner.generate_plan("fill it", "Magazine Workpiece Count: 0", "other")

        assert plan.plan == ["load_magazine_skill"]
        assert plan.model_name == "other"
        prompt, model = calls[0]
        assert model == "other"
        assert '"fill it"' in prompt
        assert "Magazine Workpiece Count: 0" in prompt

    async def test_select_skill_defaults_to_configured_model(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        planner = _planner()
        _stub_completion(monkeypatch, planner, '{"skill": "move_to_left_skill"}')

        choice = await planner.select_skill("go left", "Arm Position: right")

        assert choice.skill == "move_to_left_skill"
        assert choice.model_name == "test-model"

    async def test_bad_reply_propagates(self, monkeypatch: pytest.MonkeyPatch) -> None:
        planner = _planner()
        _stub_completion(monkeypatch, planner, "Sure! Here is your plan.")
        with pytest.raises(PlannerError):
            await planner.generate_plan("anything", "")


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


class TestPrompts:
    def test_system_prompt_lists_skills_with_costs(self) -> None:
        text = system_prompt(SkillRegistry(DUAL_ARM_LAYOUT))
        assert "pusher2_push_fast_workpiece_skill" in text
        assert "Energy: 2, Time: 2, Wear: 1" in text
        assert "Operating rules" in text

    def test_system_prompt_follows_registry(self) -> None:
        text = system_prompt(SkillRegistry(SINGLE_ARM_LAYOUT))
        assert "push_workpiece_skill" in text
        assert "arm1_" not in text

    def test_plan_prompt_asks_for_totals(self) -> None:
        text = plan_prompt("move one workpiece", "Status: idle")
        for key in ('"plan"', '"totalEnergy"', '"totalTime"', '"totalWear"'):
            assert key in text

    def test_skill_prompt_asks_for_single_skill(self) -> None:
        text = skill_prompt("pick it up", "Status: idle")
        assert '"skill"' in text
        assert "SINGLE BEST" in text
