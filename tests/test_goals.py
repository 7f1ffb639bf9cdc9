"""Tests for goal evaluation, offline rules and advisor fallback."""

import asyncio

import pytest

from wealthwise.agents import AdvisoryAgent
from wealthwise.config import EngineSettings
from wealthwise.engine import (
    GoalEvaluator,
    classify_goal,
    completion_percent,
    generate_offline_analysis,
    retirement_capital,
)
from wealthwise.engine.rules import (
    FEASIBLE_SUGGESTIONS,
    MAJOR_DIFFICULTY_SUGGESTIONS,
)
from wealthwise.models.goals import (
    AnalysisSource,
    GoalAnalysisResult,
    GoalContext,
    GoalInputs,
    GoalType,
    GoalVerdict,
)


def make_context(projected: float, required: float, goal_type=GoalType.PURCHASE) -> GoalContext:
    extra = (
        {"target_amount": required, "years_to_goal": 5}
        if goal_type is GoalType.PURCHASE
        else {"target_monthly_expense": required * 0.04 / 12}
    )
    return GoalContext(
        type=goal_type,
        projected_amount=projected,
        required_amount=required,
        gap=projected - required,
        is_achievable=projected >= required,
        **extra,
    )


class FixedAdvisor(AdvisoryAgent):
    def __init__(self, result):
        self.result = result
        self.calls = 0

    async def analyze_goal(self, ctx):
        self.calls += 1
        return self.result


class FailingAdvisor(AdvisoryAgent):
    async def analyze_goal(self, ctx):
        raise RuntimeError("boom")


class SlowAdvisor(AdvisoryAgent):
    async def analyze_goal(self, ctx):
        await asyncio.sleep(5)
        return GoalAnalysisResult(evaluation="Late", summary="too late")


class TestEvaluate:
    """Tests for GoalEvaluator.evaluate."""

    def test_retirement_capital(self):
        """5000 a month at 4% needs 1.5 million."""
        assert retirement_capital(5000) == 1500000

    def test_retirement_goal(self):
        """Retirement uses the 4% rule and a 240-month horizon."""
        inputs = GoalInputs(
            type=GoalType.RETIREMENT,
            current_principal=0,
            monthly_savings=1000,
            expected_return_rate=0,
            target_monthly_expense=5000,
        )
        ctx = GoalEvaluator().evaluate(inputs)
        assert ctx.required_amount == 1500000
        assert ctx.projected_amount == 240000
        assert ctx.gap == -1260000
        assert ctx.is_achievable is False

    def test_purchase_goal(self):
        """Purchase projects over years_to_goal."""
        inputs = GoalInputs(
            type=GoalType.PURCHASE,
            current_principal=10000,
            monthly_savings=0,
            expected_return_rate=12,
            target_amount=11000,
            years_to_goal=1,
        )
        ctx = GoalEvaluator().evaluate(inputs)
        assert ctx.projected_amount == pytest.approx(11268.25, abs=0.01)
        assert ctx.required_amount == 11000
        assert ctx.is_achievable is True
        assert ctx.gap > 0

    def test_exact_target_is_achievable(self):
        """Reaching the target exactly counts as achievable."""
        inputs = GoalInputs(
            type=GoalType.PURCHASE,
            monthly_savings=100,
            target_amount=1200,
            years_to_goal=1,
        )
        ctx = GoalEvaluator().evaluate(inputs)
        assert ctx.gap == 0
        assert ctx.is_achievable is True

    def test_settings_change_horizon(self):
        """The retirement horizon comes from settings."""
        inputs = GoalInputs(
            type=GoalType.RETIREMENT,
            monthly_savings=100,
            target_monthly_expense=1,
        )
        evaluator = GoalEvaluator(settings=EngineSettings(retirement_horizon_months=12))
        assert evaluator.evaluate(inputs).projected_amount == 1200


class TestOfflineRules:
    """Tests for the offline rule engine."""

    def test_completion_caps_at_100(self):
        """Overshooting a goal is still 100%."""
        assert completion_percent(make_context(200, 100)) == 100

    def test_completion_zero_requirement(self):
        """Nothing required means complete."""
        assert completion_percent(make_context(0, 0)) == 100

    @pytest.mark.parametrize(
        "projected, expected",
        [
            (40, GoalVerdict.MAJOR_DIFFICULTY),
            (50, GoalVerdict.NEEDS_ADJUSTMENT),
            (70, GoalVerdict.NEEDS_ADJUSTMENT),
            (100, GoalVerdict.FEASIBLE),
        ],
    )
    def test_buckets(self, projected, expected):
        """Verdict buckets by completion of a 100 target."""
        assert classify_goal(make_context(projected, 100)) is expected

    def test_completion_rounds_before_threshold(self):
        """49.6% rounds to 50% and needs adjustment."""
        assert classify_goal(make_context(49.6, 100)) is GoalVerdict.NEEDS_ADJUSTMENT
        assert classify_goal(make_context(49.4, 100)) is GoalVerdict.MAJOR_DIFFICULTY

    def test_feasible_analysis(self):
        """Feasible goals get the encouraging template."""
        result = generate_offline_analysis(make_context(150, 100))
        assert result.evaluation == "Feasible"
        assert "100%" in result.summary
        assert result.suggestions == FEASIBLE_SUGGESTIONS
        assert result.source is AnalysisSource.OFFLINE

    def test_major_difficulty_analysis(self):
        """Large gaps mention the shortfall amount."""
        result = generate_offline_analysis(make_context(400000, 1000000))
        assert result.evaluation == "Major Difficulty"
        assert "¥600,000" in result.summary
        assert result.suggestions == MAJOR_DIFFICULTY_SUGGESTIONS

    def test_needs_adjustment_purchase(self):
        """Near misses on purchases suggest a short delay."""
        result = generate_offline_analysis(make_context(70000, 100000))
        assert result.evaluation == "Needs Adjustment"
        assert "70%" in result.summary
        assert "¥30,000" in result.summary
        assert any("1-2 years" in s for s in result.suggestions)

    def test_needs_adjustment_retirement(self):
        """Near misses on retirement suggest a few years."""
        ctx = make_context(700000, 1000000, goal_type=GoalType.RETIREMENT)
        result = generate_offline_analysis(ctx)
        assert any("a few years" in s for s in result.suggestions)

    def test_currency_symbol_from_settings(self):
        """Texts use the configured currency symbol."""
        result = generate_offline_analysis(
            make_context(0, 1000),
            EngineSettings(currency_symbol="$"),
        )
        assert "$1,000" in result.summary


class TestRequestAnalysis:
    """Tests for advisor use and fallback."""

    @pytest.mark.asyncio
    async def test_no_advisor_uses_rules(self):
        """Without an advisor the rules answer."""
        result = await GoalEvaluator().request_analysis(make_context(100, 100))
        assert result.source is AnalysisSource.OFFLINE
        assert result.evaluation == "Feasible"

    @pytest.mark.asyncio
    async def test_advisor_result_is_used(self):
        """A usable advisor answer is returned as-is."""
        answer = GoalAnalysisResult(
            evaluation="Solid",
            summary="Looks good",
            source=AnalysisSource.ADVISOR,
        )
        advisor = FixedAdvisor(answer)
        result = await GoalEvaluator(advisor=advisor).request_analysis(make_context(100, 100))
        assert result == answer
        assert advisor.calls == 1

    @pytest.mark.asyncio
    async def test_advisor_none_falls_back(self):
        """None from the advisor means use the rules."""
        evaluator = GoalEvaluator(advisor=FixedAdvisor(None))
        result = await evaluator.request_analysis(make_context(40, 100))
        assert result.evaluation == "Major Difficulty"

    @pytest.mark.asyncio
    async def test_advisor_exception_falls_back(self):
        """A raising advisor never escapes request_analysis."""
        evaluator = GoalEvaluator(advisor=FailingAdvisor())
        result = await evaluator.request_analysis(make_context(70, 100))
        assert result.evaluation == "Needs Adjustment"

    @pytest.mark.asyncio
    async def test_advisor_timeout_falls_back(self):
        """A slow advisor is abandoned after the timeout."""
        evaluator = GoalEvaluator(advisor=SlowAdvisor(), timeout_seconds=0.05)
        result = await evaluator.request_analysis(make_context(100, 100))
        assert result.source is AnalysisSource.OFFLINE
