"""
Offline Goal Analysis Rules

DESIGN DECISION: The rule engine is deterministic and has no dependencies
beyond the goal context. It is what the planner answers with whenever the
AI advisor is missing, slow, or returns something unusable, so it must
never fail.

The decision surface is a single table of three mutually exclusive buckets:

    achievable                          -> FEASIBLE
    not achievable, completion <  50%   -> MAJOR_DIFFICULTY
    not achievable, completion >= 50%   -> NEEDS_ADJUSTMENT

Completion is rounded to a whole percent before the comparison, the same
number the user sees in the summary text.
"""

import math
from typing import Optional

from wealthwise.config import EngineSettings, get_settings
from wealthwise.models.goals import (
    AnalysisSource,
    GoalAnalysisResult,
    GoalContext,
    GoalType,
    GoalVerdict,
)

COMPLETION_THRESHOLD_PCT = 50.0


FEASIBLE_SUGGESTIONS = [
    "Keep up your current savings habit and avoid interrupting it.",
    "Review your asset position regularly, at least once a year.",
    "If markets do better than expected, put the surplus into an emergency reserve.",
]

FEASIBLE_RISK_WARNING = (
    "The completion rate assumes a fixed rate of return. Market swings can "
    "leave actual returns below expectations."
)

MAJOR_DIFFICULTY_SUGGESTIONS = [
    "Raise your monthly savings substantially (earn more, spend less).",
    "Consider lowering the target amount or pushing back the target date.",
    "Learn more about investing and look for higher-return assets within a risk level you can accept.",
]

SHORTFALL_RISK_WARNING = (
    "Chasing high-yield products to close the gap can cost you principal. "
    "Make sure any investment matches the risk you can bear."
)


def completion_percent(ctx: GoalContext) -> float:
    """
    Share of the required capital the projection reaches, capped at 100.

    A goal that requires nothing is complete.
    """
    if ctx.required_amount <= 0:
        return 100.0
    return min(ctx.projected_amount / ctx.required_amount, 1.0) * 100


def _round_percent(value: float) -> int:
    """Round half up to a whole percent."""
    return int(math.floor(value + 0.5))


def classify_goal(
    ctx: GoalContext,
    threshold_pct: float = COMPLETION_THRESHOLD_PCT,
) -> GoalVerdict:
    """Pick the verdict bucket for a goal."""
    if ctx.is_achievable:
        return GoalVerdict.FEASIBLE
    if _round_percent(completion_percent(ctx)) < threshold_pct:
        return GoalVerdict.MAJOR_DIFFICULTY
    return GoalVerdict.NEEDS_ADJUSTMENT


def generate_offline_analysis(
    ctx: GoalContext,
    settings: Optional[EngineSettings] = None,
) -> GoalAnalysisResult:
    """
    Build a rule-based analysis of a goal.

    Args:
        ctx: Goal with computed projection
        settings: Engine settings (currency symbol)

    Returns:
        GoalAnalysisResult with source=OFFLINE
    """
    settings = settings or get_settings().engine
    percent = _round_percent(completion_percent(ctx))
    gap_text = f"{settings.currency_symbol}{abs(ctx.gap):,.0f}"
    verdict = classify_goal(ctx)

    if verdict is GoalVerdict.FEASIBLE:
        summary = (
            f"Congratulations! Based on the current plan the expected completion "
            f"rate is {percent}%. Compounding is working for you, and your savings "
            f"and returns are enough to cover the goal."
        )
        suggestions = list(FEASIBLE_SUGGESTIONS)
        risk_warning = FEASIBLE_RISK_WARNING

    elif verdict is GoalVerdict.MAJOR_DIFFICULTY:
        summary = (
            f"The funding gap is large (about {gap_text}). Current contributions "
            f"alone are unlikely to reach the goal; it needs substantial changes."
        )
        suggestions = list(MAJOR_DIFFICULTY_SUGGESTIONS)
        risk_warning = SHORTFALL_RISK_WARNING

    else:
        delay = "1-2 years" if ctx.type is GoalType.PURCHASE else "a few years"
        summary = (
            f"Very close! The expected completion rate is {percent}%, about "
            f"{gap_text} short. A small adjustment should get you there."
        )
        suggestions = [
            "Try increasing your monthly savings by 10% - 20%.",
            f"If possible, push the target date back by {delay}.",
            "Check for idle assets that could be invested to raise the starting principal.",
        ]
        risk_warning = SHORTFALL_RISK_WARNING

    return GoalAnalysisResult(
        evaluation=verdict.value,
        summary=summary,
        suggestions=suggestions,
        risk_warning=risk_warning,
        source=AnalysisSource.OFFLINE,
    )
