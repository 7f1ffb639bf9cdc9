"""
Goal Evaluation

DESIGN DECISION: The math is always done here, deterministically. The AI
advisor only comments on a GoalContext whose numbers are already fixed,
and it is optional: every path through request_analysis ends in a result.

FLOW:
1. GoalInputs -> evaluate() -> GoalContext (projection, requirement, gap)
2. GoalContext -> request_analysis() -> advisor result
                                        or offline rules on None/error/timeout
"""

import asyncio
from typing import Optional

import structlog

from wealthwise.agents.base import AdvisoryAgent
from wealthwise.config import EngineSettings, get_settings
from wealthwise.engine.projection import compound_forward
from wealthwise.engine.rules import generate_offline_analysis
from wealthwise.models.goals import (
    GoalAnalysisResult,
    GoalContext,
    GoalInputs,
    GoalType,
)


logger = structlog.get_logger(__name__)


def retirement_capital(
    monthly_expense: float,
    withdrawal_rate: float = 0.04,
) -> float:
    """Capital whose yearly withdrawal at `withdrawal_rate` covers the expense."""
    return monthly_expense * 12 / withdrawal_rate


class GoalEvaluator:
    """
    Evaluates savings goals.

    Stateless between calls; the advisor and settings are fixed at
    construction.
    """

    def __init__(
        self,
        advisor: Optional[AdvisoryAgent] = None,
        settings: Optional[EngineSettings] = None,
        timeout_seconds: Optional[float] = None,
    ):
        """
        Args:
            advisor: Advisory collaborator. If None, analyses come
                     from the offline rule engine only.
            settings: Engine settings (defaults from environment)
            timeout_seconds: Max wait for the advisor; None waits forever
        """
        self._advisor = advisor
        self._settings = settings or get_settings().engine
        self._timeout = timeout_seconds

    @property
    def advisor(self) -> Optional[AdvisoryAgent]:
        return self._advisor

    def evaluate(self, inputs: GoalInputs) -> GoalContext:
        """
        Compute projection, requirement and gap for a goal.

        Purchase: projected over years_to_goal; required = target_amount.
        Retirement: projected over a fixed horizon (240 months by default,
        not user-configurable); required from the 4% rule.
        """
        if inputs.type is GoalType.PURCHASE:
            months = inputs.years_to_goal * 12
            required = inputs.target_amount
        else:
            months = self._settings.retirement_horizon_months
            required = retirement_capital(
                inputs.target_monthly_expense,
                self._settings.safe_withdrawal_rate,
            )

        projected = compound_forward(
            inputs.current_principal,
            inputs.monthly_savings,
            inputs.expected_return_rate,
            months,
        )

        return GoalContext(
            **inputs.model_dump(),
            projected_amount=projected,
            required_amount=required,
            gap=projected - required,
            is_achievable=projected >= required,
        )

    def offline_analysis(self, ctx: GoalContext) -> GoalAnalysisResult:
        """Rule-based analysis. Safe to call at any time."""
        return generate_offline_analysis(ctx, self._settings)

    async def request_analysis(self, ctx: GoalContext) -> GoalAnalysisResult:
        """
        Get a narrative analysis of a goal.

        Asks the advisor first. Falls back to the offline rules when there
        is no advisor, when it answers None, raises, or exceeds the timeout.
        Never raises itself.
        """
        if self._advisor is None:
            return self.offline_analysis(ctx)

        result = None
        try:
            result = await asyncio.wait_for(
                self._advisor.analyze_goal(ctx),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "advisor_timeout",
                goal_type=ctx.type.value,
                timeout_seconds=self._timeout,
            )
        except Exception as e:
            logger.warning(
                "advisor_failed",
                goal_type=ctx.type.value,
                error=str(e),
            )

        if result is None:
            return self.offline_analysis(ctx)
        return result
