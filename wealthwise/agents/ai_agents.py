"""
AI Agents for WealthWise

CRITICAL BOUNDARIES:

1. ADVISORY AGENT (goal analysis):
   - CAN: Comment on a goal whose numbers the engine already computed
   - CAN: Suggest concrete ways to close a gap
   - CANNOT: Change the projection, requirement or verdict math
   - MUST: Return None (never raise) when it cannot answer, so the
     planner falls back to the offline rule engine

2. CHAT AGENT:
   - CAN: Hold a general conversation about personal finance
   - MUST: Always yield something - a fixed notice when offline or
     when the connection drops

The LLM is an ADVISOR, not a CALCULATOR.
"""

import json
from collections.abc import AsyncIterator, Sequence
from typing import Any, Optional

import google.generativeai as genai
import structlog
from pydantic import ValidationError

from wealthwise.agents.base import AdvisoryAgent, ChatAgent
from wealthwise.config import EngineSettings, GeminiSettings, get_settings
from wealthwise.engine.rules import generate_offline_analysis
from wealthwise.models.goals import (
    AnalysisSource,
    ChatMessage,
    GoalAnalysisResult,
    GoalContext,
    GoalType,
)


logger = structlog.get_logger(__name__)

OFFLINE_CHAT_NOTICE = (
    "System notice: no AI service key is configured, so the chat advisor is "
    "unavailable. Please contact the administrator or use the calculators "
    "on the page."
)

CONNECTION_ERROR_NOTICE = "The network connection is unstable, please try again later."


def _extract_json_object(text: str) -> Optional[dict]:
    """Find and parse the outermost JSON object in a model reply."""
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        return None
    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


class GeminiAdvisoryAgent(AdvisoryAgent):
    """
    Goal analysis backed by Gemini.

    RESPONSIBILITIES:
    - Turn the computed goal into a short, actionable assessment

    BOUNDARIES:
    - Sees only the flattened GoalContext
    - Any failure (network, empty reply, malformed JSON, missing
      fields) is reported as None
    """

    is_remote = True

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
    ):
        """
        Args:
            settings: Gemini settings (defaults from environment)
            model: Pre-built generative model; skips genai configuration
        """
        self._settings = settings or get_settings().gemini
        self._model = model or self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
                "response_mime_type": "application/json",
            },
        )

    def build_prompt(self, ctx: GoalContext) -> str:
        """Render the analysis request for a goal."""
        if ctx.type is GoalType.PURCHASE:
            goal_type = "Major Purchase (e.g., House/Car)"
            specific = f"- Years to Goal: {ctx.years_to_goal}"
        else:
            goal_type = "Retirement/FIRE"
            specific = f"- Desired Monthly Passive Income: {ctx.target_monthly_expense:,.0f}"

        payload = json.dumps(ctx.to_advisor_payload(), ensure_ascii=False)

        return f"""Analyze this financial goal scientifically.

Context:
- Goal Type: {goal_type}
- Current Assets: {ctx.current_principal:,.0f}
- Monthly Savings: {ctx.monthly_savings:,.0f}
- Expected Annual Return: {ctx.expected_return_rate}%
- Target Amount Needed: {ctx.required_amount:,.0f}
- Projected Amount (Calculated): {ctx.projected_amount:,.0f}
- Is Achievable via math: {"YES" if ctx.is_achievable else "NO"}
{specific}

Raw data: {payload}

Task:
Provide actionable advice. If the goal is not achievable, suggest specific
ways to close the gap. Do NOT recompute the numbers above.

Respond with ONLY a JSON object in this exact format:
{{"evaluation": "short verdict like Excellent, Solid, Challenging or Needs Adjustment",
  "summary": "analysis of the gap or success factor",
  "suggestions": ["3-4 concrete steps"],
  "riskWarning": "what could go wrong"}}"""

    async def analyze_goal(self, ctx: GoalContext) -> Optional[GoalAnalysisResult]:
        """Ask Gemini for an assessment; None on any failure."""
        prompt = self.build_prompt(ctx)

        try:
            response = await self._model.generate_content_async(prompt)
            text = (response.text or "").strip()
        except Exception as e:
            logger.warning("gemini_analysis_failed", error=str(e))
            return None

        data = _extract_json_object(text)
        if data is None:
            logger.warning("gemini_analysis_unparseable", response_preview=text[:200])
            return None

        try:
            result = GoalAnalysisResult.model_validate(data)
        except ValidationError as e:
            logger.warning("gemini_analysis_invalid", error=str(e))
            return None

        return result.model_copy(update={"source": AnalysisSource.ADVISOR})


class RuleBasedAdvisoryAgent(AdvisoryAgent):
    """Advisor that always answers with the offline rule engine."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self._settings = settings or get_settings().engine

    async def analyze_goal(self, ctx: GoalContext) -> Optional[GoalAnalysisResult]:
        return generate_offline_analysis(ctx, self._settings)


class GeminiChatAgent(ChatAgent):
    """Streaming chat advisor backed by Gemini."""

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
    ):
        self._settings = settings or get_settings().gemini
        self._model = model or self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            system_instruction=self._settings.system_instruction,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            },
        )

    @staticmethod
    def to_gemini_history(history: Sequence[ChatMessage]) -> list[dict]:
        """Convert our messages to Gemini content turns."""
        return [
            {"role": message.role.value, "parts": [message.text]}
            for message in history
        ]

    async def stream_reply(
        self,
        history: Sequence[ChatMessage],
        message: str,
    ) -> AsyncIterator[str]:
        try:
            chat = self._model.start_chat(history=self.to_gemini_history(history))
            response = await chat.send_message_async(message, stream=True)
            async for chunk in response:
                if chunk.text:
                    yield chunk.text
        except Exception as e:
            logger.warning("gemini_chat_failed", error=str(e))
            yield CONNECTION_ERROR_NOTICE


class OfflineChatAgent(ChatAgent):
    """Chat advisor used when no AI service is configured."""

    async def stream_reply(
        self,
        history: Sequence[ChatMessage],
        message: str,
    ) -> AsyncIterator[str]:
        yield OFFLINE_CHAT_NOTICE


def create_advisory_agent(settings: Optional[GeminiSettings] = None) -> AdvisoryAgent:
    """Gemini advisor when a key is configured, rule engine otherwise."""
    settings = settings or get_settings().gemini
    if not settings.is_configured:
        logger.info("advisor_offline_mode", reason="no GEMINI_API_KEY")
        return RuleBasedAdvisoryAgent()
    try:
        return GeminiAdvisoryAgent(settings)
    except Exception as e:
        logger.warning("advisor_init_failed", error=str(e))
        return RuleBasedAdvisoryAgent()


def create_chat_agent(settings: Optional[GeminiSettings] = None) -> ChatAgent:
    """Gemini chat when a key is configured, offline notice otherwise."""
    settings = settings or get_settings().gemini
    if not settings.is_configured:
        return OfflineChatAgent()
    try:
        return GeminiChatAgent(settings)
    except Exception as e:
        logger.warning("chat_init_failed", error=str(e))
        return OfflineChatAgent()
