"""
Advisor Interfaces

Both advisors are optional collaborators with graceful degradation:

- AdvisoryAgent.analyze_goal returns None when it cannot answer.
  None is the signal to use the offline rule engine; implementations
  must not raise past this boundary.
- ChatAgent.stream_reply always yields at least one fragment. When the
  service is missing or fails it yields a fixed notice instead.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from typing import Optional

from wealthwise.models.goals import ChatMessage, GoalAnalysisResult, GoalContext


class AdvisoryAgent(ABC):
    """Produces a narrative assessment of a computed goal."""

    # True when answers come from a network service that may fail
    is_remote: bool = False

    @abstractmethod
    async def analyze_goal(self, ctx: GoalContext) -> Optional[GoalAnalysisResult]:
        """
        Assess a goal.

        Args:
            ctx: Goal inputs with the engine's projection

        Returns:
            The analysis, or None if the caller should fall back
        """
        pass


class ChatAgent(ABC):
    """Conversational financial advisor."""

    @abstractmethod
    def stream_reply(
        self,
        history: Sequence[ChatMessage],
        message: str,
    ) -> AsyncIterator[str]:
        """
        Reply to a new user message given the prior conversation.

        Fragments are produced lazily. The stream cannot be resumed;
        issue a new request instead.
        """
        pass
