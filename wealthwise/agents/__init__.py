"""AI advisor agents with offline fallbacks."""

from wealthwise.agents.base import AdvisoryAgent, ChatAgent
from wealthwise.agents.ai_agents import (
    CONNECTION_ERROR_NOTICE,
    OFFLINE_CHAT_NOTICE,
    GeminiAdvisoryAgent,
    GeminiChatAgent,
    OfflineChatAgent,
    RuleBasedAdvisoryAgent,
    create_advisory_agent,
    create_chat_agent,
)

__all__ = [
    "AdvisoryAgent",
    "ChatAgent",
    "CONNECTION_ERROR_NOTICE",
    "OFFLINE_CHAT_NOTICE",
    "GeminiAdvisoryAgent",
    "GeminiChatAgent",
    "OfflineChatAgent",
    "RuleBasedAdvisoryAgent",
    "create_advisory_agent",
    "create_chat_agent",
]
