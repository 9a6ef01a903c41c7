"""Agno agent logic for LLM completions.

Responsibilities:
    - Agent initialization with OpenAI-compatible models
    - Streaming token generation for a full conversation history

Leverages the Agno framework for model access.
Maintains clean separation from the HTTP layer.
"""

from streamchat.agent.chat_agent import (
    AgentCompletionProvider,
    CompletionProvider,
    CompletionProviderError,
    get_completion_provider,
)
from streamchat.settings import AgentConfig, get_agent_config

__all__ = [
    "AgentCompletionProvider",
    "AgentConfig",
    "CompletionProvider",
    "CompletionProviderError",
    "get_agent_config",
    "get_completion_provider",
]
