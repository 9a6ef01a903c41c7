"""Agno-backed completion provider.

Turns an ordered message history into a stream of text deltas.

Notes on how the Agno agent is used here:

1. **Stateless agent** - No Agno storage is attached. The client sends the
   full history with every turn and the chat store owns persistence, so the
   agent must not keep its own session memory.

2. **History as input** - The history is passed to ``arun`` as a list of Agno
   messages, preserving roles and order.

3. **Content events only** - Only ``RunContent`` events carry deltas. Run
   errors are raised, never folded into the text stream, so the relay can
   terminate the stream with an error frame.
"""

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Protocol

from agno.agent import Agent
from agno.models.message import Message as AgnoMessage
from agno.models.openai import OpenAIChat
from agno.run.agent import RunEvent

from streamchat.models.schemas import MessageIn
from streamchat.settings import AgentConfig, get_agent_config

logger = logging.getLogger(__name__)


class CompletionProviderError(Exception):
    """Raised when the upstream model fails mid-run."""


class CompletionProvider(Protocol):
    """Upstream source of completion deltas."""

    def stream_completion(self, messages: Sequence[MessageIn]) -> AsyncIterator[str]: ...


class AgentCompletionProvider:
    """Completion provider wrapping an Agno agent."""

    def __init__(self, config: AgentConfig | None = None) -> None:
        """Initialize the provider.

        Args:
            config: Optional agent configuration.
                    Loads from environment if not provided.
        """
        self._config = config or get_agent_config()
        self._agent = self._create_agent()

    def _create_agent(self) -> Agent:
        """Create the Agno agent instance.

        Returns:
            Configured Agent with an OpenAI-compatible model and no storage.
        """
        model = OpenAIChat(
            id=self._config.model_name,
            api_key=self._config.api_key,
            base_url=self._config.base_url,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
        )

        return Agent(
            model=model,
            description=self._config.description,
            markdown=self._config.markdown,
        )

    async def stream_completion(self, messages: Sequence[MessageIn]) -> AsyncIterator[str]:
        """Stream completion text for a conversation.

        Args:
            messages: Conversation history, newest last.

        Yields:
            Non-empty text deltas in arrival order.

        Raises:
            CompletionProviderError: If the agent reports a run error.
        """
        run_input = [AgnoMessage(role=m.role.value, content=m.content) for m in messages]

        async for event in self._agent.arun(run_input, stream=True):
            event_type = getattr(event, "event", None)
            if event_type == RunEvent.run_error:
                raise CompletionProviderError(str(getattr(event, "content", "") or "Agent run failed"))
            if event_type != RunEvent.run_content:
                continue
            content = getattr(event, "content", None)
            if isinstance(content, str) and content:
                yield content


# Module-level singleton instance
_provider: AgentCompletionProvider | None = None


def get_completion_provider() -> AgentCompletionProvider:
    """Get or create the global completion provider.

    The underlying agent holds no conversation state, so one instance
    serves every request.

    Returns:
        The AgentCompletionProvider instance.
    """
    global _provider
    if _provider is None:
        _provider = AgentCompletionProvider()
    return _provider
