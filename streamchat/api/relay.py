"""Streaming relay between the completion provider and SSE clients.

One relay run bridges one upstream completion to one downstream stream:

    persist user turn -> stream deltas -> persist assistant turn -> Completed

Any failure before the terminal frame becomes a single ErrorFrame. The
Completed frame is only produced after the assistant message has been
appended, so a client seeing it knows the message is durable.

If the client disconnects, the generator is cancelled or closed. The
upstream iterator is closed and the partial assistant text is discarded.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, AsyncIterator, Sequence
from contextlib import aclosing
from enum import Enum

from streamchat.agent.chat_agent import CompletionProvider
from streamchat.models.frames import Completed, ContentDelta, ErrorFrame, StreamFrame
from streamchat.models.schemas import MessageIn, Role
from streamchat.store.base import ChatNotFoundError, ChatStore

logger = logging.getLogger(__name__)

COMPLETION_FAILED_MESSAGE = "Failed to get chat completion"
CHAT_NOT_FOUND_MESSAGE = "Chat not found"


class RelayMode(str, Enum):
    """How the user turn is persisted before streaming."""

    CREATE = "create"
    APPEND = "append"


class StreamingRelay:
    """Relays provider deltas as stream frames with persistence side effects."""

    def __init__(
        self,
        store: ChatStore,
        provider: CompletionProvider,
        idle_timeout: float | None = None,
    ) -> None:
        """Initialize the relay.

        Args:
            store: Chat store for user and assistant turns.
            provider: Upstream completion provider.
            idle_timeout: Seconds to wait for each upstream delta (None waits forever).
        """
        self._store = store
        self._provider = provider
        self._idle_timeout = idle_timeout

    async def stream(
        self,
        history: Sequence[MessageIn],
        chat_id: str | None = None,
    ) -> AsyncGenerator[StreamFrame]:
        """Run one conversation turn.

        Without ``chat_id`` a chat is created from the whole history and the
        terminal frame carries the new id. With ``chat_id`` only the newest
        message is appended and the terminal frame carries no id.

        Args:
            history: Conversation history, newest last. Must be non-empty.
            chat_id: Existing chat to continue, if any.

        Yields:
            Zero or more ContentDelta frames, then one Completed or ErrorFrame.
        """
        if not history:
            raise ValueError("history must not be empty")

        mode = RelayMode.APPEND if chat_id else RelayMode.CREATE
        accumulated: list[str] = []

        try:
            if mode is RelayMode.CREATE:
                chat = await self._store.create(list(history))
                chat_id = chat.id
            else:
                await self._store.append(chat_id, history[-1])
            logger.info(f"Streaming {mode.value} turn for chat {chat_id}")

            async with aclosing(self._deltas(history)) as deltas:
                async for delta in deltas:
                    accumulated.append(delta)
                    yield ContentDelta(content=delta)

            await self._store.append(
                chat_id,
                MessageIn(role=Role.ASSISTANT, content="".join(accumulated)),
            )
        except asyncio.CancelledError:
            logger.info(f"Client disconnected from chat {chat_id}; discarding partial response")
            raise
        except ChatNotFoundError:
            logger.warning(f"Cannot continue missing chat {chat_id}")
            yield ErrorFrame(message=CHAT_NOT_FOUND_MESSAGE)
            return
        except Exception:
            logger.exception(f"Chat completion failed for chat {chat_id}")
            yield ErrorFrame(message=COMPLETION_FAILED_MESSAGE)
            return

        logger.info(f"Completed turn for chat {chat_id} ({len(accumulated)} deltas)")
        yield Completed(chat_id=chat_id if mode is RelayMode.CREATE else None)

    async def _deltas(self, history: Sequence[MessageIn]) -> AsyncGenerator[str]:
        """Yield non-empty upstream deltas, enforcing the idle timeout."""
        iterator: AsyncIterator[str] = aiter(self._provider.stream_completion(history))
        try:
            while True:
                try:
                    async with asyncio.timeout(self._idle_timeout):
                        delta = await anext(iterator)
                except StopAsyncIteration:
                    return
                if delta:
                    yield delta
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()
