"""HTTP client for the chat API with SSE stream consumption."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from types import TracebackType
from typing import Self

import httpx

from streamchat.client.errors import (
    ConsumerError,
    RemoteChatNotFoundError,
    StreamEndedUnexpectedlyError,
    StreamFailedError,
)
from streamchat.client.sse import FrameDecoder
from streamchat.models.frames import Completed, ContentDelta, ErrorFrame, FrameDecodeError
from streamchat.models.schemas import Chat, ChatRequest, MessageIn

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"

DeltaCallback = Callable[[str], None]


@dataclass(frozen=True)
class CompletionResult:
    """Outcome of a completed turn.

    Attributes:
        chat_id: The conversation id (adopted from the server for new chats).
        content: Full assistant text, the concatenation of every delta.
    """

    chat_id: str
    content: str


class StreamConsumer:
    """Drives request/stream cycles against the chat API.

    Use as an async context manager, or call ``aclose`` when done. An
    externally supplied ``httpx.AsyncClient`` is not closed by the consumer.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def send(
        self,
        history: Sequence[MessageIn],
        chat_id: str | None = None,
        on_delta: DeltaCallback | None = None,
    ) -> CompletionResult:
        """Send one conversation turn and consume the streamed reply.

        ``on_delta`` is called synchronously for each delta, in arrival order,
        before the next chunk is read.

        Args:
            history: Full conversation history, newest last.
            chat_id: Existing chat to continue; a new chat is started if None.
            on_delta: Optional callback receiving each text delta.

        Returns:
            CompletionResult with the chat id and the full assistant text.

        Raises:
            StreamFailedError: Non-2xx response, error frame, or malformed frame.
            StreamEndedUnexpectedlyError: Connection, transport or body decoding failed, or
                no terminal frame arrived before the stream ended.
        """
        url = f"/chat/{chat_id}" if chat_id else "/chat"
        payload = ChatRequest(messages=list(history)).model_dump(mode="json", by_alias=True)
        decoder = FrameDecoder()
        accumulated: list[str] = []

        try:
            async with self._client.stream(
                "POST",
                url,
                json=payload,
                headers={"Accept": "text/event-stream"},
            ) as response:
                if response.is_error:
                    await response.aread()
                    raise StreamFailedError(f"HTTP {response.status_code}")

                async for chunk in response.aiter_bytes():
                    for frame in decoder.feed(chunk):
                        if isinstance(frame, ContentDelta):
                            accumulated.append(frame.content)
                            if on_delta is not None:
                                on_delta(frame.content)
                        elif isinstance(frame, Completed):
                            return self._complete(chat_id, frame, accumulated)
                        elif isinstance(frame, ErrorFrame):
                            raise StreamFailedError(frame.message)
        except FrameDecodeError as e:
            raise StreamFailedError(f"Malformed stream frame: {e}") from e
        except httpx.RequestError as e:
            logger.warning(f"Chat stream interrupted: {e!r}")
            raise StreamEndedUnexpectedlyError(f"Stream ended unexpectedly: {e}") from e

        raise StreamEndedUnexpectedlyError("Stream ended unexpectedly")

    @staticmethod
    def _complete(chat_id: str | None, frame: Completed, accumulated: list[str]) -> CompletionResult:
        resolved = chat_id or frame.chat_id
        if resolved is None:
            raise StreamFailedError("Completed frame for a new chat carried no chat id")
        return CompletionResult(chat_id=resolved, content="".join(accumulated))

    async def get_chat(self, chat_id: str) -> Chat:
        """Fetch a persisted chat.

        Raises:
            RemoteChatNotFoundError: No chat with this id.
            ConsumerError: Any other failure.
        """
        response = await self._request("GET", f"/chat/{chat_id}")
        if response.status_code == httpx.codes.NOT_FOUND:
            raise RemoteChatNotFoundError(chat_id)
        self._raise_for_status(response)
        return Chat.model_validate(response.json())

    async def list_chats(self) -> list[Chat]:
        """Fetch every chat, newest first."""
        response = await self._request("GET", "/chats")
        self._raise_for_status(response)
        return [Chat.model_validate(item) for item in response.json()]

    async def delete_chat(self, chat_id: str) -> None:
        """Delete a chat and its messages.

        Raises:
            RemoteChatNotFoundError: No chat with this id.
            ConsumerError: Any other failure.
        """
        response = await self._request("DELETE", f"/chat/{chat_id}")
        if response.status_code == httpx.codes.NOT_FOUND:
            raise RemoteChatNotFoundError(chat_id)
        self._raise_for_status(response)

    async def _request(self, method: str, url: str) -> httpx.Response:
        try:
            return await self._client.request(method, url)
        except httpx.RequestError as e:
            raise ConsumerError(f"Connection failed: {e}") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_error:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise ConsumerError(f"HTTP {response.status_code}: {detail}")
