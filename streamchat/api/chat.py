"""Chat endpoints: SSE streaming turns plus history, listing, and deletion.

Streaming routes always answer 200 with ``text/event-stream`` once the
request validates; failures after that point arrive as an error frame.
Non-streaming routes report failures as an ErrorResponse body.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import aclosing
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import StreamingResponse

from streamchat.agent.chat_agent import CompletionProvider, get_completion_provider
from streamchat.api.errors import ApiError
from streamchat.api.relay import StreamingRelay
from streamchat.models.frames import encode_frame
from streamchat.models.schemas import Chat, ChatRequest, ErrorCategory, ErrorResponse
from streamchat.store.base import ChatNotFoundError, ChatStore, ChatStoreError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

ERROR_RESPONSES = {
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def get_store(request: Request) -> ChatStore:
    """Return the chat store owned by the application."""
    return request.app.state.store


def get_provider(request: Request) -> CompletionProvider:
    """Return the injected provider, falling back to the shared Agno provider."""
    provider = request.app.state.provider
    if provider is None:
        provider = get_completion_provider()
        request.app.state.provider = provider
    return provider


def get_relay(
    request: Request,
    store: Annotated[ChatStore, Depends(get_store)],
    provider: Annotated[CompletionProvider, Depends(get_provider)],
) -> StreamingRelay:
    """Build a relay for one request."""
    return StreamingRelay(store, provider, idle_timeout=request.app.state.config.stream_idle_timeout)


def _sse_response(relay: StreamingRelay, body: ChatRequest, chat_id: str | None) -> StreamingResponse:
    async def event_stream() -> AsyncGenerator[str]:
        async with aclosing(relay.stream(body.messages, chat_id)) as frames:
            async for frame in frames:
                yield encode_frame(frame)

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=SSE_HEADERS)


@router.post("/chat")
async def start_chat(
    body: ChatRequest,
    relay: Annotated[StreamingRelay, Depends(get_relay)],
) -> StreamingResponse:
    """Start a new conversation and stream the assistant reply.

    Persists every message in the request as a new chat. The terminal
    frame carries the new chat id.
    """
    return _sse_response(relay, body, None)


@router.post("/chat/{chat_id}")
async def continue_chat(
    chat_id: str,
    body: ChatRequest,
    relay: Annotated[StreamingRelay, Depends(get_relay)],
) -> StreamingResponse:
    """Continue an existing conversation and stream the assistant reply.

    Only the newest message is persisted; earlier messages are context.
    """
    return _sse_response(relay, body, chat_id)


@router.get("/chat/{chat_id}", response_model=Chat, responses=ERROR_RESPONSES)
async def get_chat(
    chat_id: str,
    store: Annotated[ChatStore, Depends(get_store)],
) -> Chat:
    """Return a chat with its messages ordered oldest first.

    Raises:
        404: No chat with this id.
        500: Store failure.
    """
    try:
        chat = await store.get(chat_id)
    except ChatStoreError as e:
        logger.error(f"Error getting chat history for {chat_id}: {e}")
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorCategory.STORE_ERROR,
            "Failed to get chat history",
        ) from e

    if chat is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, ErrorCategory.NOT_FOUND, "Chat not found")
    return chat


@router.get("/chats", response_model=list[Chat], responses=ERROR_RESPONSES)
async def list_chats(store: Annotated[ChatStore, Depends(get_store)]) -> list[Chat]:
    """Return every chat, newest first.

    Raises:
        500: Store failure.
    """
    try:
        return await store.list()
    except ChatStoreError as e:
        logger.error(f"Error listing chats: {e}")
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorCategory.STORE_ERROR,
            "Failed to list chats",
        ) from e


@router.delete(
    "/chat/{chat_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=ERROR_RESPONSES,
)
async def delete_chat(
    chat_id: str,
    store: Annotated[ChatStore, Depends(get_store)],
) -> Response:
    """Delete a chat and all of its messages.

    Raises:
        404: No chat with this id.
        500: Store failure, with the underlying error text as detail.
    """
    try:
        await store.delete(chat_id)
    except ChatNotFoundError as e:
        raise ApiError(status.HTTP_404_NOT_FOUND, ErrorCategory.NOT_FOUND, "Chat not found") from e
    except ChatStoreError as e:
        logger.error(f"Error deleting chat {chat_id}: {e}")
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCategory.STORE_ERROR, str(e)) from e

    logger.info(f"Deleted chat {chat_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
