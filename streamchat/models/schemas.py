"""Pydantic models for conversations, messages, and API payloads.

Wire payloads use camelCase keys (``chatId``, ``createdAt``); Python code
uses snake_case attributes.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

TITLE_MAX_LENGTH = 50
DEFAULT_CHAT_TITLE = "New Chat"


class Role(str, Enum):
    """Speaker of a message."""

    USER = "user"
    ASSISTANT = "assistant"


class WireModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageIn(WireModel):
    """A message as submitted by a client.

    Attributes:
        role: The speaker (user or assistant).
        content: The message text.
    """

    role: Role
    content: str


class Message(WireModel):
    """A persisted message. Immutable once stored.

    Attributes:
        id: Unique message identifier.
        chat_id: Owning chat.
        role: The speaker (user or assistant).
        content: The message text.
        created_at: Creation timestamp.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    chat_id: str
    role: Role
    content: str
    created_at: datetime


class Chat(WireModel):
    """A conversation with its messages ordered oldest first.

    Attributes:
        id: Unique chat identifier, stable for the life of the conversation.
        title: Derived from the first user message at creation.
        created_at: Creation timestamp.
        updated_at: Timestamp of the last appended message.
        messages: Messages in creation order.
    """

    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    messages: list[Message] = Field(default_factory=list)


class ChatRequest(WireModel):
    """Request payload for the streaming chat endpoints.

    Attributes:
        messages: Full conversation history, newest last.
    """

    messages: list[MessageIn] = Field(..., min_length=1)


class ErrorCategory(str, Enum):
    """Machine-readable failure categories for non-streaming routes."""

    NOT_FOUND = "not_found"
    STORE_ERROR = "store_error"


class ErrorResponse(BaseModel):
    """Structured error body.

    Attributes:
        error: Stable failure category.
        detail: Human-readable description.
    """

    error: ErrorCategory
    detail: str


def derive_chat_title(messages: list[MessageIn]) -> str:
    """Return the title for a chat created from ``messages``.

    Uses the first user message, truncated to 50 characters, or
    ``"New Chat"`` when the batch has no user message.
    """
    for message in messages:
        if message.role is Role.USER:
            return message.content[:TITLE_MAX_LENGTH]
    return DEFAULT_CHAT_TITLE
