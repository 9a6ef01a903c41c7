"""Chat store interface and errors."""

import uuid
from datetime import UTC, datetime
from typing import Protocol

from streamchat.models.schemas import Chat, Message, MessageIn


class ChatStoreError(Exception):
    """Raised when the storage backend fails."""


class ChatNotFoundError(LookupError):
    """Raised when an operation targets a chat that does not exist."""

    def __init__(self, chat_id: str) -> None:
        super().__init__(f"Chat not found: {chat_id}")
        self.chat_id = chat_id


class ChatStore(Protocol):
    """Durable storage for chats and their messages.

    A single ``append`` is one atomic write. ``create`` persists the chat and
    every message in the batch together.
    """

    async def init(self) -> None: ...

    async def close(self) -> None: ...

    async def create(self, messages: list[MessageIn]) -> Chat: ...

    async def append(self, chat_id: str, message: MessageIn) -> Message: ...

    async def get(self, chat_id: str) -> Chat | None: ...

    async def list(self) -> list[Chat]: ...

    async def delete(self, chat_id: str) -> None: ...


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)
