"""Dictionary-backed chat store.

Selected with ``DATABASE_URL=memory://``. Nothing survives a restart; useful
for tests and local experiments.
"""

import logging

from streamchat.models.schemas import Chat, Message, MessageIn, derive_chat_title
from streamchat.store.base import ChatNotFoundError, new_id, utcnow

logger = logging.getLogger(__name__)


class InMemoryChatStore:
    """Chat store keeping everything in process memory."""

    def __init__(self) -> None:
        self._chats: dict[str, Chat] = {}

    async def init(self) -> None:
        logger.info("Using in-memory chat store")

    async def close(self) -> None:
        self._chats.clear()

    async def create(self, messages: list[MessageIn]) -> Chat:
        now = utcnow()
        chat_id = new_id()
        chat = Chat(
            id=chat_id,
            title=derive_chat_title(messages),
            created_at=now,
            updated_at=now,
            messages=[self._build_message(chat_id, m) for m in messages],
        )
        self._chats[chat_id] = chat
        return chat.model_copy(deep=True)

    async def append(self, chat_id: str, message: MessageIn) -> Message:
        chat = self._chats.get(chat_id)
        if chat is None:
            raise ChatNotFoundError(chat_id)
        stored = self._build_message(chat_id, message)
        chat.messages.append(stored)
        chat.updated_at = stored.created_at
        return stored

    async def get(self, chat_id: str) -> Chat | None:
        chat = self._chats.get(chat_id)
        return chat.model_copy(deep=True) if chat else None

    async def list(self) -> list[Chat]:
        # newest insertion first so created_at ties still list the latest chat first
        chats = reversed(list(self._chats.values()))
        return [
            chat.model_copy(deep=True)
            for chat in sorted(chats, key=lambda c: c.created_at, reverse=True)
        ]

    async def delete(self, chat_id: str) -> None:
        if self._chats.pop(chat_id, None) is None:
            raise ChatNotFoundError(chat_id)

    @staticmethod
    def _build_message(chat_id: str, message: MessageIn) -> Message:
        return Message(
            id=new_id(),
            chat_id=chat_id,
            role=message.role,
            content=message.content,
            created_at=utcnow(),
        )
