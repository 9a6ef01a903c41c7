"""SQLAlchemy-backed chat store.

Uses the async ORM so store calls never block the event loop. SQLite via
aiosqlite is the default; any async SQLAlchemy URL works.

Chats and messages carry an auto-increment ``seq`` column. Ordering by it
gives creation order even when rows share one timestamp.
"""

import logging
from collections import defaultdict
from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, delete, select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from streamchat.models.schemas import Chat, Message, MessageIn, Role, derive_chat_title
from streamchat.store.base import ChatNotFoundError, ChatStoreError, new_id, utcnow

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class ChatRecord(Base):
    """Stored conversation."""

    __tablename__ = "chats"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class MessageRecord(Base):
    """Stored conversation message."""

    __tablename__ = "messages"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    chat_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("chats.id", ondelete="CASCADE"), index=True, nullable=False
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


def _chat_by_id(chat_id: str):
    return select(ChatRecord).where(ChatRecord.id == chat_id)


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo; stored values are always UTC
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _to_message(record: MessageRecord) -> Message:
    return Message(
        id=record.id,
        chat_id=record.chat_id,
        role=Role(record.role),
        content=record.content,
        created_at=_aware(record.created_at),
    )


def _to_chat(record: ChatRecord, messages: list[MessageRecord]) -> Chat:
    return Chat(
        id=record.id,
        title=record.title,
        created_at=_aware(record.created_at),
        updated_at=_aware(record.updated_at),
        messages=[_to_message(m) for m in messages],
    )


class SqlChatStore:
    """Chat store persisting to a relational database.

    The engine is created eagerly but connects lazily; call ``init`` on
    startup to create the schema and ``close`` on shutdown to dispose of
    pooled connections.
    """

    def __init__(self, database_url: str) -> None:
        """Initialize the store.

        Args:
            database_url: Async SQLAlchemy URL, e.g. ``sqlite+aiosqlite:///data/chats.db``.
        """
        self._url = make_url(database_url)
        self._engine: AsyncEngine = create_async_engine(self._url)
        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)

    async def init(self) -> None:
        if self._url.get_backend_name() == "sqlite" and self._url.database not in (None, "", ":memory:"):
            Path(self._url.database).parent.mkdir(parents=True, exist_ok=True)
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise ChatStoreError(str(e)) from e
        logger.info(f"Chat store ready at {self._url.render_as_string(hide_password=True)}")

    async def close(self) -> None:
        await self._engine.dispose()

    async def create(self, messages: list[MessageIn]) -> Chat:
        now = utcnow()
        chat = ChatRecord(id=new_id(), title=derive_chat_title(messages), created_at=now, updated_at=now)
        records = [
            MessageRecord(
                id=new_id(),
                chat_id=chat.id,
                role=m.role.value,
                content=m.content,
                created_at=now,
            )
            for m in messages
        ]
        try:
            async with self._sessions.begin() as session:
                session.add(chat)
                await session.flush()
                session.add_all(records)
        except SQLAlchemyError as e:
            raise ChatStoreError(str(e)) from e
        return _to_chat(chat, records)

    async def append(self, chat_id: str, message: MessageIn) -> Message:
        now = utcnow()
        try:
            async with self._sessions.begin() as session:
                chat = await session.scalar(_chat_by_id(chat_id))
                if chat is None:
                    raise ChatNotFoundError(chat_id)
                record = MessageRecord(
                    id=new_id(),
                    chat_id=chat_id,
                    role=message.role.value,
                    content=message.content,
                    created_at=now,
                )
                session.add(record)
                chat.updated_at = now
        except SQLAlchemyError as e:
            raise ChatStoreError(str(e)) from e
        return _to_message(record)

    async def get(self, chat_id: str) -> Chat | None:
        try:
            async with self._sessions() as session:
                chat = await session.scalar(_chat_by_id(chat_id))
                if chat is None:
                    return None
                result = await session.scalars(
                    select(MessageRecord)
                    .where(MessageRecord.chat_id == chat_id)
                    .order_by(MessageRecord.seq)
                )
                return _to_chat(chat, list(result))
        except SQLAlchemyError as e:
            raise ChatStoreError(str(e)) from e

    async def list(self) -> list[Chat]:
        try:
            async with self._sessions() as session:
                chats = (
                    await session.scalars(
                        select(ChatRecord).order_by(ChatRecord.created_at.desc(), ChatRecord.seq.desc())
                    )
                ).all()
                messages = (
                    await session.scalars(select(MessageRecord).order_by(MessageRecord.seq))
                ).all()
        except SQLAlchemyError as e:
            raise ChatStoreError(str(e)) from e

        by_chat: dict[str, list[MessageRecord]] = defaultdict(list)
        for record in messages:
            by_chat[record.chat_id].append(record)
        return [_to_chat(chat, by_chat[chat.id]) for chat in chats]

    async def delete(self, chat_id: str) -> None:
        try:
            async with self._sessions.begin() as session:
                chat = await session.scalar(_chat_by_id(chat_id))
                if chat is None:
                    raise ChatNotFoundError(chat_id)
                await session.execute(delete(MessageRecord).where(MessageRecord.chat_id == chat_id))
                await session.delete(chat)
        except SQLAlchemyError as e:
            raise ChatStoreError(str(e)) from e
