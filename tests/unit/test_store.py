"""Unit tests for the chat stores.

Every behavioral test runs against both the in-memory and the SQLite store.
"""

import asyncio
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from streamchat.models.schemas import MessageIn, Role
from streamchat.store import (
    MEMORY_URL,
    ChatNotFoundError,
    ChatStore,
    InMemoryChatStore,
    SqlChatStore,
    build_store,
)


def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'data' / 'chats.db'}"


@pytest.fixture(params=["memory", "sqlite"])
async def chat_store(request: pytest.FixtureRequest, tmp_path: Path) -> AsyncGenerator[ChatStore]:
    """Yield an initialized store of each kind."""
    store = InMemoryChatStore() if request.param == "memory" else SqlChatStore(sqlite_url(tmp_path))
    await store.init()
    yield store
    await store.close()


class TestCreate:
    """Tests for chat creation."""

    async def test_persists_every_message_in_order(self, chat_store: ChatStore) -> None:
        """A created chat holds the whole batch, oldest first."""
        chat = await chat_store.create(
            [
                MessageIn(role=Role.ASSISTANT, content="Hi! How can I help?"),
                MessageIn(role=Role.USER, content="Hello"),
            ]
        )

        stored = await chat_store.get(chat.id)

        assert stored is not None
        assert stored.title == "Hello"
        assert [(m.role, m.content) for m in stored.messages] == [
            (Role.ASSISTANT, "Hi! How can I help?"),
            (Role.USER, "Hello"),
        ]
        assert all(m.chat_id == chat.id for m in stored.messages)
        assert stored.created_at == stored.updated_at

    async def test_title_truncated(self, chat_store: ChatStore) -> None:
        """Long first messages become a 50 character title."""
        chat = await chat_store.create([MessageIn(role=Role.USER, content="x" * 80)])

        assert chat.title == "x" * 50

    async def test_ids_are_unique(self, chat_store: ChatStore) -> None:
        """Chats and messages get distinct identifiers."""
        first = await chat_store.create([MessageIn(role=Role.USER, content="a")])
        second = await chat_store.create([MessageIn(role=Role.USER, content="a")])

        assert first.id != second.id
        assert first.messages[0].id != second.messages[0].id


class TestAppend:
    """Tests for appending to an existing chat."""

    async def test_get_after_appends(self, chat_store: ChatStore) -> None:
        """One create plus N appends reads back as 1 + N messages in order."""
        chat = await chat_store.create([MessageIn(role=Role.USER, content="0")])
        for i in range(1, 6):
            role = Role.ASSISTANT if i % 2 else Role.USER
            await chat_store.append(chat.id, MessageIn(role=role, content=str(i)))

        stored = await chat_store.get(chat.id)

        assert stored is not None
        assert [m.content for m in stored.messages] == ["0", "1", "2", "3", "4", "5"]

    async def test_bumps_updated_at(self, chat_store: ChatStore) -> None:
        """Appending moves updated_at forward and keeps created_at."""
        chat = await chat_store.create([MessageIn(role=Role.USER, content="Hi")])
        await asyncio.sleep(0.01)

        message = await chat_store.append(chat.id, MessageIn(role=Role.ASSISTANT, content="Hey"))

        stored = await chat_store.get(chat.id)
        assert stored is not None
        assert stored.created_at == chat.created_at
        assert stored.updated_at > chat.updated_at
        assert message.chat_id == chat.id

    async def test_missing_chat(self, chat_store: ChatStore) -> None:
        """Appending to an unknown chat raises ChatNotFoundError."""
        with pytest.raises(ChatNotFoundError) as exc_info:
            await chat_store.append("missing", MessageIn(role=Role.USER, content="Hi"))

        assert exc_info.value.chat_id == "missing"


class TestReadAndDelete:
    """Tests for get, list, and delete."""

    async def test_get_missing(self, chat_store: ChatStore) -> None:
        """Unknown ids read as None."""
        assert await chat_store.get("missing") is None

    async def test_list_newest_first(self, chat_store: ChatStore) -> None:
        """Listing returns every chat with messages, newest first."""
        older = await chat_store.create([MessageIn(role=Role.USER, content="older")])
        await asyncio.sleep(0.01)
        newer = await chat_store.create([MessageIn(role=Role.USER, content="newer")])
        await chat_store.append(older.id, MessageIn(role=Role.ASSISTANT, content="reply"))

        chats = await chat_store.list()

        assert [c.id for c in chats] == [newer.id, older.id]
        assert [m.content for m in chats[1].messages] == ["older", "reply"]

    async def test_list_same_timestamp_newest_first(self, chat_store: ChatStore) -> None:
        """Chats created within one clock tick still list newest first."""
        instant = datetime(2026, 1, 1, tzinfo=UTC)
        with (
            patch("streamchat.store.memory.utcnow", return_value=instant),
            patch("streamchat.store.sql.utcnow", return_value=instant),
        ):
            created = [await chat_store.create([MessageIn(role=Role.USER, content=str(i))]) for i in range(5)]

        chats = await chat_store.list()

        assert [c.id for c in chats] == [c.id for c in reversed(created)]

    async def test_delete(self, chat_store: ChatStore) -> None:
        """Deleting removes the chat and leaves others untouched."""
        doomed = await chat_store.create([MessageIn(role=Role.USER, content="bye")])
        kept = await chat_store.create([MessageIn(role=Role.USER, content="stay")])

        await chat_store.delete(doomed.id)

        assert await chat_store.get(doomed.id) is None
        assert [c.id for c in await chat_store.list()] == [kept.id]

    async def test_delete_missing(self, chat_store: ChatStore) -> None:
        """Deleting an unknown chat raises ChatNotFoundError."""
        with pytest.raises(ChatNotFoundError):
            await chat_store.delete("missing")


class TestSqlChatStore:
    """SQLite-specific behavior."""

    async def test_survives_reopen(self, tmp_path: Path) -> None:
        """Chats written by one store instance are read by the next."""
        url = sqlite_url(tmp_path)
        first = SqlChatStore(url)
        await first.init()
        chat = await first.create([MessageIn(role=Role.USER, content="persist me")])
        await first.append(chat.id, MessageIn(role=Role.ASSISTANT, content="done"))
        await first.close()

        second = SqlChatStore(url)
        await second.init()
        stored = await second.get(chat.id)
        await second.close()

        assert stored is not None
        assert [m.content for m in stored.messages] == ["persist me", "done"]
        assert stored.created_at.tzinfo is not None

    async def test_init_creates_parent_directory(self, tmp_path: Path) -> None:
        """The SQLite file's directory is created on startup."""
        store = SqlChatStore(sqlite_url(tmp_path))

        await store.init()
        await store.close()

        assert (tmp_path / "data").is_dir()


class TestBuildStore:
    """Tests for store selection by URL."""

    def test_memory_url(self) -> None:
        """memory:// selects the in-memory store."""
        assert isinstance(build_store(MEMORY_URL), InMemoryChatStore)

    def test_sql_url(self, tmp_path: Path) -> None:
        """Any other URL selects the SQL store."""
        assert isinstance(build_store(sqlite_url(tmp_path)), SqlChatStore)
