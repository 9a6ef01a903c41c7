"""Pytest fixtures and shared test configuration.

Fixtures:
    - provider: Scripted completion provider
    - store: Fresh in-memory chat store
    - app: FastAPI app wired to the fixtures above
    - async_client: HTTPX client for API testing

Helpers:
    - ScriptedProvider: Yields fixed deltas, optionally failing afterwards
    - FailingStore: In-memory store whose operations can be made to fail
    - parse_sse: Split an SSE body into decoded JSON payloads
"""

import asyncio
import json
from collections.abc import AsyncGenerator, AsyncIterator, Sequence

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from streamchat.api.app import create_app
from streamchat.models.schemas import Chat, Message, MessageIn
from streamchat.settings import ServerConfig
from streamchat.store.base import ChatStoreError
from streamchat.store.memory import InMemoryChatStore


class ScriptedProvider:
    """Completion provider yielding fixed deltas.

    Attributes:
        calls: Message lists passed to each stream_completion call.
        closed: Whether the last stream was closed (finished or abandoned).
    """

    def __init__(
        self,
        deltas: Sequence[str] = ("Hello!", " How are you?"),
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.deltas = list(deltas)
        self.error = error
        self.delay = delay
        self.calls: list[list[MessageIn]] = []
        self.closed = False

    async def stream_completion(self, messages: Sequence[MessageIn]) -> AsyncIterator[str]:
        self.calls.append(list(messages))
        self.closed = False
        try:
            for delta in self.deltas:
                if self.delay:
                    await asyncio.sleep(self.delay)
                yield delta
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True


class FailingStore(InMemoryChatStore):
    """In-memory store whose named operations raise ChatStoreError."""

    def __init__(self, *failing: str) -> None:
        super().__init__()
        self.failing = set(failing)

    def _check(self, operation: str) -> None:
        if operation in self.failing:
            raise ChatStoreError(f"{operation} failed: database is locked")

    async def create(self, messages: list[MessageIn]) -> Chat:
        self._check("create")
        return await super().create(messages)

    async def append(self, chat_id: str, message: MessageIn) -> Message:
        self._check("append")
        return await super().append(chat_id, message)

    async def get(self, chat_id: str) -> Chat | None:
        self._check("get")
        return await super().get(chat_id)

    async def list(self) -> list[Chat]:
        self._check("list")
        return await super().list()

    async def delete(self, chat_id: str) -> None:
        self._check("delete")
        await super().delete(chat_id)


def parse_sse(body: str) -> list[dict]:
    """Decode every ``data:`` event in an SSE body."""
    return [
        json.loads(event.removeprefix("data: "))
        for event in body.split("\n\n")
        if event.startswith("data: ")
    ]


@pytest.fixture
def provider() -> ScriptedProvider:
    """Return a provider yielding two deltas."""
    return ScriptedProvider()


@pytest.fixture
def store() -> InMemoryChatStore:
    """Return an empty in-memory store."""
    return InMemoryChatStore()


@pytest.fixture
def server_config() -> ServerConfig:
    """Return test server configuration with a short idle timeout."""
    return ServerConfig(database_url="memory://", stream_idle_timeout=1.0, cors_origins=["*"])


@pytest.fixture
def app(store: InMemoryChatStore, provider: ScriptedProvider, server_config: ServerConfig) -> FastAPI:
    """Create the API wired to the test store and provider."""
    return create_app(store=store, provider=provider, config=server_config)


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
