"""Durable chat storage.

Responsibilities:
    - Chat creation with title derivation
    - Atomic message appends in creation order
    - Chat retrieval, listing, and deletion

The store is an explicit instance owned by the application lifespan.
"""

from streamchat.store.base import ChatNotFoundError, ChatStore, ChatStoreError
from streamchat.store.memory import InMemoryChatStore
from streamchat.store.sql import SqlChatStore

MEMORY_URL = "memory://"


def build_store(database_url: str) -> ChatStore:
    """Create the chat store selected by ``database_url``.

    Args:
        database_url: ``memory://`` or an async SQLAlchemy URL.

    Returns:
        An uninitialized ChatStore.
    """
    if database_url == MEMORY_URL:
        return InMemoryChatStore()
    return SqlChatStore(database_url)


__all__ = [
    "MEMORY_URL",
    "ChatNotFoundError",
    "ChatStore",
    "ChatStoreError",
    "InMemoryChatStore",
    "SqlChatStore",
    "build_store",
]
