"""Chat API client.

Responsibilities:
    - Issue start/continue requests and decode the SSE frame stream
    - Deliver deltas one at a time, in order, as they arrive
    - Reduce turns into confirmed and in-flight message state for UIs
"""

from streamchat.client.consumer import CompletionResult, StreamConsumer
from streamchat.client.errors import (
    ConsumerError,
    RemoteChatNotFoundError,
    StreamEndedUnexpectedlyError,
    StreamFailedError,
)
from streamchat.client.session import APOLOGY, ChatSession, LocalMessage
from streamchat.client.sse import FrameDecoder

__all__ = [
    "APOLOGY",
    "ChatSession",
    "CompletionResult",
    "ConsumerError",
    "FrameDecoder",
    "LocalMessage",
    "RemoteChatNotFoundError",
    "StreamConsumer",
    "StreamEndedUnexpectedlyError",
    "StreamFailedError",
]
