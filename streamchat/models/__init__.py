"""Pydantic models for API requests, responses, and stream frames.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - Message / Chat: Persisted conversation state
    - MessageIn / ChatRequest: Incoming chat request payload
    - ContentDelta / Completed / ErrorFrame: SSE stream frames
    - ErrorResponse: Structured failure body for non-streaming routes
"""

from streamchat.models.frames import (
    Completed,
    ContentDelta,
    ErrorFrame,
    FrameDecodeError,
    StreamFrame,
    decode_frame,
    encode_frame,
)
from streamchat.models.schemas import (
    Chat,
    ChatRequest,
    ErrorCategory,
    ErrorResponse,
    Message,
    MessageIn,
    Role,
    derive_chat_title,
)

__all__ = [
    "Chat",
    "ChatRequest",
    "Completed",
    "ContentDelta",
    "ErrorCategory",
    "ErrorFrame",
    "ErrorResponse",
    "FrameDecodeError",
    "Message",
    "MessageIn",
    "Role",
    "StreamFrame",
    "decode_frame",
    "derive_chat_title",
    "encode_frame",
]
