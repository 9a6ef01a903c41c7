"""Stream frames exchanged over the SSE chat endpoints.

Every event is a single ``data: <json>\\n\\n`` line with one of:

    {"content": "..."}                 ContentDelta
    {"chatId": "...", "done": true}    Completed (new chat)
    {"done": true}                     Completed (existing chat)
    {"error": "..."}                   ErrorFrame

Exactly one ``Completed`` or ``ErrorFrame`` terminates a stream.
"""

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

SSE_DATA_PREFIX = "data: "


class FrameDecodeError(ValueError):
    """Raised when a payload is not a valid stream frame."""


class ContentDelta(BaseModel):
    """An incremental piece of assistant text."""

    kind: Literal["content"] = Field(default="content", exclude=True)
    content: str


class Completed(BaseModel):
    """Terminal success frame. ``chat_id`` is set only for new chats."""

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["completed"] = Field(default="completed", exclude=True)
    chat_id: str | None = Field(default=None, alias="chatId")
    done: Literal[True] = True


class ErrorFrame(BaseModel):
    """Terminal failure frame."""

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["error"] = Field(default="error", exclude=True)
    message: str = Field(..., alias="error")


StreamFrame = ContentDelta | Completed | ErrorFrame


def frame_to_json(frame: StreamFrame) -> str:
    """Serialize a frame to its JSON wire payload."""
    return frame.model_dump_json(by_alias=True, exclude_none=True)


def encode_frame(frame: StreamFrame) -> str:
    """Serialize a frame as one SSE event."""
    return f"{SSE_DATA_PREFIX}{frame_to_json(frame)}\n\n"


def decode_frame(payload: str | dict[str, Any]) -> StreamFrame:
    """Parse a JSON payload (or decoded dict) into a stream frame.

    Discrimination order is error, then done, then content, so a payload
    can never satisfy two variants at once.

    Raises:
        FrameDecodeError: If the payload is not JSON or matches no variant.
    """
    if isinstance(payload, str):
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise FrameDecodeError(f"Invalid frame JSON: {e}") from e
    else:
        data = payload

    if not isinstance(data, dict):
        raise FrameDecodeError(f"Frame must be a JSON object, got {type(data).__name__}")

    try:
        if "error" in data:
            return ErrorFrame.model_validate({"error": data["error"]})
        if data.get("done") is True:
            return Completed.model_validate({"chatId": data.get("chatId")})
        if "content" in data:
            return ContentDelta.model_validate({"content": data["content"]})
    except ValidationError as e:
        raise FrameDecodeError(f"Malformed frame: {e}") from e

    raise FrameDecodeError(f"Unrecognized frame: {data!r}")
