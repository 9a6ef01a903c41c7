"""Incremental decoding of the SSE byte stream into stream frames.

Transport chunks do not align with events: a chunk may hold half a line,
several lines, or split a multi-byte UTF-8 character. The decoder buffers
until a line terminator arrives and only then parses a frame.
"""

import codecs

from streamchat.models.frames import SSE_DATA_PREFIX, StreamFrame, decode_frame


class FrameDecoder:
    """Turns arbitrary byte chunks into complete stream frames."""

    def __init__(self) -> None:
        self._text = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Text received after the last complete line."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[StreamFrame]:
        """Consume a chunk and return the frames it completed, in order.

        Raises:
            FrameDecodeError: If a complete ``data:`` line is not a valid frame.
        """
        self._buffer += self._text.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")
        return [frame for frame in map(self._parse_line, lines) if frame is not None]

    @staticmethod
    def _parse_line(line: str) -> StreamFrame | None:
        line = line.removesuffix("\r")
        if not line.startswith(SSE_DATA_PREFIX):
            return None
        return decode_frame(line.removeprefix(SSE_DATA_PREFIX))
