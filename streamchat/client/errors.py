"""Errors raised by the stream consumer."""


class ConsumerError(Exception):
    """Base class for chat client failures."""


class StreamFailedError(ConsumerError):
    """The server rejected the turn or terminated the stream with an error frame."""


class StreamEndedUnexpectedlyError(ConsumerError):
    """The transport ended or reset before a terminal frame arrived."""


class RemoteChatNotFoundError(ConsumerError):
    """The server has no chat with the requested id."""

    def __init__(self, chat_id: str) -> None:
        super().__init__(f"Chat not found: {chat_id}")
        self.chat_id = chat_id
