"""Client-side conversation state.

State is kept in two tiers:

- ``confirmed``: settled messages (loaded from the server or finished turns).
- ``in_flight``: at most one turn being streamed, a user message plus an
  assistant placeholder that grows with every delta.

``messages`` merges the two for rendering. A failed turn is settled with its
partial text and an apology, flagged ``failed`` and left out of the history
sent with later turns.
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime

from streamchat.client.consumer import StreamConsumer
from streamchat.client.errors import ConsumerError
from streamchat.models.schemas import Chat, MessageIn, Role

logger = logging.getLogger(__name__)

GREETING = "Hello! I'm your AI assistant. How can I help you today?"
APOLOGY = "I apologize, but I encountered an error. Please try again later."


@dataclass(frozen=True)
class LocalMessage:
    """A message as displayed by the client."""

    id: str
    role: Role
    content: str
    created_at: datetime = field(default_factory=datetime.now)
    failed: bool = False


@dataclass
class InFlightTurn:
    """The turn currently streaming."""

    user: LocalMessage
    assistant: LocalMessage


def _local_id() -> str:
    return uuid.uuid4().hex


class ChatSession:
    """Reduces one conversation's turns into renderable state."""

    def __init__(
        self,
        consumer: StreamConsumer,
        chat_id: str | None = None,
        on_change: Callable[[], None] | None = None,
        greeting: str | None = GREETING,
    ) -> None:
        self._consumer = consumer
        self._on_change = on_change
        self._greeting = greeting
        self.chat_id = chat_id
        self.confirmed: list[LocalMessage] = self._initial_messages()
        self.in_flight: InFlightTurn | None = None

    @property
    def is_streaming(self) -> bool:
        return self.in_flight is not None

    @property
    def messages(self) -> list[LocalMessage]:
        """Confirmed messages followed by the in-flight turn, if any."""
        if self.in_flight is None:
            return list(self.confirmed)
        return [*self.confirmed, self.in_flight.user, self.in_flight.assistant]

    def history(self) -> list[MessageIn]:
        """Messages to send as context, excluding failed turns."""
        return [MessageIn(role=m.role, content=m.content) for m in self.confirmed if not m.failed]

    def reset(self) -> None:
        """Start a new conversation."""
        if self.in_flight is not None:
            raise RuntimeError("Cannot reset while a turn is streaming")
        self.chat_id = None
        self.confirmed = self._initial_messages()
        self._notify()

    async def load(self, chat_id: str) -> None:
        """Replace local state with the server copy of ``chat_id``."""
        if self.in_flight is not None:
            raise RuntimeError("Cannot load while a turn is streaming")
        chat = await self._consumer.get_chat(chat_id)
        self.chat_id = chat.id
        self.confirmed = self._from_chat(chat)
        self._notify()

    async def send_message(self, text: str) -> bool:
        """Send a user turn and stream the reply into a placeholder.

        Blank input and input while a turn is streaming are ignored.

        Returns:
            True if the turn completed, False if it was ignored or failed.

        Raises:
            Any non-ConsumerError from the consumer (including cancellation),
            after the turn has been settled as failed.
        """
        if not text.strip() or self.in_flight is not None:
            return False

        history = [*self.history(), MessageIn(role=Role.USER, content=text)]
        turn = InFlightTurn(
            user=LocalMessage(id=_local_id(), role=Role.USER, content=text),
            assistant=LocalMessage(id=_local_id(), role=Role.ASSISTANT, content=""),
        )
        self.in_flight = turn
        self._notify()

        def on_delta(delta: str) -> None:
            self.apply_delta(turn.assistant.id, delta)

        try:
            result = await self._consumer.send(history, self.chat_id, on_delta)
            if self.chat_id is None:
                self.chat_id = result.chat_id
            self._settle(failed=False, content=result.content)
            return True
        except ConsumerError as e:
            logger.error(f"Failed to get AI response: {e}")
            return False
        finally:
            # any exit that did not settle the turn (errors, cancellation) fails it
            if self.in_flight is turn:
                self._settle(failed=True)

    def apply_delta(self, message_id: str, delta: str) -> None:
        """Append ``delta`` to the in-flight placeholder with ``message_id``."""
        turn = self.in_flight
        if turn is None or turn.assistant.id != message_id:
            return
        turn.assistant = replace(turn.assistant, content=turn.assistant.content + delta)
        self._notify()

    def _settle(self, *, failed: bool, content: str | None = None) -> None:
        turn = self.in_flight
        if turn is None:
            return
        assistant = turn.assistant
        if failed:
            partial = assistant.content
            notice = f"{partial}\n\n{APOLOGY}" if partial else APOLOGY
            user = replace(turn.user, failed=True)
            assistant = replace(assistant, content=notice, failed=True)
        else:
            user = turn.user
            assistant = replace(assistant, content=content if content is not None else assistant.content)
        self.confirmed = [*self.confirmed, user, assistant]
        self.in_flight = None
        self._notify()

    def _initial_messages(self) -> list[LocalMessage]:
        if self.chat_id is not None or not self._greeting:
            return []
        return [LocalMessage(id=_local_id(), role=Role.ASSISTANT, content=self._greeting)]

    @staticmethod
    def _from_chat(chat: Chat) -> list[LocalMessage]:
        return [
            LocalMessage(id=m.id, role=m.role, content=m.content, created_at=m.created_at)
            for m in chat.messages
        ]

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
