"""
Application State - the client-side view of the conversation.

Holds the active session pointer, the selected model, the web-search toggle
and the in-memory message cache for the active session. The cache mirrors
the Conversation Store but is not authoritative.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..llm.catalog import DEFAULT_MODEL_ID
from ..models.chat import DEFAULT_SESSION_ID, Message
from .errors import StaleStreamError

logger = logging.getLogger(__name__)


@dataclass
class StreamHandle:
    """Points at the assistant message a running stream is filling in."""
    session_id: str
    index: int
    message_id: Optional[int]
    created_at: int
    text: str = ""
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        self.cancel_event.set()


class AppState:
    """Mutable state shared by the chat service and the display layer."""

    def __init__(
        self,
        active_session_id: str = DEFAULT_SESSION_ID,
        selected_model: str = DEFAULT_MODEL_ID,
    ):
        self.active_session_id = active_session_id
        self.selected_model = selected_model
        self.use_web_search = False
        self.messages: List[Message] = []
        self.stream: Optional[StreamHandle] = None

    @property
    def is_loading(self) -> bool:
        return self.stream is not None

    def add_message(self, message: Message) -> int:
        """Append to the cache and return the message's index."""
        self.messages.append(message)
        return len(self.messages) - 1

    def reset(self, session_id: str, messages: Optional[List[Message]] = None) -> None:
        """Switch the active session and replace the cache wholesale."""
        self.active_session_id = session_id
        self.messages = list(messages or [])

    def replace_latest_assistant_message(self, session_id: str, text: str) -> bool:
        """
        Replace the text of the trailing message if it is an assistant message.

        Only applies to the active session's cache. Returns True if replaced.
        """
        if session_id != self.active_session_id:
            return False
        if not self.messages or self.messages[-1].is_user:
            return False
        self.messages[-1] = self.messages[-1].model_copy(update={"text": text})
        return True

    def replace_streamed_message(self, handle: StreamHandle, text: str) -> bool:
        """
        Replace the text of the message ``handle`` points at.

        The handle always remembers the latest text, even when the view has
        moved to another session. Returns True if the cache was updated.

        Raises:
            StaleStreamError: the cache no longer holds the streamed message
                at the handle's position
        """
        handle.text = text
        if handle.session_id != self.active_session_id:
            return False

        if handle.index >= len(self.messages):
            raise StaleStreamError(
                f"Streamed message #{handle.index} vanished from session {handle.session_id}"
            )
        current = self.messages[handle.index]
        if (current.is_user or current.id != handle.message_id
                or current.created_at != handle.created_at):
            raise StaleStreamError(
                f"Message #{handle.index} in session {handle.session_id} is not the streamed reply"
            )

        self.messages[handle.index] = current.model_copy(update={"text": text})
        return True
