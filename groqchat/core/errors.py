"""
Error taxonomy for the chat core.

Every error is terminal to the current operation only (one send, one storage
call); none of them is allowed to take down the surrounding session.
"""

from typing import Optional


class ChatError(Exception):
    """Base class for all chat-core errors."""


class StorageError(ChatError):
    """Local persistence is unavailable or corrupted."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


class TransportError(ChatError):
    """The completion request failed to send or the stream dropped."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedFrameError(ChatError):
    """A stream frame could not be parsed. Always swallowed by the assembler."""


class UnsupportedCapabilityError(ChatError):
    """The selected model cannot serve the requested capability (web search)."""

    def __init__(self, model_id: str, capability: str = "web_search"):
        super().__init__(f"Model {model_id} does not support {capability}")
        self.model_id = model_id
        self.capability = capability


class StreamInProgressError(ChatError):
    """A send was issued while another reply is still streaming."""


class UnknownModelError(ChatError, ValueError):
    """Model id is not part of the catalog."""

    def __init__(self, model_id: str):
        super().__init__(f"Unknown model: {model_id}")
        self.model_id = model_id


class StaleStreamError(ChatError):
    """The message a stream was writing to is no longer where it was."""
