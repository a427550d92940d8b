"""Core module - error taxonomy, logging and application state."""

from .errors import (
    ChatError,
    MalformedFrameError,
    StaleStreamError,
    StorageError,
    StreamInProgressError,
    TransportError,
    UnknownModelError,
    UnsupportedCapabilityError,
)

__all__ = [
    'ChatError', 'MalformedFrameError', 'StaleStreamError', 'StorageError',
    'StreamInProgressError', 'TransportError', 'UnknownModelError', 'UnsupportedCapabilityError',
]
