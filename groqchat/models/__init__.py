"""Models module."""

from .chat import (
    DEFAULT_SESSION_ID,
    DEFAULT_SESSION_NAME,
    Message,
    ModelInfo,
    ModelSelection,
    SendRequest,
    Session,
    now_ms,
)

__all__ = [
    'DEFAULT_SESSION_ID', 'DEFAULT_SESSION_NAME',
    'Message', 'ModelInfo', 'ModelSelection', 'SendRequest', 'Session', 'now_ms',
]
