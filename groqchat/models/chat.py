"""
Chat Models - Sessions, messages and request bodies.
Timestamps are milliseconds since the Unix epoch.
"""

import time
from typing import Optional
from pydantic import BaseModel, Field

DEFAULT_SESSION_ID = "default"
DEFAULT_SESSION_NAME = "New Chat"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class Session(BaseModel):
    """A named, independently persisted conversation thread."""
    id: str
    name: str = DEFAULT_SESSION_NAME
    created_at: int = Field(default_factory=now_ms)
    last_updated_at: int = Field(default_factory=now_ms)
    model_id: Optional[str] = None


class Message(BaseModel):
    """One chat message. ``id`` is None until the store has assigned one."""
    id: Optional[int] = None
    session_id: str = DEFAULT_SESSION_ID
    text: str = ""
    is_user: bool
    image_path: Optional[str] = None
    use_web_search: bool = False
    created_at: int = Field(default_factory=now_ms)

    @property
    def role(self) -> str:
        return "user" if self.is_user else "assistant"


class SendRequest(BaseModel):
    """Body of a send action."""
    text: str = ""
    image_path: Optional[str] = None
    use_web_search: Optional[bool] = None  # falls back to the app-level toggle


class ModelSelection(BaseModel):
    model_id: str


class ModelInfo(BaseModel):
    """Public view of a catalog entry."""
    id: str
    name: str
    supports_web_search: bool
    description: str = ""
