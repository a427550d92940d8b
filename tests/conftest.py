"""
Shared test fixtures and configuration.
"""

import asyncio
import json
import os
import tempfile

import pytest
import pytest_asyncio

# Set test environment variables before importing app modules
_TEST_DIR = tempfile.mkdtemp(prefix="groqchat_test_")
os.environ.setdefault("DATABASE_PATH", os.path.join(_TEST_DIR, "groq_chat.db"))
os.environ.setdefault("EXPORT_DIR", os.path.join(_TEST_DIR, "exports"))
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("DEBUG", "true")

from groqchat.llm.base import LLMProvider  # noqa: E402
from groqchat.llm.catalog import DEFAULT_MODEL_ID  # noqa: E402
from groqchat.llm.stream import StreamingReplyAssembler  # noqa: E402
from groqchat.storage import ConversationStore, Database  # noqa: E402


def content_frame(fragment) -> str:
    """One SSE line carrying a content delta."""
    return "data: " + json.dumps({"choices": [{"delta": {"content": fragment}}]})


class FakeProvider(LLMProvider):
    """Streams canned fragments through a real assembler, optionally failing at the end."""

    def __init__(self, fragments=None, error=None):
        super().__init__(api_key="test-key", model=DEFAULT_MODEL_ID)
        self.fragments = list(fragments or [])
        self.error = error
        self.calls = []

    async def stream_reply(self, messages, model=None, tools=None, tool_choice=None,
                           assembler=None, **kwargs):
        self.calls.append({
            "messages": messages,
            "model": model,
            "tools": tools,
            "tool_choice": tool_choice,
        })
        assembler = assembler or StreamingReplyAssembler()
        for fragment in self.fragments:
            update = assembler.feed_line(content_frame(fragment))
            if update is not None:
                yield update
        if self.error is not None:
            raise self.error
        assembler.feed_line("data: [DONE]")


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest_asyncio.fixture
async def db():
    """In-memory Database, connected for the duration of a test."""
    database = Database(":memory:")
    await database.connect()
    yield database
    await database.close()


@pytest.fixture
def store(db):
    return ConversationStore(db)


class StallingProvider(FakeProvider):
    """Streams its fragments, then waits on ``release`` forever unless it is set."""

    def __init__(self, fragments=None):
        super().__init__(fragments=fragments)
        self.stalled = asyncio.Event()
        self.release = asyncio.Event()
        self.interrupted = False

    async def stream_reply(self, messages, model=None, tools=None, tool_choice=None,
                           assembler=None, **kwargs):
        async for update in super().stream_reply(messages, model=model, tools=tools,
                                                 tool_choice=tool_choice, assembler=assembler):
            yield update
        self.stalled.set()
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.interrupted = True
            raise


@pytest.fixture
def make_stalling_provider():
    return StallingProvider
