"""
Streaming Reply Assembler.

Folds the ``data: {json}`` frames of a streamed chat completion into one
growing answer. Every update handed back to the caller is the full text
accumulated so far, never a bare delta, so the display layer can simply
replace the trailing assistant message with it.

Frame handling:
- ``data: [DONE]`` ends the stream; later frames are ignored.
- ``data: {json}`` contributes ``choices[0].delta.content`` when present.
- Blank lines are SSE separators and are ignored.
- Anything else (other prefixes, undecodable JSON, unexpected shapes) is
  skipped and counted in ``skipped_frames``.
"""

import json
import logging
from typing import Any, AsyncIterable, AsyncGenerator, Dict, Optional

from ..core.errors import MalformedFrameError

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_TOKEN = "[DONE]"


class StreamingReplyAssembler:
    """Accumulates content fragments from a decoded event stream."""

    def __init__(self):
        self.accumulated = ""
        self.done = False  # termination token seen
        self.closed = False  # line source exhausted
        self.fragment_count = 0
        self.skipped_frames = 0
        self.tool_call_frames = 0
        self.usage: Dict[str, Any] = {}

    @property
    def finished(self) -> bool:
        return self.done or self.closed

    def feed_line(self, line: str) -> Optional[str]:
        """
        Process one frame.

        Returns:
            The accumulated answer if the frame carried a fragment, else None.
        """
        if self.finished:
            return None

        line = line.rstrip("\r")
        if not line.strip():
            return None

        if not line.startswith(DATA_PREFIX):
            self.skipped_frames += 1
            return None

        payload = line[len(DATA_PREFIX):].strip()
        if payload == DONE_TOKEN:
            self.done = True
            return None

        try:
            fragment = self._extract_fragment(payload)
        except MalformedFrameError as e:
            self.skipped_frames += 1
            logger.debug(f"Skipping malformed frame: {e}")
            return None

        if fragment is None:
            return None

        self.accumulated += fragment
        self.fragment_count += 1
        return self.accumulated

    async def consume(self, lines: AsyncIterable[str]) -> AsyncGenerator[str, None]:
        """
        Drive the assembler from an async line source.

        Stops at the termination token or when the source is exhausted.
        """
        async for line in lines:
            update = self.feed_line(line)
            if update is not None:
                yield update
            if self.done:
                break
        self.closed = True

    def _extract_fragment(self, payload: str) -> Optional[str]:
        try:
            chunk = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedFrameError(f"invalid JSON payload: {e}") from e

        if not isinstance(chunk, dict):
            raise MalformedFrameError(f"expected a JSON object, got {type(chunk).__name__}")

        # Usage is typically reported in the last chunk
        if isinstance(chunk.get("usage"), dict):
            self.usage = chunk["usage"]

        choices = chunk.get("choices")
        if not choices:
            return None
        if not isinstance(choices, list) or not isinstance(choices[0], dict):
            raise MalformedFrameError("unexpected 'choices' shape")

        delta = choices[0].get("delta") or {}
        if not isinstance(delta, dict):
            raise MalformedFrameError("unexpected 'delta' shape")

        tool_calls = delta.get("tool_calls")
        if tool_calls:
            self.tool_call_frames += 1
            logger.debug(f"Web search performed: {tool_calls}")

        content = delta.get("content")
        return content if isinstance(content, str) else None
