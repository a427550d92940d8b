"""
Groq LLM Provider.
Streams chat completions from Groq's OpenAI-compatible endpoint.
"""

import httpx
import logging
import time
from typing import Optional, List, Dict, Any, AsyncGenerator

from ..core.errors import TransportError
from ..core.logging_config import scrub_for_log, truncate_large_data
from .base import LLMProvider, LLMMessage
from .catalog import DEFAULT_MODEL_ID
from .stream import StreamingReplyAssembler

logger = logging.getLogger(__name__)

# Sampling temperature is not configurable per request
TEMPERATURE = 0.7


class GroqProvider(LLMProvider):
    """
    Provider for the Groq chat/completions endpoint.
    Any OpenAI-compatible base_url works; only streaming is supported.
    """

    provider_name = "groq"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL_ID,
        base_url: str = "https://api.groq.com/openai/v1",
        default_temperature: float = TEMPERATURE,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(api_key, model, base_url, default_temperature)
        self.timeout = timeout
        self._transport = transport

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def build_payload(
        self,
        messages: List[LLMMessage],
        model: Optional[str] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Request body for a streamed completion."""
        payload: Dict[str, Any] = {
            "model": model or self.model,
            "messages": self._format_messages(messages),
            "temperature": self.default_temperature,
            "stream": True,
        }
        if tools:
            payload["tools"] = tools
        if tool_choice:
            payload["tool_choice"] = tool_choice
        return payload

    async def stream_reply(
        self,
        messages: List[LLMMessage],
        model: Optional[str] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[Dict[str, Any]] = None,
        assembler: Optional[StreamingReplyAssembler] = None,
        **kwargs
    ) -> AsyncGenerator[str, None]:
        """
        Stream a completion, yielding the accumulated answer after each fragment.

        Pass ``assembler`` to keep access to the partial answer, skip counters
        and usage after the generator ends or fails.

        Raises:
            TransportError: request could not be sent, non-2xx status, or the
                connection dropped mid-stream
        """
        start_time = time.time()
        url = f"{self.base_url}/chat/completions"
        payload = self.build_payload(messages, model=model, tools=tools, tool_choice=tool_choice)
        assembler = assembler or StreamingReplyAssembler()

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"LLM API stream starting: provider={self.provider_name}, model={payload['model']}, "
                f"messages={len(messages)}, tools={bool(tools)}",
                extra={"extra_fields": {
                    "headers": scrub_for_log(self._get_headers()),
                    "payload": scrub_for_log(payload),
                }}
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                async with client.stream('POST', url, json=payload, headers=self._get_headers()) as response:
                    if response.is_error:
                        body = (await response.aread()).decode("utf-8", errors="ignore")
                        raise TransportError(
                            f"HTTP {response.status_code}: {truncate_large_data(body, max_length=500)}",
                            status_code=response.status_code,
                        )

                    async for update in assembler.consume(response.aiter_lines()):
                        yield update

        except httpx.HTTPError as e:
            self._log_failure(payload, start_time, e, assembler)
            raise TransportError(str(e) or e.__class__.__name__) from e
        except TransportError as e:
            self._log_failure(payload, start_time, e, assembler)
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"LLM API stream completed",
            extra={"extra_fields": {
                "provider": self.provider_name,
                "model": payload["model"],
                "prompt_tokens": assembler.usage.get("prompt_tokens", 0),
                "completion_tokens": assembler.usage.get("completion_tokens", 0),
                "total_tokens": assembler.usage.get("total_tokens", 0),
                "duration_ms": round(duration_ms, 2),
                "content_length": len(assembler.accumulated),
                "fragments": assembler.fragment_count,
                "skipped_frames": assembler.skipped_frames,
                "tool_call_frames": assembler.tool_call_frames,
                "terminated": assembler.done,
            }}
        )

    def _log_failure(self, payload: Dict[str, Any], start_time: float,
                     error: Exception, assembler: StreamingReplyAssembler) -> None:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"LLM API stream failed: {str(error)}",
            exc_info=True,
            extra={"extra_fields": {
                "provider": self.provider_name,
                "model": payload.get("model"),
                "duration_ms": round(duration_ms, 2),
                "partial_length": len(assembler.accumulated),
                "error": str(error),
            }}
        )
