"""
LLM Provider Base - Abstract base for streaming chat-completion providers.
Supports multimodal messages (text + images).
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List, Union, AsyncGenerator
from dataclasses import dataclass


@dataclass
class LLMMessage:
    """
    Represents a message in a conversation.
    Content is either plain text or a list of content blocks.
    """
    role: str  # "system", "user", "assistant"
    content: Union[str, List[Dict[str, Any]]]

    @staticmethod
    def text(role: str, text: str) -> "LLMMessage":
        """Create a message holding a single text block."""
        return LLMMessage(role=role, content=[{"type": "text", "text": text}])

    @staticmethod
    def multimodal(role: str, text: str,
                   image_base64_list: Optional[List[Dict[str, str]]] = None) -> "LLMMessage":
        """
        Create a message with image blocks followed by a text block.

        Args:
            role: Message role
            text: Text content
            image_base64_list: List of dicts with 'data' (base64 string) and 'media_type'
        """
        content_parts: List[Dict[str, Any]] = []

        # Images go before the text block
        for img in image_base64_list or []:
            data_uri = f"data:{img['media_type']};base64,{img['data']}"
            content_parts.append({
                "type": "image_url",
                "image_url": {"url": data_uri}
            })

        content_parts.append({"type": "text", "text": text})

        return LLMMessage(role=role, content=content_parts)


class LLMProvider(ABC):
    """
    Abstract base class for streaming LLM providers.
    Only streaming completions are supported.
    """

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None,
                 default_temperature: float = 0.7):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.default_temperature = default_temperature

    @abstractmethod
    async def stream_reply(
        self,
        messages: List[LLMMessage],
        model: Optional[str] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> AsyncGenerator[str, None]:
        """
        Stream a chat completion.

        Args:
            messages: Conversation messages (supports multimodal)
            model: Model override for this request
            tools: Optional tool descriptors attached to the request
            tool_choice: Optional forced tool choice

        Yields:
            str: The full answer accumulated so far, after every fragment
        """
        pass

    def _format_messages(self, messages: List[LLMMessage]) -> List[Dict[str, Any]]:
        """Convert LLMMessage list to API-compatible format."""
        return [{"role": m.role, "content": m.content} for m in messages]
