"""LLM module - streaming chat-completion client and reply assembly."""

from .base import LLMProvider, LLMMessage
from .catalog import AVAILABLE_MODELS, DEFAULT_MODEL_ID, ModelSpec, get_model, supports_web_search
from .groq_provider import GroqProvider
from .stream import StreamingReplyAssembler
from .factory import create_llm_provider

__all__ = [
    'LLMProvider',
    'LLMMessage',
    'AVAILABLE_MODELS',
    'DEFAULT_MODEL_ID',
    'ModelSpec',
    'get_model',
    'supports_web_search',
    'GroqProvider',
    'StreamingReplyAssembler',
    'create_llm_provider',
]
