"""
LLM Provider Factory - Creates the configured LLM provider instance.
"""

from typing import Optional
from .base import LLMProvider
from .groq_provider import GroqProvider

# OpenAI-compatible backends and their default endpoints
PROVIDER_BASE_URLS = {
    "groq": "https://api.groq.com/openai/v1",
    "openai": "https://api.openai.com/v1",
}


def create_llm_provider(
    provider: str = "groq",
    api_key: str = "",
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    **kwargs
) -> Optional[LLMProvider]:
    """
    Create an LLM provider instance based on configuration.

    Args:
        provider: Provider name ("groq" or "openai")
        api_key: API key for the provider
        model: Default model (uses catalog default if not specified)
        base_url: Custom base URL (uses provider default if not specified)
        **kwargs: Additional provider parameters (timeout, transport)

    Returns:
        LLMProvider instance, or None if api_key is not configured
    """
    if not api_key:
        return None

    if provider not in PROVIDER_BASE_URLS:
        raise ValueError(f"Unsupported LLM provider: {provider}")

    params = {"api_key": api_key, "base_url": base_url or PROVIDER_BASE_URLS[provider]}
    if model:
        params["model"] = model
    params.update(kwargs)
    instance = GroqProvider(**params)
    instance.provider_name = provider
    return instance
