"""Static catalog of selectable models."""

from dataclasses import dataclass
from typing import List

from ..core.errors import UnknownModelError


@dataclass(frozen=True)
class ModelSpec:
    id: str
    name: str
    supports_web_search: bool = False
    description: str = ""


AVAILABLE_MODELS: List[ModelSpec] = [
    ModelSpec(
        id="llama-3.3-70b-versatile",
        name="Llama 3.3 70B (Best)",
        supports_web_search=True,
        description="Best overall model with web search capability",
    ),
    ModelSpec(
        id="llama-3.1-8b-instant",
        name="Llama 3.1 8B (Fast)",
        description="Fastest response time",
    ),
    ModelSpec(
        id="meta-llama/llama-4-scout-17b-16e-instruct",
        name="Llama 4 Scout 17B Vision",
        description="Vision + text model",
    ),
    ModelSpec(
        id="meta-llama/llama-4-maverick-17b-128e-instruct",
        name="Llama 4 Maverick 17B Vision",
        description="Advanced vision model",
    ),
    ModelSpec(
        id="openai/gpt-oss-120b",
        name="GPT-OSS 120B",
        description="Large open-source model",
    ),
    ModelSpec(
        id="openai/gpt-oss-20b",
        name="GPT-OSS 20B",
        description="Smaller open-source model",
    ),
]

DEFAULT_MODEL_ID = AVAILABLE_MODELS[0].id


def get_model(model_id: str) -> ModelSpec:
    """Look up a catalog entry, raising ``UnknownModelError`` if absent."""
    for spec in AVAILABLE_MODELS:
        if spec.id == model_id:
            return spec
    raise UnknownModelError(model_id)


def supports_web_search(model_id: str) -> bool:
    try:
        return get_model(model_id).supports_web_search
    except UnknownModelError:
        return False
