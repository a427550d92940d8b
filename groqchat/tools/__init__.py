"""Tools module - request augmentation helpers."""

from .web_search import WebSearchTool, ensure_web_search_supported

__all__ = ['WebSearchTool', 'ensure_web_search_supported']
