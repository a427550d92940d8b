"""Services module - chat orchestration and export."""

from .chat_service import ChatService
from .export import export_markdown, render_markdown

__all__ = ['ChatService', 'export_markdown', 'render_markdown']
