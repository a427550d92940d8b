"""Storage module - SQLite persistence for sessions and messages."""

from .database import Database
from .conversation_store import ConversationStore

__all__ = ['Database', 'ConversationStore']
