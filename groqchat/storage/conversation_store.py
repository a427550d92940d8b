"""
Conversation Store - durable storage for chat sessions and their messages.

Two tables back the store (see ``schema.py``): ``chat_sessions`` keyed by the
caller-supplied session id, and ``chat_messages`` keyed by an auto-increment
id with an informational ``session_id`` link. Referential integrity is not
enforced: appending to an unknown session succeeds, but the session only
shows up in ``list_sessions`` once ``upsert_session`` has been called.

Writers must be serialized per session; reads may interleave freely.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

import aiosqlite

from ..core.errors import StorageError
from ..models.chat import DEFAULT_SESSION_ID, DEFAULT_SESSION_NAME, Message, Session, now_ms
from .database import Database

logger = logging.getLogger(__name__)


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    """Translate driver/OS failures into ``StorageError``."""
    try:
        yield
    except (aiosqlite.Error, OSError) as e:
        logger.error(
            f"Storage operation failed: {operation}: {e}",
            extra={"extra_fields": {"operation": operation, "error": str(e)}}
        )
        raise StorageError(f"{operation} failed: {e}", operation=operation) from e


def _row_to_session(row: Any) -> Session:
    return Session(
        id=row["id"],
        name=row["name"],
        created_at=row["created_at"],
        last_updated_at=row["last_updated_at"],
        model_id=row["model_id"],
    )


def _row_to_message(row: Any) -> Message:
    return Message(
        id=row["id"],
        session_id=row["session_id"] or DEFAULT_SESSION_ID,
        text=row["text"],
        is_user=bool(row["is_user"]),
        image_path=row["image_path"],
        use_web_search=bool(row["use_web_search"]),
        created_at=row["created_at"],
    )


class ConversationStore:
    """Sessions and messages CRUD on top of a connected ``Database``."""

    def __init__(self, db: Database) -> None:
        self._db = db

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def upsert_session(
        self,
        session_id: str,
        name: Optional[str] = None,
        model_id: Optional[str] = None,
    ) -> Session:
        """
        Create or fully replace a session row.

        Replace-on-conflict: name, model and both timestamps are overwritten,
        nothing is merged from the previous row.
        """
        now = now_ms()
        session = Session(
            id=session_id,
            name=name or DEFAULT_SESSION_NAME,
            created_at=now,
            last_updated_at=now,
            model_id=model_id,
        )
        with _storage_errors("upsert_session"):
            conn = self._db.conn
            await conn.execute(
                """INSERT OR REPLACE INTO chat_sessions (id, name, created_at, last_updated_at, model_id)
                   VALUES (?, ?, ?, ?, ?)""",
                (session.id, session.name, session.created_at, session.last_updated_at, session.model_id),
            )
            await conn.commit()
        logger.debug(f"Upserted session {session_id} (model={model_id})")
        return session

    async def get_session(self, session_id: str) -> Optional[Session]:
        with _storage_errors("get_session"):
            cursor = await self._db.conn.execute(
                "SELECT * FROM chat_sessions WHERE id = ?", (session_id,)
            )
            row = await cursor.fetchone()
        return _row_to_session(row) if row is not None else None

    async def list_sessions(self) -> List[Session]:
        """All sessions, most recently active first."""
        with _storage_errors("list_sessions"):
            cursor = await self._db.conn.execute(
                "SELECT * FROM chat_sessions ORDER BY last_updated_at DESC, rowid DESC"
            )
            rows = await cursor.fetchall()
        return [_row_to_session(r) for r in rows]

    async def delete_session(self, session_id: str) -> None:
        """Delete a session row and every message linked to it."""
        with _storage_errors("delete_session"):
            conn = self._db.conn
            await conn.execute("DELETE FROM chat_sessions WHERE id = ?", (session_id,))
            await conn.execute("DELETE FROM chat_messages WHERE session_id = ?", (session_id,))
            await conn.commit()
        logger.info(f"Deleted session {session_id}")

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def append_message(
        self,
        session_id: str,
        text: str,
        is_user: bool,
        image_path: Optional[str] = None,
        use_web_search: bool = False,
    ) -> int:
        """Insert a message and refresh the owning session's timestamp. Returns the new id."""
        session_id = session_id or DEFAULT_SESSION_ID
        now = now_ms()
        with _storage_errors("append_message"):
            conn = self._db.conn
            cursor = await conn.execute(
                """INSERT INTO chat_messages (text, is_user, image_path, use_web_search, created_at, session_id)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (text, 1 if is_user else 0, image_path, 1 if use_web_search else 0, now, session_id),
            )
            message_id = cursor.lastrowid
            await conn.execute(
                "UPDATE chat_sessions SET last_updated_at = MAX(?, created_at) WHERE id = ?",
                (now, session_id),
            )
            await conn.commit()
        return message_id

    async def update_message_text(self, message_id: int, text: str) -> None:
        """Overwrite the stored text of one message (final streamed answer)."""
        with _storage_errors("update_message_text"):
            conn = self._db.conn
            await conn.execute(
                "UPDATE chat_messages SET text = ? WHERE id = ?", (text, message_id)
            )
            await conn.commit()

    async def list_messages(self, session_id: str) -> List[Message]:
        """Messages of one session by creation time; ties keep insertion order."""
        with _storage_errors("list_messages"):
            cursor = await self._db.conn.execute(
                "SELECT * FROM chat_messages WHERE session_id = ? ORDER BY created_at ASC, id ASC",
                (session_id,),
            )
            rows = await cursor.fetchall()
        return [_row_to_message(r) for r in rows]

    async def clear_messages(self, session_id: str) -> None:
        """Delete every message of a session; the session row stays."""
        with _storage_errors("clear_messages"):
            conn = self._db.conn
            await conn.execute("DELETE FROM chat_messages WHERE session_id = ?", (session_id,))
            await conn.commit()

    async def clear_all(self) -> None:
        """Delete every message of every session; session rows stay."""
        with _storage_errors("clear_all"):
            conn = self._db.conn
            await conn.execute("DELETE FROM chat_messages")
            await conn.commit()
        logger.info("Cleared all chat messages")
