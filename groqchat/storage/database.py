"""SQLite connection manager using aiosqlite."""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

from ..core.errors import StorageError
from .schema import INDEX_SQL, MIGRATIONS, SCHEMA_SQL, SCHEMA_VERSION

logger = logging.getLogger(__name__)


class Database:
    """Async SQLite connection manager with versioned, additive migrations."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._conn: aiosqlite.Connection | None = None

    @property
    def path(self) -> str:
        return self._db_path

    async def connect(self) -> None:
        """Open the database and bring its schema up to ``SCHEMA_VERSION``."""
        try:
            if self._db_path != ":memory:":
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = await aiosqlite.connect(self._db_path)
            self._conn.row_factory = aiosqlite.Row
            await self._migrate()
        except (aiosqlite.Error, OSError) as e:
            logger.error(f"Failed to open database {self._db_path}: {e}", exc_info=True)
            await self.close()
            raise StorageError(f"Cannot open database {self._db_path}: {e}", operation="connect") from e

    async def _migrate(self) -> None:
        conn = self.conn
        cursor = await conn.execute("PRAGMA user_version")
        row = await cursor.fetchone()
        current = row[0] if row else 0

        if current == 0:
            await conn.executescript(SCHEMA_SQL)
            logger.info(f"Created chat schema v{SCHEMA_VERSION} at {self._db_path}")
        elif current < SCHEMA_VERSION:
            for version in range(current + 1, SCHEMA_VERSION + 1):
                for statement in MIGRATIONS.get(version, []):
                    await conn.execute(statement)
                logger.info(f"Migrated chat schema to v{version}")

        await conn.executescript(INDEX_SQL)
        if current < SCHEMA_VERSION:
            # PRAGMA does not accept bound parameters
            await conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        await conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn
