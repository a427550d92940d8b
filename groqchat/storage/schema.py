"""SQLite schema definitions and additive migrations."""

SCHEMA_VERSION = 2

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS chat_messages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    text TEXT NOT NULL,
    is_user BOOLEAN NOT NULL,
    image_path TEXT,
    use_web_search BOOLEAN NOT NULL DEFAULT 0,
    created_at INTEGER NOT NULL,
    session_id TEXT DEFAULT 'default'
);

CREATE TABLE IF NOT EXISTS chat_sessions (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL DEFAULT 'New Chat',
    created_at INTEGER NOT NULL,
    last_updated_at INTEGER NOT NULL,
    model_id TEXT
);
"""

INDEX_SQL = """
CREATE INDEX IF NOT EXISTS idx_chat_messages_session
    ON chat_messages (session_id, created_at, id);

CREATE INDEX IF NOT EXISTS idx_chat_sessions_updated
    ON chat_sessions (last_updated_at);
"""

# Statements that bring a database at version (key - 1) up to version key.
# Only additive changes belong here: existing rows must survive.
MIGRATIONS: dict[int, list[str]] = {
    2: [
        "ALTER TABLE chat_messages ADD COLUMN use_web_search BOOLEAN NOT NULL DEFAULT 0",
    ],
}
