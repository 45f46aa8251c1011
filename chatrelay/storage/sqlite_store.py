"""
SQLite storage for client-side chat state.
Sessions, their append-only message lists, provider credentials and custom
endpoint configs. Single portable file; every write commits immediately.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from chatrelay.models import ChatMessage, ChatSession, CustomApiConfig

logger = logging.getLogger(__name__)

CREATE_TABLES = """
CREATE TABLE IF NOT EXISTS sessions (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS messages (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    session_id TEXT NOT NULL,
    sender TEXT NOT NULL,
    text TEXT NOT NULL,
    timestamp INTEGER NOT NULL,
    FOREIGN KEY (session_id) REFERENCES sessions(id)
);

CREATE TABLE IF NOT EXISTS credentials (
    provider TEXT PRIMARY KEY,
    api_key TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS custom_configs (
    id TEXT PRIMARY KEY,
    position INTEGER NOT NULL,
    data TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_messages_session
    ON messages(session_id);
"""


class SQLiteStore:
    """SQLite-backed store for sessions, credentials and custom configs."""

    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        with self._connect() as conn:
            conn.executescript(CREATE_TABLES)
        logger.info("SQLite store initialized at %s", self.db_path)

    @contextmanager
    def _connect(self):
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ─ Sessions and messages ──────────────────────────────────────────────

    def save_session(self, session: ChatSession):
        """Create a session record if it doesn't exist (messages not included)."""
        with self._connect() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO sessions (id, name, created_at) VALUES (?, ?, ?)",
                (session.id, session.name, session.created_at),
            )

    def append_message(self, session_id: str, msg: ChatMessage):
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO messages (id, session_id, sender, text, timestamp)
                   VALUES (?, ?, ?, ?, ?)""",
                (msg.id, session_id, msg.sender, msg.text, msg.timestamp),
            )
        logger.debug("Stored message %s (sender=%s, session=%s)", msg.id, msg.sender, session_id)

    def load_sessions(self) -> list[ChatSession]:
        """All sessions in creation order, each with its messages in append order."""
        with self._connect() as conn:
            session_rows = conn.execute(
                "SELECT * FROM sessions ORDER BY created_at, rowid"
            ).fetchall()
            message_rows = conn.execute(
                "SELECT * FROM messages ORDER BY seq"
            ).fetchall()

        sessions = {
            r["id"]: ChatSession(id=r["id"], name=r["name"], created_at=r["created_at"])
            for r in session_rows
        }
        for r in message_rows:
            session = sessions.get(r["session_id"])
            if session is None:
                continue
            session.messages.append(ChatMessage.from_dict(dict(r)))
        return list(sessions.values())

    def export_sessions(self) -> list[dict]:
        """Every session in wire form, for backups and the CLI export command."""
        return [s.to_dict() for s in self.load_sessions()]

    # ─ Credentials ────────────────────────────────────────────────────────

    def set_credential(self, provider: str, api_key: str):
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO credentials (provider, api_key) VALUES (?, ?)",
                (provider, api_key),
            )

    def load_credentials(self) -> dict[str, str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT provider, api_key FROM credentials").fetchall()
        return {r["provider"]: r["api_key"] for r in rows}

    # ─ Custom endpoint configs ────────────────────────────────────────────

    def save_custom_config(self, config: CustomApiConfig):
        """Insert or update; a new config goes to the end of the list."""
        data = json.dumps(config.to_dict())
        with self._connect() as conn:
            updated = conn.execute(
                "UPDATE custom_configs SET data = ? WHERE id = ?",
                (data, config.id),
            ).rowcount
            if not updated:
                position = conn.execute(
                    "SELECT COALESCE(MAX(position), -1) + 1 FROM custom_configs"
                ).fetchone()[0]
                conn.execute(
                    "INSERT INTO custom_configs (id, position, data) VALUES (?, ?, ?)",
                    (config.id, position, data),
                )

    def delete_custom_config(self, config_id: str):
        with self._connect() as conn:
            conn.execute("DELETE FROM custom_configs WHERE id = ?", (config_id,))

    def load_custom_configs(self) -> list[CustomApiConfig]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT data FROM custom_configs ORDER BY position"
            ).fetchall()
        return [CustomApiConfig.from_dict(json.loads(r["data"])) for r in rows]

    # ─ Settings ───────────────────────────────────────────────────────────

    def set_setting(self, key: str, value: str | None):
        """Store a setting; None removes it."""
        with self._connect() as conn:
            if value is None:
                conn.execute("DELETE FROM settings WHERE key = ?", (key,))
            else:
                conn.execute(
                    "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
                    (key, value),
                )

    def get_setting(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM settings WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row else None
