"""
portfolio_tracker/database.py – SQLite persistence for the local identity cache
===============================================================================
Keeps the handful of strings that let a page reload restore the same actor
without re-entering credentials.  Portfolio and certificate data are never
stored here; they always come from the remote store.

Design decisions
----------------
- **Scoped per client** – one server process serves many browsers, so every
  row belongs to a ``client_id`` (the Streamlit pages keep it in the URL).
  A client only ever sees its own keys.
- **WAL journal mode** – the Streamlit front end and the admin page may open
  the file at the same time.
- **Connection per operation** – every call opens and closes its own
  connection, so the store is safe to use from any Streamlit rerun.

Schema
------
  client_id   TEXT             – browser / process the value belongs to
  key         TEXT             – one of the KEY_* constants
  value       TEXT NOT NULL
  updated_at  TEXT             – ISO-8601 timestamp
  PRIMARY KEY (client_id, key)

Public API
----------
  LocalStore(db_path, client_id="local")
    .init_db()          create the table if it doesn't exist
    .get(key)           → str | None
    .set(key, value)    insert or overwrite
    .delete(key)        remove if present
    .all()              → dict[str, str]   every key of this client
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


KEY_STUDENT     = "student_name"
KEY_CERT_VIEWER = "cert_viewer_name"
KEY_ADMIN_TOKEN = "admin_token"

DURABLE_KEYS = (KEY_STUDENT, KEY_CERT_VIEWER, KEY_ADMIN_TOKEN)

DEFAULT_CLIENT_ID = "local"


class LocalStore:
    """Durable string-per-key store backed by one SQLite file, scoped to one client."""

    def __init__(self, db_path: str | Path, client_id: str = DEFAULT_CLIENT_ID):
        if not client_id:
            raise ValueError("client_id must be non-empty")
        self.db_path   = Path(db_path)
        self.client_id = client_id
        self.init_db()

    def _get_conn(self) -> sqlite3.Connection:
        """Return a connection with row_factory set."""
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def init_db(self) -> None:
        """Create tables if they don't exist."""
        if self.db_path.parent and not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._get_conn()
        conn.executescript("""
        CREATE TABLE IF NOT EXISTS client_identity (
            client_id   TEXT NOT NULL,
            key         TEXT NOT NULL,
            value       TEXT NOT NULL,
            updated_at  TEXT DEFAULT (datetime('now')),
            PRIMARY KEY (client_id, key)
        );
        """)
        conn.commit()
        conn.close()

    def get(self, key: str) -> Optional[str]:
        """Fetch a saved value by key. Returns str or None."""
        conn = self._get_conn()
        row = conn.execute(
            "SELECT value FROM client_identity WHERE client_id = ? AND key = ?",
            (self.client_id, key),
        ).fetchone()
        conn.close()
        return None if row is None else row["value"]

    def set(self, key: str, value: str) -> None:
        """Save *value* under *key*, overwriting any previous value."""
        conn = self._get_conn()
        conn.execute(
            """
            INSERT INTO client_identity (client_id, key, value, updated_at)
            VALUES (?, ?, ?, datetime('now'))
            ON CONFLICT(client_id, key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (self.client_id, key, value),
        )
        conn.commit()
        conn.close()
        logger.debug("Saved local key %s for client %s", key, self.client_id)

    def delete(self, key: str) -> None:
        """Remove *key*; missing keys are ignored."""
        conn = self._get_conn()
        conn.execute(
            "DELETE FROM client_identity WHERE client_id = ? AND key = ?",
            (self.client_id, key),
        )
        conn.commit()
        conn.close()
        logger.debug("Removed local key %s for client %s", key, self.client_id)

    def all(self) -> dict[str, str]:
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT key, value FROM client_identity WHERE client_id = ? ORDER BY key",
            (self.client_id,),
        ).fetchall()
        conn.close()
        return {r["key"]: r["value"] for r in rows}
