"""SQLite session store.

Provides persistent session storage using a SQLite database.
Uses aiosqlite for async access.
"""

from datetime import datetime
from pathlib import Path

import aiosqlite

from ..project.models import ProjectInfo
from .base import SessionStore
from .models import SessionData

_SESSION_ROW = 1


class SQLiteSessionStore(SessionStore):
    """SQLite-backed session store.

    One metadata row plus one row per history entry, in order.
    """

    def __init__(self, path: str | Path = "./console_buddy.db"):
        self._db_path = Path(path)
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Initialize database connection and schema."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self._db_path)
        await self._create_schema()

    async def _create_schema(self) -> None:
        """Create database tables."""
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS session (
                id INTEGER PRIMARY KEY,
                project_info TEXT,
                last_updated TEXT NOT NULL,
                total_sessions INTEGER NOT NULL DEFAULT 0,
                humor_level INTEGER NOT NULL DEFAULT 0
            )
        """)

        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS conversations (
                position INTEGER PRIMARY KEY,
                text TEXT NOT NULL
            )
        """)

        await self._connection.commit()

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("SQLiteSessionStore is not connected; call connect() first")
        return self._connection

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def load(self) -> SessionData | None:
        conn = self._require_connection()

        async with conn.execute(
            "SELECT project_info, last_updated, total_sessions, humor_level FROM session WHERE id = ?",
            (_SESSION_ROW,)
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return None

        project_info_json, last_updated, total_sessions, humor_level = row

        async with conn.execute("SELECT text FROM conversations ORDER BY position ASC") as cursor:
            rows = await cursor.fetchall()

        return SessionData(
            project_info=ProjectInfo.model_validate_json(project_info_json) if project_info_json else None,
            conversations=[text for (text,) in rows],
            last_updated=datetime.fromisoformat(last_updated),
            total_sessions=total_sessions,
            humor_level=humor_level,
        )

    async def _write(self, data: SessionData) -> None:
        conn = self._require_connection()

        await conn.execute("""
            INSERT INTO session (id, project_info, last_updated, total_sessions, humor_level)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                project_info = excluded.project_info,
                last_updated = excluded.last_updated,
                total_sessions = excluded.total_sessions,
                humor_level = excluded.humor_level
        """, (
            _SESSION_ROW,
            data.project_info.model_dump_json() if data.project_info else None,
            data.last_updated.isoformat(),
            data.total_sessions,
            data.humor_level,
        ))

        await conn.execute("DELETE FROM conversations")
        await conn.executemany(
            "INSERT INTO conversations (position, text) VALUES (?, ?)",
            list(enumerate(data.conversations)),
        )

        await conn.commit()

    async def clear(self) -> None:
        conn = self._require_connection()
        await conn.execute("DELETE FROM conversations")
        await conn.execute("DELETE FROM session")
        await conn.commit()

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
