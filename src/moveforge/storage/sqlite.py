"""SQLite implementation of the CursorStore protocol."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from moveforge.errors import StateStoreError

SCHEMA = """
-- Tracker watermarks, one row per (address, module filter, batch filter)
CREATE TABLE IF NOT EXISTS cursors (
    address TEXT NOT NULL,
    module TEXT NOT NULL DEFAULT '',
    batch_id TEXT NOT NULL DEFAULT '',
    last_version INTEGER NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (address, module, batch_id)
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteCursorStore:
    """SQLite-backed watermark persistence for the event tracker.

    Unset filters are stored as empty strings so they take part in the
    primary key.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Open the database and create the schema.

        Raises StateStoreError when the file cannot be opened or is not
        a usable SQLite database.
        """
        path = self._db_path
        try:
            if path != ":memory:":
                p = Path(path).expanduser()
                p.parent.mkdir(parents=True, exist_ok=True)
                path = str(p)
            self._db = await aiosqlite.connect(path)
            self._db.row_factory = aiosqlite.Row
            await self._db.executescript(SCHEMA)
            await self._db.commit()
        except (aiosqlite.Error, OSError) as exc:
            await self.close()
            raise StateStoreError(self._db_path, str(exc)) from exc

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── Cursor ─────────────────────────────────────────────

    async def get_watermark(
        self, address: str, module: str | None, batch_id: str | None,
    ) -> int | None:
        async with self.db.execute(
            "SELECT last_version FROM cursors WHERE address=? AND module=? AND batch_id=?",
            (address, module or "", batch_id or ""),
        ) as cur:
            row = await cur.fetchone()
            return row["last_version"] if row else None

    async def set_watermark(
        self, address: str, module: str | None, batch_id: str | None, version: int,
    ) -> None:
        await self.db.execute(
            "INSERT INTO cursors (address, module, batch_id, last_version, updated_at)"
            " VALUES (?, ?, ?, ?, ?)"
            " ON CONFLICT(address, module, batch_id) DO UPDATE SET"
            " last_version=MAX(last_version, excluded.last_version),"
            " updated_at=excluded.updated_at",
            (address, module or "", batch_id or "", version, _now()),
        )
        await self.db.commit()

    async def list_watermarks(self) -> list[tuple[str, str, str, int]]:
        """All stored cursors as (address, module, batch_id, version)."""
        async with self.db.execute(
            "SELECT address, module, batch_id, last_version FROM cursors ORDER BY address"
        ) as cur:
            rows = await cur.fetchall()
            return [(r["address"], r["module"], r["batch_id"], r["last_version"]) for r in rows]
