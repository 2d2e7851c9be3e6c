"""SQLite implementation of the storage backend."""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
import uuid
from pathlib import Path
from typing import Any

from ..errors import NotFoundError
from .storage import StorageBackend


class SQLiteStorage(StorageBackend):
    """Persist records as JSON documents in SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS records (
                    id TEXT PRIMARY KEY,
                    kind TEXT,
                    fields TEXT NOT NULL
                )
                """
            )

    # ------------------------------------------------------------------
    # Helper methods
    def _insert(self, item_id: str, fields: dict[str, Any]) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO records (id, kind, fields) VALUES (?, ?, ?)",
                (item_id, fields.get("kind"), json.dumps(fields)),
            )

    def _fetch(self, item_id: str) -> dict[str, Any] | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT fields FROM records WHERE id = ?", (item_id,)
            ).fetchone()
        return json.loads(row["fields"]) if row else None

    def _merge(self, item_id: str, partial_fields: dict[str, Any]) -> None:
        # read and write inside one transaction so the merge is atomic
        with self._lock, self._conn:
            row = self._conn.execute(
                "SELECT fields FROM records WHERE id = ?", (item_id,)
            ).fetchone()
            if row is None:
                raise NotFoundError(item_id)
            merged = {**json.loads(row["fields"]), **partial_fields}
            self._conn.execute(
                "UPDATE records SET kind = ?, fields = ? WHERE id = ?",
                (merged.get("kind"), json.dumps(merged), item_id),
            )

    def _remove(self, item_id: str) -> None:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM records WHERE id = ?", (item_id,))
            if cur.rowcount == 0:
                raise NotFoundError(item_id)

    def _ids(self, kind: str | None) -> list[str]:
        with self._lock:
            if kind is None:
                rows = self._conn.execute("SELECT id FROM records ORDER BY rowid").fetchall()
            else:
                rows = self._conn.execute(
                    "SELECT id FROM records WHERE kind = ? ORDER BY rowid", (kind,)
                ).fetchall()
        return [r["id"] for r in rows]

    # ------------------------------------------------------------------
    # Storage API
    async def create(self, fields: dict[str, Any]) -> str:
        item_id = str(uuid.uuid4())
        await asyncio.to_thread(self._insert, item_id, fields)
        return item_id

    async def get(self, item_id: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._fetch, item_id)

    async def update(self, item_id: str, partial_fields: dict[str, Any]) -> None:
        await asyncio.to_thread(self._merge, item_id, partial_fields)

    async def delete(self, item_id: str) -> None:
        await asyncio.to_thread(self._remove, item_id)

    async def list_ids(self, kind: str | None = None) -> list[str]:
        return await asyncio.to_thread(self._ids, kind)
