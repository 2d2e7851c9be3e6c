"""PostgreSQL implementation of the storage backend."""

from __future__ import annotations

import json
import uuid
from typing import Any

import asyncpg

from ..errors import NotFoundError
from .storage import StorageBackend


def _decode(value: Any) -> dict[str, Any]:
    # asyncpg hands JSONB back as text unless a codec is registered
    return json.loads(value) if isinstance(value, str) else dict(value)


class PostgresStorage(StorageBackend):
    """Persist records as JSONB documents in PostgreSQL."""

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        conn = await asyncpg.connect(self._dsn)
        if not self._initialized:
            await self._ensure_schema(conn)
            self._initialized = True
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS records (
                id TEXT PRIMARY KEY,
                kind TEXT,
                fields JSONB NOT NULL,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """
        )

    # ------------------------------------------------------------------
    async def create(self, fields: dict[str, Any]) -> str:
        item_id = str(uuid.uuid4())
        conn = await self._connect()
        try:
            await conn.execute(
                "INSERT INTO records (id, kind, fields) VALUES ($1, $2, $3::jsonb)",
                item_id,
                fields.get("kind"),
                json.dumps(fields),
            )
        finally:
            await conn.close()
        return item_id

    async def get(self, item_id: str) -> dict[str, Any] | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow("SELECT fields FROM records WHERE id = $1", item_id)
        finally:
            await conn.close()
        return _decode(row["fields"]) if row else None

    async def update(self, item_id: str, partial_fields: dict[str, Any]) -> None:
        conn = await self._connect()
        try:
            # jsonb || jsonb replaces top-level keys in a single statement
            status = await conn.execute(
                """
                UPDATE records
                SET fields = fields || $1::jsonb,
                    kind = COALESCE(($1::jsonb)->>'kind', kind)
                WHERE id = $2
                """,
                json.dumps(partial_fields),
                item_id,
            )
        finally:
            await conn.close()
        if status.endswith(" 0"):
            raise NotFoundError(item_id)

    async def delete(self, item_id: str) -> None:
        conn = await self._connect()
        try:
            status = await conn.execute("DELETE FROM records WHERE id = $1", item_id)
        finally:
            await conn.close()
        if status.endswith(" 0"):
            raise NotFoundError(item_id)

    async def list_ids(self, kind: str | None = None) -> list[str]:
        conn = await self._connect()
        try:
            if kind is None:
                rows = await conn.fetch("SELECT id FROM records ORDER BY created_at")
            else:
                rows = await conn.fetch(
                    "SELECT id FROM records WHERE kind = $1 ORDER BY created_at", kind
                )
        finally:
            await conn.close()
        return [r["id"] for r in rows]
