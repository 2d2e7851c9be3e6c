from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel import SQLModel, select

from ..errors import NotFoundError
from ..persistence.storage import StorageBackend
from .models import StoredRecord


class SQLModelStorage(StorageBackend):
    """Async SQLModel storage backend for any SQLAlchemy async URL."""

    def __init__(self, database_url: str) -> None:
        connect_args = (
            {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        )
        self.engine = create_async_engine(
            database_url, echo=False, future=True, connect_args=connect_args
        )
        self._initialized = False

    async def init_db(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        self._initialized = True

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if not self._initialized:
            await self.init_db()
        async with AsyncSession(self.engine, expire_on_commit=False) as session:
            yield session

    async def create(self, fields: dict[str, Any]) -> str:
        record = StoredRecord(id=str(uuid.uuid4()), kind=fields.get("kind"), document=dict(fields))
        async with self.session() as session:
            session.add(record)
            await session.commit()
        return record.id

    async def get(self, item_id: str) -> dict[str, Any] | None:
        async with self.session() as session:
            record = await session.get(StoredRecord, item_id)
            return dict(record.document) if record else None

    async def update(self, item_id: str, partial_fields: dict[str, Any]) -> None:
        async with self.session() as session:
            record = await session.get(StoredRecord, item_id)
            if record is None:
                raise NotFoundError(item_id)
            # reassign so the JSON column change is detected
            record.document = {**record.document, **partial_fields}
            record.kind = record.document.get("kind")
            record.updated_at = datetime.utcnow()
            session.add(record)
            await session.commit()

    async def delete(self, item_id: str) -> None:
        async with self.session() as session:
            record = await session.get(StoredRecord, item_id)
            if record is None:
                raise NotFoundError(item_id)
            await session.delete(record)
            await session.commit()

    async def list_ids(self, kind: str | None = None) -> list[str]:
        statement = select(StoredRecord.id).order_by(StoredRecord.created_at)
        if kind is not None:
            statement = statement.where(StoredRecord.kind == kind)
        async with self.session() as session:
            result = await session.execute(statement)
            return list(result.scalars().all())
