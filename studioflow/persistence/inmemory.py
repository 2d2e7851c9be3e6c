"""In-memory implementation of the storage backend."""

from __future__ import annotations

import copy
import uuid
from typing import Any, Dict

from ..errors import NotFoundError
from .storage import StorageBackend


class InMemoryStorage(StorageBackend):
    """Store records in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._records: Dict[str, Dict[str, Any]] = {}

    async def create(self, fields: dict[str, Any]) -> str:
        item_id = str(uuid.uuid4())
        self._records[item_id] = copy.deepcopy(fields)
        return item_id

    async def get(self, item_id: str) -> dict[str, Any] | None:
        record = self._records.get(item_id)
        return copy.deepcopy(record) if record is not None else None

    async def update(self, item_id: str, partial_fields: dict[str, Any]) -> None:
        record = self._records.get(item_id)
        if record is None:
            raise NotFoundError(item_id)
        self._records[item_id] = {**record, **copy.deepcopy(partial_fields)}

    async def delete(self, item_id: str) -> None:
        if self._records.pop(item_id, None) is None:
            raise NotFoundError(item_id)

    async def list_ids(self, kind: str | None = None) -> list[str]:
        return [
            item_id
            for item_id, record in self._records.items()
            if kind is None or record.get("kind") == kind
        ]
