"""Storage collaborator abstraction."""

from __future__ import annotations

from typing import Any, Protocol


class StorageBackend(Protocol):
    """Protocol for the record store behind the persistence adapters.

    Records are JSON-compatible dicts keyed by opaque string ids. A record's
    ``kind`` field, when present, is used for listing.
    """

    async def create(self, fields: dict[str, Any]) -> str:
        """Persist a new record and return its id."""

    async def get(self, item_id: str) -> dict[str, Any] | None:
        """Return the record's fields, or ``None`` when it does not exist."""

    async def update(self, item_id: str, partial_fields: dict[str, Any]) -> None:
        """Merge ``partial_fields`` into the record in one atomic write.

        Raises ``NotFoundError`` when the record does not exist.
        """

    async def delete(self, item_id: str) -> None:
        """Remove the record. Raises ``NotFoundError`` when missing."""

    async def list_ids(self, kind: str | None = None) -> list[str]:
        """Ids of all records, optionally filtered by ``kind``."""
