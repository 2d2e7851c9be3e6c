"""Persistence layer for studioflow progressions and campaigns."""

from __future__ import annotations

from typing import Optional

from ..config import StudioflowConfig, database_url_from_env, load_config
from .inmemory import InMemoryStorage
from .sqlite import SQLiteStorage
from .storage import StorageBackend
from .stores import CampaignStore, ProgressionStore

_storage_instance: StorageBackend | None = None


def get_storage(
    database_url: Optional[str] = None, config: Optional[StudioflowConfig] = None
) -> StorageBackend:
    """Factory function to obtain a storage backend.

    The backend is selected based on ``database_url`` which can be provided
    explicitly, via environment variable ``STUDIOFLOW_DATABASE_URL`` or
    ``DATABASE_URL``, or from loaded configuration. When no database is
    configured, in-memory storage is returned.
    """

    global _storage_instance
    if _storage_instance is not None and database_url is None and config is None:
        return _storage_instance

    config = config or load_config()
    database_url = (
        database_url or database_url_from_env() or getattr(config, "database_url", None)
    )

    if not database_url:
        _storage_instance = InMemoryStorage()
        return _storage_instance

    if database_url.startswith(("sqlite+aiosqlite://", "postgresql+asyncpg://")):
        from ..db import SQLModelStorage

        _storage_instance = SQLModelStorage(database_url)
    elif database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        _storage_instance = SQLiteStorage(path)
    elif database_url.startswith(("postgres://", "postgresql://")):
        from .postgres import PostgresStorage

        _storage_instance = PostgresStorage(database_url)
    else:
        raise ValueError(f"Unsupported database backend: {database_url}")

    return _storage_instance


__all__ = [
    "CampaignStore",
    "InMemoryStorage",
    "ProgressionStore",
    "SQLiteStorage",
    "StorageBackend",
    "get_storage",
]
