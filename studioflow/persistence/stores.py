"""Persistence adapters: the only components that talk to storage."""

from __future__ import annotations

import asyncio
import logging
import weakref
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Tuple

from ..constants import CAMPAIGN_KIND, PROGRESSION_KIND
from ..errors import NotFoundError, PersistenceError
from ..progression import ProgressionEngine, ProgressionState
from ..scheduling import CampaignBatch
from ..steps import STEP_TABLE, Mode, StepContext, StepTable
from .models import (
    campaign_from_fields,
    campaign_to_fields,
    progression_from_fields,
    progression_to_fields,
)
from .storage import StorageBackend

logger = logging.getLogger(__name__)

BatchMutator = Callable[[CampaignBatch], Optional[CampaignBatch]]
ItemMutator = Callable[[CampaignBatch, int], Optional[CampaignBatch]]


@contextmanager
def storage_errors(action: str, item_id: Optional[str] = None) -> Iterator[None]:
    """Re-raise backend failures as ``PersistenceError``."""
    try:
        yield
    except PersistenceError:
        raise
    except Exception as e:
        logger.error(f"Storage failed to {action} {item_id or ''}: {e}")
        raise PersistenceError(f"Failed to {action}: {e}", item_id=item_id) from e


class ProgressionStore:
    """Loads and saves ``ProgressionState`` records."""

    def __init__(self, storage: StorageBackend, table: Optional[StepTable] = None) -> None:
        self._storage = storage
        self.table = table or STEP_TABLE

    async def create(
        self, mode: Mode | str, context: Optional[StepContext] = None
    ) -> Tuple[str, ProgressionState]:
        """Create a draft progression at the first visible step."""
        state = ProgressionEngine(self.table).start(mode, context)
        with storage_errors("create progression"):
            item_id = await self._storage.create(progression_to_fields(state, self.table))
        logger.info(f"Created {state.mode} progression {item_id}")
        return item_id, state

    async def load(self, item_id: str) -> ProgressionState:
        with storage_errors("load progression", item_id):
            fields = await self._storage.get(item_id)
        if fields is None or fields.get("kind") != PROGRESSION_KIND:
            raise NotFoundError(item_id)
        with storage_errors("decode progression", item_id):
            return progression_from_fields(fields, self.table)

    async def save(self, item_id: str, state: ProgressionState) -> None:
        """Write cursor, completion, dirty set and payloads in one update."""
        fields = progression_to_fields(state, self.table)
        with storage_errors("save progression", item_id):
            await self._storage.update(item_id, fields)
        logger.debug(f"Saved progression {item_id} at step {state.current_step}")

    async def delete(self, item_id: str) -> None:
        with storage_errors("delete progression", item_id):
            await self._storage.delete(item_id)
        logger.info(f"Deleted progression {item_id}")

    async def list_ids(self) -> list[str]:
        with storage_errors("list progressions"):
            return await self._storage.list_ids(PROGRESSION_KIND)


class CampaignStore:
    """Loads and saves ``CampaignBatch`` records.

    Read-modify-write cycles on one batch are serialised with a per-batch
    lock so concurrent item updates cannot overwrite each other. Locks are
    held weakly and disappear once no coroutine uses them.
    """

    def __init__(self, storage: StorageBackend) -> None:
        self._storage = storage
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, batch_id: str) -> asyncio.Lock:
        lock = self._locks.get(batch_id)
        if lock is None:
            lock = self._locks[batch_id] = asyncio.Lock()
        return lock

    async def create(self, batch: CampaignBatch) -> str:
        with storage_errors("create campaign"):
            batch_id = await self._storage.create(campaign_to_fields(batch))
        logger.info(f"Created campaign {batch_id} with {len(batch.items)} items")
        return batch_id

    async def load(self, batch_id: str) -> CampaignBatch:
        with storage_errors("load campaign", batch_id):
            fields = await self._storage.get(batch_id)
        if fields is None or fields.get("kind") != CAMPAIGN_KIND:
            raise NotFoundError(batch_id)
        with storage_errors("decode campaign", batch_id):
            return campaign_from_fields(fields)

    async def save(self, batch_id: str, batch: CampaignBatch) -> None:
        """Replace the stored batch. Prefer ``update`` for concurrent writers."""
        async with self._lock_for(batch_id):
            await self._write(batch_id, batch)

    async def update(self, batch_id: str, mutator: BatchMutator) -> CampaignBatch:
        """Apply ``mutator`` to the freshly loaded batch and store the result.

        If ``mutator`` raises, nothing is written.
        """
        async with self._lock_for(batch_id):
            batch = await self.load(batch_id)
            batch = mutator(batch) or batch
            await self._write(batch_id, batch)
            return batch

    async def update_item(self, batch_id: str, index: int, mutator: ItemMutator) -> CampaignBatch:
        """Run an item-level operation such as ``retry_item`` under the batch lock."""
        return await self.update(batch_id, lambda batch: mutator(batch, index))

    async def delete(self, batch_id: str) -> None:
        async with self._lock_for(batch_id):
            with storage_errors("delete campaign", batch_id):
                await self._storage.delete(batch_id)
        self._locks.pop(batch_id, None)

    async def list_ids(self) -> list[str]:
        with storage_errors("list campaigns"):
            return await self._storage.list_ids(CAMPAIGN_KIND)

    async def _write(self, batch_id: str, batch: CampaignBatch) -> None:
        with storage_errors("save campaign", batch_id):
            await self._storage.update(batch_id, campaign_to_fields(batch))
