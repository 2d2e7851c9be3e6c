"""Sequential generation of every item in a campaign batch."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel

from ..config import CampaignConfig
from ..errors import CampaignStateError, PersistenceError
from ..persistence import CampaignStore
from ..scheduling import (
    BatchProgress,
    CampaignBatch,
    CampaignItem,
    CampaignStatus,
    ItemStatus,
    batch_progress,
    complete_item,
    derive_campaign_status,
    fail_item,
    get_item,
    reset_item,
    retry_item,
    start_item,
)
from ..utils.retry import schedule_retry

logger = logging.getLogger(__name__)

# a failed campaign can be resumed after an aborted run
RUNNABLE_STATUSES = (CampaignStatus.DRAFT, CampaignStatus.PAUSED, CampaignStatus.FAILED)


class GenerationResult(BaseModel):
    """Outcome reported by a generation pipeline for one campaign item."""

    success: bool
    item_id: Optional[str] = None
    error: Optional[str] = None
    retryable: bool = False


Generator = Callable[[CampaignItem, CampaignBatch], Awaitable[GenerationResult]]


class CampaignRunner:
    """Runs a generation pipeline for each pending item of a batch.

    Items are processed one after another. A failing item is recorded as
    failed and the run moves on to the next one.
    """

    def __init__(
        self,
        store: CampaignStore,
        generator: Generator,
        config: Optional[CampaignConfig] = None,
    ) -> None:
        self._store = store
        self._generator = generator
        self._config = config or CampaignConfig()

    async def run(self, batch_id: str) -> BatchProgress:
        """Generate every pending item, then settle the campaign status.

        Items left in generating by an interrupted run are generated again.
        The run stops between items once the campaign is paused. If storage
        fails mid-run the campaign is marked failed and the error re-raised.
        """
        batch = await self._store.load(batch_id)
        if batch.status not in RUNNABLE_STATUSES:
            raise CampaignStateError(
                batch_id, f"cannot start generation while status is '{batch.status.value}'"
            )
        if not batch.items:
            raise CampaignStateError(batch_id, "no items to generate")

        logger.info(f"Starting batch generation for campaign {batch_id} ({len(batch.items)} items)")
        await self._store.update(batch_id, _set_status(CampaignStatus.GENERATING))

        try:
            for index in range(len(batch.items)):
                current = await self._store.load(batch_id)
                if current.status == CampaignStatus.PAUSED:
                    logger.info(f"Campaign {batch_id} paused before item {index}")
                    return batch_progress(current)
                status = current.items[index].status
                if status == ItemStatus.GENERATING:
                    await self._store.update_item(batch_id, index, reset_item)
                elif status != ItemStatus.PENDING:
                    logger.debug(f"Campaign {batch_id} item {index} is {status.value}, skipping")
                    continue
                await self._run_item(batch_id, index)

            final = await self._store.update(batch_id, _settle)
        except Exception as e:
            logger.error(f"Batch generation for campaign {batch_id} aborted: {e}")
            await self._abort(batch_id)
            raise

        progress = batch_progress(final)
        logger.info(f"Batch complete for campaign {batch_id}: {progress.model_dump()}")
        return progress

    async def pause(self, batch_id: str) -> CampaignBatch:
        """Stop a running campaign after the item currently being generated."""

        def mutate(batch: CampaignBatch) -> CampaignBatch:
            if batch.status != CampaignStatus.GENERATING:
                raise CampaignStateError(
                    batch_id, f"cannot pause while status is '{batch.status.value}'"
                )
            batch.status = CampaignStatus.PAUSED
            return batch

        batch = await self._store.update(batch_id, mutate)
        logger.info(f"Paused campaign {batch_id}")
        return batch

    async def retry(self, batch_id: str, index: int) -> CampaignItem:
        """Reset a failed or interrupted item and generate it again."""
        batch = await self._store.load(batch_id)
        if batch.status == CampaignStatus.GENERATING:
            raise CampaignStateError(batch_id, "cannot retry an item while the batch is running")
        await self._store.update_item(batch_id, index, _requeue)
        await self._run_item(batch_id, index)
        final = await self._store.update(batch_id, _settle)
        return final.items[index]

    async def _abort(self, batch_id: str) -> None:
        try:
            await self._store.update(batch_id, _set_status(CampaignStatus.FAILED))
        except PersistenceError as e:
            logger.error(f"Could not mark campaign {batch_id} as failed: {e}")

    async def _run_item(self, batch_id: str, index: int) -> None:
        batch = await self._store.update_item(batch_id, index, start_item)
        item = batch.items[index]
        logger.info(f"Generating campaign {batch_id} item {index}: {item.source_idea!r}")

        result = await self._generate(item, batch)
        if result.success:
            await self._store.update_item(
                batch_id, index, lambda b, i: complete_item(b, i, result.item_id)
            )
            logger.info(f"Campaign {batch_id} item {index} completed: {result.item_id}")
        else:
            await self._store.update_item(
                batch_id, index, lambda b, i: fail_item(b, i, result.error or "Unknown error")
            )

    async def _generate(self, item: CampaignItem, batch: CampaignBatch) -> GenerationResult:
        attempt = 0
        while True:
            try:
                result = await self._generator(item, batch)
            except Exception as e:
                logger.error(f"Generation raised for item {item.index}: {e}")
                result = GenerationResult(success=False, error=str(e) or type(e).__name__)

            if result.success or not result.retryable or attempt >= self._config.retry_attempts:
                return result
            attempt += 1
            logger.warning(f"Retrying item {item.index} (attempt {attempt}) after: {result.error}")
            await schedule_retry(attempt, self._config)


def _set_status(status: CampaignStatus) -> Callable[[CampaignBatch], CampaignBatch]:
    def mutate(batch: CampaignBatch) -> CampaignBatch:
        batch.status = status
        return batch

    return mutate


def _settle(batch: CampaignBatch) -> CampaignBatch:
    status = derive_campaign_status(batch)
    # items still pending but nothing running: leave it resumable
    batch.status = CampaignStatus.PAUSED if status == CampaignStatus.GENERATING else status
    return batch


def _requeue(batch: CampaignBatch, index: int) -> CampaignBatch:
    if get_item(batch, index).status == ItemStatus.GENERATING:
        return reset_item(batch, index)
    return retry_item(batch, index)
