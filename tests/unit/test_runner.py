from datetime import date

import pytest

from studioflow.campaigns import CampaignRunner, GenerationResult
from studioflow.config import CampaignConfig
from studioflow.errors import CampaignStateError, ItemTransitionError, PersistenceError
from studioflow.persistence import CampaignStore, InMemoryStorage
from studioflow.scheduling import CampaignStatus, ItemStatus, create_batch

NO_WAIT = CampaignConfig(retry_attempts=2, retry_base_delay=0, retry_jitter=0)


class ScriptedGenerator:
    """Returns queued results per idea and records every call."""

    def __init__(self, outcomes=None):
        self.outcomes = outcomes or {}
        self.calls = []

    async def __call__(self, item, batch):
        self.calls.append(item.source_idea)
        queue = self.outcomes.get(item.source_idea)
        outcome = queue.pop(0) if queue else None
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is not None:
            return outcome
        return GenerationResult(success=True, item_id=f"video-{item.index}")


async def _store_with_batch(ideas):
    store = CampaignStore(InMemoryStorage())
    batch = create_batch(ideas, date(2024, 1, 1), date(2024, 1, 10), 1, name="Calm")
    return store, await store.create(batch)


@pytest.mark.asyncio
async def test_run_generates_every_item():
    store, batch_id = await _store_with_batch(["rain", "forest", "ocean"])
    generator = ScriptedGenerator()

    progress = await CampaignRunner(store, generator, NO_WAIT).run(batch_id)

    assert progress.completed == 3
    assert generator.calls == ["rain", "forest", "ocean"]
    batch = await store.load(batch_id)
    assert batch.status == CampaignStatus.REVIEW
    assert [item.generated_item_id for item in batch.items] == ["video-0", "video-1", "video-2"]


@pytest.mark.asyncio
async def test_failed_item_does_not_stop_the_run():
    store, batch_id = await _store_with_batch(["rain", "forest", "ocean"])
    generator = ScriptedGenerator({"forest": [RuntimeError("model overloaded")]})

    progress = await CampaignRunner(store, generator, NO_WAIT).run(batch_id)

    assert progress.completed == 2
    assert progress.failed == 1
    batch = await store.load(batch_id)
    assert batch.items[1].status == ItemStatus.FAILED
    assert batch.items[1].error == "model overloaded"
    assert batch.items[2].status == ItemStatus.COMPLETED


@pytest.mark.asyncio
async def test_retryable_failures_are_retried():
    store, batch_id = await _store_with_batch(["rain"])
    busy = GenerationResult(success=False, error="rate limited", retryable=True)
    generator = ScriptedGenerator({"rain": [busy, busy]})

    progress = await CampaignRunner(store, generator, NO_WAIT).run(batch_id)

    assert progress.completed == 1
    assert generator.calls == ["rain", "rain", "rain"]


@pytest.mark.asyncio
async def test_retry_attempts_are_bounded():
    store, batch_id = await _store_with_batch(["rain"])
    busy = GenerationResult(success=False, error="rate limited", retryable=True)
    generator = ScriptedGenerator({"rain": [busy, busy, busy, busy]})

    progress = await CampaignRunner(store, generator, NO_WAIT).run(batch_id)

    assert progress.failed == 1
    assert len(generator.calls) == 3
    assert (await store.load(batch_id)).status == CampaignStatus.FAILED


@pytest.mark.asyncio
async def test_retry_single_item():
    store, batch_id = await _store_with_batch(["rain", "forest"])
    generator = ScriptedGenerator({"forest": [GenerationResult(success=False, error="nsfw")]})
    runner = CampaignRunner(store, generator, NO_WAIT)
    await runner.run(batch_id)
    before = await store.load(batch_id)

    item = await runner.retry(batch_id, 1)

    assert item.status == ItemStatus.COMPLETED
    after = await store.load(batch_id)
    assert after.items[0] == before.items[0]
    assert after.schedule == before.schedule
    assert after.status == CampaignStatus.REVIEW

    with pytest.raises(ItemTransitionError):
        await runner.retry(batch_id, 0)


@pytest.mark.asyncio
async def test_run_requires_draft_campaign():
    store, batch_id = await _store_with_batch(["rain"])
    runner = CampaignRunner(store, ScriptedGenerator(), NO_WAIT)
    await runner.run(batch_id)

    with pytest.raises(CampaignStateError):
        await runner.run(batch_id)


@pytest.mark.asyncio
async def test_run_rejects_empty_campaign():
    store, batch_id = await _store_with_batch(["  "])
    with pytest.raises(CampaignStateError):
        await CampaignRunner(store, ScriptedGenerator(), NO_WAIT).run(batch_id)


class FailingWrites(InMemoryStorage):
    """Raises on the ``fail_on``-th update and succeeds otherwise."""

    def __init__(self, fail_on):
        super().__init__()
        self.fail_on = fail_on
        self.writes = 0

    async def update(self, item_id, partial_fields):
        self.writes += 1
        if self.writes == self.fail_on:
            raise ConnectionError("database went away")
        await super().update(item_id, partial_fields)


async def _interrupted_run():
    storage = FailingWrites(fail_on=3)
    store = CampaignStore(storage)
    batch = create_batch(["rain", "forest"], date(2024, 1, 1), date(2024, 1, 10), 1)
    batch_id = await store.create(batch)
    runner = CampaignRunner(store, ScriptedGenerator(), NO_WAIT)

    # status -> generating, start item 0, then the completion write fails
    with pytest.raises(PersistenceError):
        await runner.run(batch_id)
    return store, runner, batch_id


@pytest.mark.asyncio
async def test_storage_failure_marks_campaign_failed():
    store, _, batch_id = await _interrupted_run()

    batch = await store.load(batch_id)
    assert batch.status == CampaignStatus.FAILED
    assert [item.status for item in batch.items] == [ItemStatus.GENERATING, ItemStatus.PENDING]


@pytest.mark.asyncio
async def test_interrupted_run_can_resume():
    store, runner, batch_id = await _interrupted_run()

    progress = await runner.run(batch_id)

    assert progress.completed == 2
    batch = await store.load(batch_id)
    assert batch.status == CampaignStatus.REVIEW
    assert batch.items[0].generated_item_id == "video-0"


@pytest.mark.asyncio
async def test_interrupted_item_can_be_retried():
    store, runner, batch_id = await _interrupted_run()

    item = await runner.retry(batch_id, 0)

    assert item.status == ItemStatus.COMPLETED
    batch = await store.load(batch_id)
    assert batch.items[1].status == ItemStatus.PENDING
    assert batch.status == CampaignStatus.PAUSED

    await runner.run(batch_id)
    assert (await store.load(batch_id)).status == CampaignStatus.REVIEW


@pytest.mark.asyncio
async def test_pause_stops_after_current_item_and_resumes():
    store, batch_id = await _store_with_batch(["rain", "forest", "ocean"])
    calls = []

    async def pausing_generator(item, batch):
        calls.append(item.index)
        if item.index == 0:
            await runner.pause(batch_id)
        return GenerationResult(success=True, item_id=f"video-{item.index}")

    runner = CampaignRunner(store, pausing_generator, NO_WAIT)
    progress = await runner.run(batch_id)

    assert calls == [0]
    assert progress.completed == 1
    assert progress.pending == 2
    batch = await store.load(batch_id)
    assert batch.status == CampaignStatus.PAUSED

    progress = await runner.run(batch_id)
    assert calls == [0, 1, 2]
    assert progress.completed == 3
    assert (await store.load(batch_id)).status == CampaignStatus.REVIEW


@pytest.mark.asyncio
async def test_pause_requires_running_campaign():
    store, batch_id = await _store_with_batch(["rain"])
    runner = CampaignRunner(store, ScriptedGenerator(), NO_WAIT)
    with pytest.raises(CampaignStateError):
        await runner.pause(batch_id)
