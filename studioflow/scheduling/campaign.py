"""Campaign batches: item lifecycle and per-item publish schedule."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from ..errors import ItemNotFoundError, ItemTransitionError
from .scheduler import distribute, validate_count, validate_date

logger = logging.getLogger(__name__)


class ItemStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


class CampaignStatus(str, Enum):
    DRAFT = "draft"
    GENERATING = "generating"
    PAUSED = "paused"
    REVIEW = "review"
    COMPLETED = "completed"
    FAILED = "failed"


class DateRange(BaseModel):
    start: date
    end: date

    @model_validator(mode="after")
    def _ordered(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self


class CampaignItem(BaseModel):
    """One idea of a campaign and the state of its generation pipeline."""

    index: int
    source_idea: str
    status: ItemStatus = ItemStatus.PENDING
    generated_item_id: Optional[str] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ItemSchedule(BaseModel):
    scheduled_date: date
    published_date: Optional[date] = None


class BatchProgress(BaseModel):
    total: int = 0
    completed: int = 0
    failed: int = 0
    pending: int = 0
    in_progress: int = 0


class CampaignBatch(BaseModel):
    """Items generated and published together over a date window."""

    name: str = ""
    mode: Optional[str] = None
    items: List[CampaignItem] = Field(default_factory=list)
    schedule: Dict[int, ItemSchedule] = Field(default_factory=dict)
    date_range: DateRange
    max_per_day: int = Field(ge=0)
    status: CampaignStatus = CampaignStatus.DRAFT


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _clean_ideas(ideas: Iterable[str]) -> List[str]:
    return [idea.strip() for idea in ideas if idea and idea.strip()]


def _build_schedule(
    n: int, start: date, end: date, max_per_day: int
) -> Dict[int, ItemSchedule]:
    return {
        index: ItemSchedule(scheduled_date=day)
        for index, day in distribute(n, start, end, max_per_day).items()
    }


def create_batch(
    ideas: Iterable[str],
    start: date,
    end: date,
    max_per_day: int,
    name: str = "",
    mode: Optional[str] = None,
) -> CampaignBatch:
    """Build a batch from ideas and compute its schedule once.

    Blank ideas are dropped. An infeasible request raises
    ``FeasibilityError`` instead of truncating the list.
    """
    cleaned = _clean_ideas(ideas)
    start = validate_date("start", start)
    end = validate_date("end", end)
    max_per_day = validate_count("max_per_day", max_per_day)
    schedule = _build_schedule(len(cleaned), start, end, max_per_day)
    batch = CampaignBatch(
        name=name,
        mode=mode,
        items=[CampaignItem(index=i, source_idea=idea) for i, idea in enumerate(cleaned)],
        schedule=schedule,
        date_range=DateRange(start=start, end=end),
        max_per_day=max_per_day,
    )
    logger.info(f"Created campaign batch '{name}' with {len(cleaned)} items")
    return batch


def reschedule(
    batch: CampaignBatch,
    start: Optional[date] = None,
    end: Optional[date] = None,
    max_per_day: Optional[int] = None,
    ideas: Optional[Iterable[str]] = None,
) -> CampaignBatch:
    """Return a copy of ``batch`` with its schedule recomputed.

    Items keep their status when the idea list is unchanged; a new idea list
    resets every item to pending. ``batch`` itself is never modified, so an
    infeasible request leaves it intact.
    """
    start = validate_date("start", start if start is not None else batch.date_range.start)
    end = validate_date("end", end if end is not None else batch.date_range.end)
    max_per_day = validate_count(
        "max_per_day", max_per_day if max_per_day is not None else batch.max_per_day
    )

    updated = batch.model_copy(deep=True)
    if ideas is not None:
        cleaned = _clean_ideas(ideas)
        if cleaned != [item.source_idea for item in batch.items]:
            updated.items = [
                CampaignItem(index=i, source_idea=idea) for i, idea in enumerate(cleaned)
            ]

    schedule = _build_schedule(len(updated.items), start, end, max_per_day)
    if updated.items == batch.items:
        for index, entry in schedule.items():
            previous = batch.schedule.get(index)
            if previous is not None:
                entry.published_date = previous.published_date

    updated.schedule = schedule
    updated.date_range = DateRange(start=start, end=end)
    updated.max_per_day = max_per_day
    logger.info(f"Rescheduled campaign batch '{batch.name}' ({len(updated.items)} items)")
    return updated


# ----------------------------------------------------------------------
# Item lifecycle


def get_item(batch: CampaignBatch, index: int) -> CampaignItem:
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(batch.items):
        raise ItemNotFoundError(index, len(batch.items))
    return batch.items[index]


def _transition(
    batch: CampaignBatch, index: int, allowed: Tuple[ItemStatus, ...], target: ItemStatus
) -> CampaignItem:
    item = get_item(batch, index)
    if item.status not in allowed:
        raise ItemTransitionError(index, item.status.value, target.value)
    item.status = target
    return item


def start_item(batch: CampaignBatch, index: int) -> CampaignBatch:
    item = _transition(batch, index, (ItemStatus.PENDING,), ItemStatus.GENERATING)
    item.started_at = _now()
    item.completed_at = None
    return batch


def complete_item(
    batch: CampaignBatch, index: int, generated_item_id: Optional[str] = None
) -> CampaignBatch:
    item = _transition(batch, index, (ItemStatus.GENERATING,), ItemStatus.COMPLETED)
    item.generated_item_id = generated_item_id
    item.error = None
    item.completed_at = _now()
    return batch


def fail_item(batch: CampaignBatch, index: int, error: str) -> CampaignBatch:
    item = _transition(batch, index, (ItemStatus.GENERATING,), ItemStatus.FAILED)
    item.error = error
    item.completed_at = _now()
    logger.warning(f"Campaign item {index} failed: {error}")
    return batch


def retry_item(batch: CampaignBatch, index: int) -> CampaignBatch:
    """Reset a failed item to pending.

    Only ``items[index]`` is touched; the schedule and every other item stay
    exactly as they were.
    """
    item = _transition(batch, index, (ItemStatus.FAILED,), ItemStatus.PENDING)
    item.error = None
    item.started_at = None
    item.completed_at = None
    logger.info(f"Campaign item {index} queued for retry")
    return batch


def reset_item(batch: CampaignBatch, index: int) -> CampaignBatch:
    """Return an item left in generating by an interrupted run to pending."""
    item = _transition(batch, index, (ItemStatus.GENERATING,), ItemStatus.PENDING)
    item.started_at = None
    logger.info(f"Campaign item {index} reset after an interrupted run")
    return batch


# ----------------------------------------------------------------------
# Progress and schedule queries


def batch_progress(batch: CampaignBatch) -> BatchProgress:
    statuses = [item.status for item in batch.items]
    return BatchProgress(
        total=len(statuses),
        completed=statuses.count(ItemStatus.COMPLETED),
        failed=statuses.count(ItemStatus.FAILED),
        pending=statuses.count(ItemStatus.PENDING),
        in_progress=statuses.count(ItemStatus.GENERATING),
    )


def derive_campaign_status(batch: CampaignBatch) -> CampaignStatus:
    """Campaign status implied by the item statuses."""
    progress = batch_progress(batch)
    if progress.pending == progress.total:
        return CampaignStatus.DRAFT
    if progress.pending or progress.in_progress:
        return CampaignStatus.GENERATING
    if progress.completed == 0:
        return CampaignStatus.FAILED
    return CampaignStatus.REVIEW


def next_scheduled_item(batch: CampaignBatch) -> Optional[Tuple[int, date]]:
    """Earliest completed item that has not been published yet."""
    candidates = [
        (entry.scheduled_date, index)
        for index, entry in batch.schedule.items()
        if entry.published_date is None
        and index < len(batch.items)
        and batch.items[index].status == ItemStatus.COMPLETED
    ]
    if not candidates:
        return None
    scheduled_date, index = min(candidates)
    return index, scheduled_date


def items_scheduled_for(batch: CampaignBatch, day: date) -> List[int]:
    day = validate_date("day", day)
    return sorted(index for index, entry in batch.schedule.items() if entry.scheduled_date == day)


def mark_published(
    batch: CampaignBatch, index: int, published_date: Optional[date] = None
) -> CampaignBatch:
    item = get_item(batch, index)
    if item.status != ItemStatus.COMPLETED:
        raise ItemTransitionError(index, item.status.value, "published")
    batch.schedule[index].published_date = validate_date(
        "published_date", published_date or _now().date()
    )
    return batch
