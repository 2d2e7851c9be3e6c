"""Campaign batch scheduling and feasibility checks."""

from .campaign import (
    BatchProgress,
    CampaignBatch,
    CampaignItem,
    CampaignStatus,
    DateRange,
    ItemSchedule,
    ItemStatus,
    batch_progress,
    complete_item,
    create_batch,
    derive_campaign_status,
    fail_item,
    get_item,
    items_scheduled_for,
    mark_published,
    next_scheduled_item,
    reschedule,
    reset_item,
    retry_item,
    start_item,
)
from .scheduler import FeasibilityReport, check_feasibility, day_count, distribute

__all__ = [
    "BatchProgress",
    "CampaignBatch",
    "CampaignItem",
    "CampaignStatus",
    "DateRange",
    "FeasibilityReport",
    "ItemSchedule",
    "ItemStatus",
    "batch_progress",
    "check_feasibility",
    "complete_item",
    "create_batch",
    "day_count",
    "derive_campaign_status",
    "distribute",
    "fail_item",
    "get_item",
    "items_scheduled_for",
    "mark_published",
    "next_scheduled_item",
    "reschedule",
    "reset_item",
    "retry_item",
    "start_item",
]
