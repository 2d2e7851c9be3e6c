"""Feasibility checks and deterministic slot assignment for campaign batches."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict

from pydantic import BaseModel

from ..errors import FeasibilityError, ScheduleInputError

logger = logging.getLogger(__name__)


class FeasibilityReport(BaseModel):
    """Outcome of a successful feasibility check."""

    n: int
    days: int
    max_per_day: int
    capacity: int

    @property
    def remaining(self) -> int:
        """Free slots left in the window after placing ``n`` items."""
        return self.capacity - self.n


def validate_count(field: str, value: Any) -> int:
    """Accept non-negative ints only; no rounding, no bools."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ScheduleInputError(field, value, "must be an integer")
    if value < 0:
        raise ScheduleInputError(field, value, "must not be negative")
    return value


def validate_date(field: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise ScheduleInputError(field, value, "must be a date")


def day_count(start: date, end: date) -> int:
    """Number of calendar days from ``start`` to ``end`` inclusive."""
    start = validate_date("start", start)
    end = validate_date("end", end)
    if end < start:
        raise ScheduleInputError("end", end, f"must not be before start {start.isoformat()}")
    return (end - start).days + 1


def check_feasibility(n: int, start: date, end: date, max_per_day: int) -> FeasibilityReport:
    """Verify that ``n`` items fit into the window at ``max_per_day`` per day.

    Raises:
        ScheduleInputError: malformed counts or dates.
        FeasibilityError: ``n`` exceeds ``days * max_per_day``. The error
            reports the capacity and the shortfall.
    """
    n = validate_count("n", n)
    max_per_day = validate_count("max_per_day", max_per_day)
    days = day_count(start, end)
    capacity = days * max_per_day
    if n > capacity:
        error = FeasibilityError(n, days, max_per_day)
        logger.warning(str(error))
        raise error
    return FeasibilityReport(n=n, days=days, max_per_day=max_per_day, capacity=capacity)


def distribute(n: int, start: date, end: date, max_per_day: int) -> Dict[int, date]:
    """Assign each item index a publish date.

    Days are filled in order with up to ``max_per_day`` items before moving
    on, and items are placed in index order, so item 0 always gets the
    earliest slot.
    """
    report = check_feasibility(n, start, end, max_per_day)
    current = validate_date("start", start)
    schedule: Dict[int, date] = {}
    used = 0
    for index in range(report.n):
        if used == report.max_per_day:
            current += timedelta(days=1)
            used = 0
        schedule[index] = current
        used += 1
    logger.debug(
        f"Distributed {report.n} items over {report.days} days (max {report.max_per_day}/day)"
    )
    return schedule
