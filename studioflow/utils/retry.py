"""Backoff between generation attempts."""

from __future__ import annotations

import asyncio
import logging
import random

from ..config import CampaignConfig

logger = logging.getLogger(__name__)


def compute_backoff(attempt: int, base: float = 1.5, jitter: float = 0.5) -> float:
    """Exponential delay for the ``attempt``-th retry (counting from 1) plus jitter."""
    if attempt < 1:
        raise ValueError(f"attempt must be at least 1, got {attempt}")
    return base**attempt + random.uniform(0, jitter)


async def schedule_retry(attempt: int, config: CampaignConfig) -> float:
    """Sleep before retry ``attempt`` and return the delay that was used."""
    delay = compute_backoff(attempt, base=config.retry_base_delay, jitter=config.retry_jitter)
    logger.debug(f"Waiting {delay:.2f}s before retry {attempt}")
    await asyncio.sleep(delay)
    return delay
