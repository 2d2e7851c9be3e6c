import pytest

from studioflow.config import CampaignConfig
from studioflow.utils.retry import compute_backoff, schedule_retry


def test_backoff_grows_with_attempts():
    assert compute_backoff(1, base=2, jitter=0) == 2
    assert compute_backoff(3, base=2, jitter=0) == 8
    assert 2 <= compute_backoff(1, base=2, jitter=0.5) <= 2.5


def test_backoff_rejects_attempt_zero():
    with pytest.raises(ValueError):
        compute_backoff(0)


@pytest.mark.asyncio
async def test_schedule_retry_uses_config():
    delay = await schedule_retry(2, CampaignConfig(retry_base_delay=0.1, retry_jitter=0))
    assert delay == pytest.approx(0.01)
