import random
from collections import Counter
from datetime import date, datetime, timedelta

import pytest

from studioflow.errors import FeasibilityError, ScheduleInputError
from studioflow.scheduling import check_feasibility, day_count, distribute


def test_infeasible_batch_reports_capacity():
    with pytest.raises(FeasibilityError) as exc:
        check_feasibility(12, date(2024, 1, 1), date(2024, 1, 5), 2)
    error = exc.value
    assert str(error) == "Cannot fit 12 items in 5 days with max 2/day; maximum capacity is 10"
    assert error.capacity == 10
    assert error.shortfall == 2
    assert error.days == 5


def test_feasible_report():
    report = check_feasibility(10, date(2024, 1, 1), date(2024, 1, 5), 2)
    assert report.capacity == 10
    assert report.remaining == 0


def test_distribute_fills_each_day():
    schedule = distribute(5, date(2024, 1, 1), date(2024, 1, 3), 2)
    assert schedule == {
        0: date(2024, 1, 1),
        1: date(2024, 1, 1),
        2: date(2024, 1, 2),
        3: date(2024, 1, 2),
        4: date(2024, 1, 3),
    }


def test_empty_batch_is_feasible():
    assert distribute(0, date(2024, 1, 1), date(2024, 1, 1), 0) == {}
    assert check_feasibility(0, date(2024, 1, 1), date(2024, 1, 3), 1).capacity == 3


def test_zero_per_day_is_infeasible():
    with pytest.raises(FeasibilityError):
        distribute(1, date(2024, 1, 1), date(2024, 1, 10), 0)


def test_single_day_window():
    assert day_count(date(2024, 3, 1), date(2024, 3, 1)) == 1
    assert distribute(3, date(2024, 3, 1), date(2024, 3, 1), 3) == {
        0: date(2024, 3, 1),
        1: date(2024, 3, 1),
        2: date(2024, 3, 1),
    }


def test_window_across_month_end():
    assert day_count(date(2024, 2, 28), date(2024, 3, 1)) == 3


def test_datetimes_are_reduced_to_dates():
    schedule = distribute(2, datetime(2024, 1, 1, 18, 30), datetime(2024, 1, 2, 9), 1)
    assert schedule == {0: date(2024, 1, 1), 1: date(2024, 1, 2)}


@pytest.mark.parametrize(
    "n,start,end,max_per_day",
    [
        (1, date(2024, 1, 5), date(2024, 1, 1), 1),
        (-1, date(2024, 1, 1), date(2024, 1, 2), 1),
        (1, date(2024, 1, 1), date(2024, 1, 2), -1),
        (2.5, date(2024, 1, 1), date(2024, 1, 2), 1),
        (1, date(2024, 1, 1), date(2024, 1, 2), 1.5),
        (True, date(2024, 1, 1), date(2024, 1, 2), 1),
        (1, "2024-01-01", date(2024, 1, 2), 1),
        (1, date(2024, 1, 1), None, 1),
    ],
)
def test_malformed_input_is_rejected(n, start, end, max_per_day):
    with pytest.raises(ScheduleInputError):
        check_feasibility(n, start, end, max_per_day)
    with pytest.raises(ValueError):
        distribute(n, start, end, max_per_day)


def _random_cases(seed, count=300):
    rng = random.Random(seed)
    for _ in range(count):
        start = date(2024, 1, 1) + timedelta(days=rng.randint(0, 365))
        days = rng.randint(1, 12)
        yield rng.randint(0, 40), start, start + timedelta(days=days - 1), rng.randint(0, 5)


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_feasibility_matches_capacity(seed):
    for n, start, end, max_per_day in _random_cases(seed):
        capacity = day_count(start, end) * max_per_day
        if n <= capacity:
            assert check_feasibility(n, start, end, max_per_day).capacity == capacity
        else:
            with pytest.raises(FeasibilityError):
                check_feasibility(n, start, end, max_per_day)


@pytest.mark.parametrize("seed", [4, 5, 6])
def test_distribution_respects_window_and_cap(seed):
    for n, start, end, max_per_day in _random_cases(seed):
        if n > day_count(start, end) * max_per_day:
            continue
        schedule = distribute(n, start, end, max_per_day)
        assert sorted(schedule) == list(range(n))
        assert all(start <= day <= end for day in schedule.values())
        assert all(count <= max_per_day for count in Counter(schedule.values()).values())
        ordered = [schedule[i] for i in range(n)]
        assert ordered == sorted(ordered)
        assert distribute(n, start, end, max_per_day) == schedule
