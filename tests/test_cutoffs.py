from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from logarchiver.rotation.cutoffs import compute_cutoffs, subtract_months


def test_compress_cutoff_is_days_before_now(now):
    cutoffs = compute_cutoffs(now, 5)
    assert cutoffs.now == now
    assert cutoffs.compress_before == now - timedelta(days=5)
    assert cutoffs.retain_after is None


def test_retention_cutoff_uses_calendar_months(now):
    cutoffs = compute_cutoffs(now, 5, 6)
    assert cutoffs.retain_after == datetime(2024, 1, 15, 12, 0, 0)


@pytest.mark.parametrize('months', [None, 0, -3])
def test_retention_disabled_without_positive_months(now, months):
    assert compute_cutoffs(now, 5, months).retain_after is None


def test_subtract_months_clamps_day_and_crosses_year():
    assert subtract_months(datetime(2024, 3, 31, 8, 30), 1) == datetime(2024, 2, 29, 8, 30)
    assert subtract_months(datetime(2024, 1, 10), 1) == datetime(2023, 12, 10)
    assert subtract_months(datetime(2024, 5, 31), 14) == datetime(2023, 3, 31)


def test_aware_now_is_converted_to_local_naive():
    aware = datetime(2024, 7, 15, 12, 0, tzinfo=timezone.utc)
    cutoffs = compute_cutoffs(aware, 1)
    assert cutoffs.now.tzinfo is None
    assert cutoffs.now == aware.astimezone().replace(tzinfo=None)


def test_negative_days_rejected(now):
    with pytest.raises(ValueError):
        compute_cutoffs(now, -1)
