from __future__ import annotations

import calendar
from datetime import datetime, timedelta
from typing import Optional

from .models import RunCutoffs


def _local_naive(dt: datetime) -> datetime:
    # File mtimes are compared as naive local datetimes.
    if dt.tzinfo is not None:
        return dt.astimezone().replace(tzinfo=None)
    return dt


def subtract_months(dt: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    total = dt.year * 12 + (dt.month - 1) - int(months)
    year, month = divmod(total, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def compute_cutoffs(now: datetime, compress_after_days: int, retain_months: Optional[int] = None) -> RunCutoffs:
    if compress_after_days is None or int(compress_after_days) < 0:
        raise ValueError("compress_after_days must be a non-negative integer")
    now = _local_naive(now)
    retain_after = None
    if retain_months is not None and int(retain_months) > 0:
        retain_after = subtract_months(now, int(retain_months))
    return RunCutoffs(
        now=now,
        compress_before=now - timedelta(days=int(compress_after_days)),
        retain_after=retain_after,
    )
