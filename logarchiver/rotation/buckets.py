from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Iterable

from .models import LogFile, MonthGroup


def month_key(dt: datetime) -> str:
    return f"{dt.year:04d}-{dt.month:02d}"


def bucketize(files: Iterable[LogFile]) -> list[MonthGroup]:
    """Groups files by modification month; months ascending, names ascending."""
    groups: dict[str, list[LogFile]] = defaultdict(list)
    for f in files:
        groups[month_key(f.modified)].append(f)
    return [
        MonthGroup(month_key=key, files=sorted(groups[key], key=lambda f: (f.name, f.path)))
        for key in sorted(groups)
    ]
