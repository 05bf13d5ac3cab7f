from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Callable

import pytest

from logarchiver.config import settings
from logarchiver.utils.telemetry import telemetry

NOW = datetime(2024, 7, 15, 12, 0, 0)


@pytest.fixture(autouse=True)
def restore_settings(tmp_path):
    tracked = {
        'host_identifier': settings.host_identifier,
        'include': settings.include,
        'exclude': settings.exclude,
        'compress_after_days': settings.compress_after_days,
        'retain_months': settings.retain_months,
        'archive_extension': settings.archive_extension,
        'dry_run': settings.dry_run,
        'max_workers': settings.max_workers,
        'lock_archives': settings.lock_archives,
        'lock_dir': settings.lock_dir,
        'spool_max_bytes': settings.spool_max_bytes,
        'evidence_dir': settings.evidence_dir,
        'jobs_path': settings.jobs_path,
    }
    settings.host_identifier = 'HOST'
    settings.lock_dir = str(tmp_path / '_locks')
    settings.evidence_dir = ''
    yield settings
    for key, value in tracked.items():
        setattr(settings, key, value)


@pytest.fixture(autouse=True)
def reset_telemetry():
    telemetry.reset()
    yield
    telemetry.reset()


@pytest.fixture
def now() -> datetime:
    return NOW


def set_mtime(path: Path, when: datetime) -> None:
    ts = when.timestamp()
    os.utime(path, (ts, ts))


@pytest.fixture
def make_file() -> Callable[..., Path]:
    def _make(path: Path, content: bytes | str = b'', modified: datetime | None = None) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode('utf-8')
        path.write_bytes(content)
        if modified is not None:
            set_mtime(path, modified)
        return path
    return _make


@pytest.fixture
def site_root(tmp_path) -> Path:
    root = tmp_path / 'logs' / 'site1'
    root.mkdir(parents=True)
    return root
