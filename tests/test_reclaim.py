from __future__ import annotations

from datetime import datetime

import pytest

from logarchiver.rotation.errors import SourceNotRemoved
from logarchiver.rotation.models import LogFile
from logarchiver.rotation.reclaim import SourceReclaimer


@pytest.mark.parametrize(
    'verified,entry_present,size,expected',
    [
        (True, True, 10, True),
        (False, True, 10, False),
        (False, True, 0, True),
        (False, False, 0, False),
    ],
)
def test_may_delete(verified, entry_present, size, expected):
    assert SourceReclaimer.may_delete(verified, entry_present, size) is expected


def test_deletes_verified_source(site_root, make_file):
    src = make_file(site_root / 'a.log', b'abc', datetime(2024, 6, 1))
    action = SourceReclaimer().reclaim(LogFile.from_path(src), True, True, 3)
    assert action.kind == 'delete_source' and action.performed
    assert not src.exists()


def test_keeps_unverified_source(site_root, make_file):
    src = make_file(site_root / 'a.log', b'abc', datetime(2024, 6, 1))
    assert SourceReclaimer().reclaim(LogFile.from_path(src), False, True, 3) is None
    assert src.exists()


def test_dry_run_keeps_source(site_root, make_file):
    src = make_file(site_root / 'a.log', b'abc', datetime(2024, 6, 1))
    action = SourceReclaimer(dry_run=True).reclaim(LogFile.from_path(src), True, True, 3)
    assert action.performed is False
    assert src.exists()


def test_already_removed_source_is_not_an_error(site_root, make_file):
    src = make_file(site_root / 'a.log', b'abc', datetime(2024, 6, 1))
    lf = LogFile.from_path(src)
    src.unlink()
    assert SourceReclaimer().reclaim(lf, True, True, 3).kind == 'delete_source'


def test_delete_failure_raises(site_root, make_file, monkeypatch):
    src = make_file(site_root / 'a.log', b'abc', datetime(2024, 6, 1))

    def _deny(path):
        raise PermissionError(13, 'Permission denied', path)

    monkeypatch.setattr('logarchiver.rotation.reclaim.os.remove', _deny)
    with pytest.raises(SourceNotRemoved):
        SourceReclaimer().reclaim(LogFile.from_path(src), True, True, 3)
    assert src.exists()
