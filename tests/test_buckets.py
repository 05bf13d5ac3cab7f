from __future__ import annotations

from datetime import datetime

from logarchiver.rotation.buckets import bucketize, month_key
from logarchiver.rotation.models import LogFile


def _lf(name: str, modified: datetime, folder: str = '/logs') -> LogFile:
    return LogFile(path=f'{folder}/{name}', name=name, modified=modified, size=1)


def test_month_key_is_zero_padded():
    assert month_key(datetime(2024, 3, 9)) == '2024-03'


def test_groups_sorted_by_month_then_name():
    files = [
        _lf('c.log', datetime(2024, 3, 2)),
        _lf('b.log', datetime(2023, 12, 31, 23, 59)),
        _lf('a.log', datetime(2024, 3, 30)),
        _lf('z.log', datetime(2024, 1, 1)),
    ]
    groups = bucketize(files)
    assert [g.month_key for g in groups] == ['2023-12', '2024-01', '2024-03']
    assert [f.name for f in groups[-1].files] == ['a.log', 'c.log']


def test_each_file_lands_only_in_its_own_month():
    files = [_lf(f'{m}.log', datetime(2024, m, 15)) for m in range(1, 7)]
    for group in bucketize(files):
        assert all(month_key(f.modified) == group.month_key for f in group.files)
    assert sum(len(g.files) for g in bucketize(files)) == 6


def test_same_name_ties_broken_by_path():
    files = [
        _lf('app.log', datetime(2024, 2, 1), '/logs/b'),
        _lf('app.log', datetime(2024, 2, 2), '/logs/a'),
    ]
    (group,) = bucketize(files)
    assert [f.path for f in group.files] == ['/logs/a/app.log', '/logs/b/app.log']


def test_empty_input():
    assert bucketize([]) == []
