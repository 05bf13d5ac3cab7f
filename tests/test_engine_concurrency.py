from __future__ import annotations

import threading
import time
import zipfile
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

from logarchiver.jobs import RotationJob
from logarchiver.rotation.engine import RotationEngine
from logarchiver.utils.file_utils import archive_lock, lock_path_for


def test_parallel_roots_and_months_match_sequential_result(tmp_path, make_file, now):
    roots = []
    for r in range(3):
        root = tmp_path / 'logs' / f'site{r}'
        for m in (4, 5, 6):
            for i in range(4):
                make_file(root / f'{m}-{i}.log', f'{r}/{m}/{i}\n' * 30, now.replace(month=m, day=10 + i))
        roots.append(root)

    job = RotationJob(name='parallel', paths=[str(r) for r in roots])
    report = RotationEngine(job, host='HOST', max_workers=4).run(now=now)

    assert report.ok
    assert [r.root for r in report.roots] == [str(r.resolve()) for r in roots]
    for r, root in enumerate(roots):
        assert not list(root.glob('*.log'))
        for m in (4, 5, 6):
            with zipfile.ZipFile(root / f'HOST-site{r}-2024-0{m}.zip') as zf:
                assert zf.namelist() == [f'{m}-{i}.log' for i in range(4)]
                assert zf.read(f'{m}-0.log') == f'{r}/{m}/0\n'.encode() * 30


def test_archive_lock_is_exclusive_across_threads(tmp_path):
    archive = tmp_path / 'HOST-site1-2024-06.zip'
    holders = []
    overlap = threading.Event()
    inside = threading.Lock()

    def worker(_):
        with archive_lock(archive):
            if not inside.acquire(blocking=False):
                overlap.set()
                return
            holders.append(threading.get_ident())
            time.sleep(0.01)
            inside.release()

    with ThreadPoolExecutor(max_workers=8) as ex:
        list(ex.map(worker, range(24)))

    assert not overlap.is_set()
    assert len(holders) == 24


def test_lock_file_lives_outside_root(tmp_path, restore_settings):
    archive = tmp_path / 'logs' / 'site1' / 'HOST-site1-2024-06.zip'
    lock = lock_path_for(archive)
    assert lock.parent == tmp_path / '_locks'
    assert lock_path_for(archive) == lock
    assert lock_path_for(archive.with_name('HOST-site1-2024-07.zip')) != lock


def test_disabled_lock_yields_none(tmp_path):
    with archive_lock(tmp_path / 'x.zip', enabled=False) as held:
        assert held is None
