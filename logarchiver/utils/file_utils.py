import hashlib
import os
import sys
from contextlib import contextmanager
from pathlib import Path

from ..config import settings


def printable_name(name) -> str:
    """File name with bytes that are not valid UTF-8 shown as backslash escapes."""
    return os.fsencode(str(name)).decode("utf-8", "backslashreplace")


if sys.platform == 'win32':
    import msvcrt

    @contextmanager
    def file_lock(file_obj, exclusive=True):
        """Windows file locking using msvcrt.locking."""
        fd = file_obj.fileno()
        pos = file_obj.tell()
        file_obj.seek(0)
        try:
            msvcrt.locking(fd, msvcrt.LK_LOCK, 1)
            yield
        finally:
            file_obj.seek(0)
            msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
            file_obj.seek(pos)

else:
    import fcntl

    @contextmanager
    def file_lock(file_obj, exclusive=True):
        """Unix file locking using fcntl.flock."""
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        try:
            fcntl.flock(file_obj, op)
            yield
        finally:
            fcntl.flock(file_obj, fcntl.LOCK_UN)


def lock_path_for(archive_path) -> Path:
    """Lock file for an archive, kept outside the rotated root."""
    resolved = os.path.abspath(str(archive_path))
    digest = hashlib.sha1(resolved.encode("utf-8")).hexdigest()[:16]
    return Path(settings.resolved_lock_dir) / f"logarchiver-{digest}.lock"


@contextmanager
def archive_lock(archive_path, enabled=True):
    """Hold an exclusive lock on one archive for the duration of the block."""
    if not enabled:
        yield None
        return
    path = lock_path_for(archive_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a+b") as fh:
        with file_lock(fh, exclusive=True):
            yield path
