"""
Archive construction.

One zip per (host, root folder, month). Archives are opened in append
mode so earlier entries survive; an entry is only written when no entry
with the same name exists yet.
"""
from __future__ import annotations

import hashlib
import logging
import re
import shutil
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from ..config import settings
from ..utils.logging_utils import structured_log
from .errors import ArchiveUnwritable, SourceUnreadable
from .models import Action, LogFile

logger = logging.getLogger("logarchiver.archive")

CHUNK_SIZE = 1024 * 1024
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


def archive_name(host: str, label: str, month_key: str, ext: str = "zip") -> str:
    return f"{host}-{label}-{month_key}.{ext.lstrip('.')}"


def archive_name_pattern(host: str, label: str, ext: str = "zip") -> re.Pattern:
    return re.compile(
        rf"^{re.escape(host)}-{re.escape(label)}-(\d{{4}})-(\d{{2}})\.{re.escape(ext.lstrip('.'))}$"
    )


@dataclass
class SourceCapture:
    """Source content read before the archive is touched."""

    buffer: BinaryIO
    size: int
    sha256: str

    def chunks(self, size: int = CHUNK_SIZE):
        self.buffer.seek(0)
        while True:
            block = self.buffer.read(size)
            if not block:
                return
            yield block

    def close(self) -> None:
        self.buffer.close()

    def __enter__(self) -> "SourceCapture":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def capture_source(log_file: LogFile, spool_max_bytes: int | None = None) -> SourceCapture:
    max_size = int(spool_max_bytes or settings.spool_max_bytes)
    buf = tempfile.SpooledTemporaryFile(max_size=max_size)
    digest = hashlib.sha256()
    size = 0
    try:
        with open(log_file.path, "rb") as src:
            while True:
                block = src.read(CHUNK_SIZE)
                if not block:
                    break
                digest.update(block)
                buf.write(block)
                size += len(block)
    except OSError as e:
        buf.close()
        raise SourceUnreadable(log_file.path, f"cannot read source ({e.strerror or e})") from e
    buf.seek(0)
    return SourceCapture(buffer=buf, size=size, sha256=digest.hexdigest())


def _zip_date_time(log_file: LogFile) -> tuple:
    m = log_file.modified
    stamp = (m.year, m.month, m.day, m.hour, m.minute, m.second)
    return max(stamp, ZIP_EPOCH)


class ArchiveWriter:
    def __init__(self, host: str, extension: str = "zip", dry_run: bool = False):
        self.host = host
        self.extension = extension.lstrip(".")
        self.dry_run = dry_run

    def archive_path(self, root, label: str, month_key: str) -> Path:
        return Path(root) / archive_name(self.host, label, month_key, self.extension)

    def has_entry(self, archive: Path, entry_name: str) -> bool:
        if not archive.exists():
            return False
        try:
            with zipfile.ZipFile(archive, "r") as zf:
                return entry_name in zf.namelist()
        except (OSError, zipfile.BadZipFile) as e:
            raise ArchiveUnwritable(archive, f"cannot open archive ({e})") from e

    def append(self, archive: Path, log_file: LogFile, capture: SourceCapture | None) -> Action:
        """Add ``log_file`` as an entry unless one with its name already exists."""
        entry_name = log_file.entry_name
        if self.dry_run:
            if self.has_entry(archive, entry_name):
                return Action(kind="reuse_entry", target=str(archive), detail=entry_name, performed=False)
            return Action(
                kind="append_entry",
                target=str(archive),
                detail=f"{entry_name} ({log_file.size} bytes)",
                performed=False,
            )

        try:
            with zipfile.ZipFile(archive, "a", compression=zipfile.ZIP_DEFLATED) as zf:
                if entry_name in zf.namelist():
                    structured_log(logger, logging.DEBUG, "entry_exists", archive=str(archive), entry=entry_name)
                    return Action(kind="reuse_entry", target=str(archive), detail=entry_name)
                if capture is None:
                    raise ArchiveUnwritable(archive, f"no captured content for new entry {entry_name}")
                info = zipfile.ZipInfo(entry_name, date_time=_zip_date_time(log_file))
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = 0o644 << 16
                info.file_size = capture.size
                capture.buffer.seek(0)
                with zf.open(info, "w") as entry:
                    shutil.copyfileobj(capture.buffer, entry, CHUNK_SIZE)
        except (OSError, ValueError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            # ValueError covers entry names zipfile cannot encode.
            raise ArchiveUnwritable(archive, f"cannot write archive ({e})") from e

        structured_log(
            logger, logging.INFO, "entry_written",
            archive=str(archive), entry=entry_name, size=capture.size,
        )
        return Action(kind="append_entry", target=str(archive), detail=f"{entry_name} ({capture.size} bytes)")
