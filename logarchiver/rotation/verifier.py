from __future__ import annotations

import logging
import zipfile
from pathlib import Path

from ..utils.logging_utils import structured_log
from .archive import CHUNK_SIZE, SourceCapture

logger = logging.getLogger("logarchiver.verifier")


class Verifier:
    """Reads an entry back from disk and compares it with the captured source."""

    def verify(self, archive: Path, entry_name: str, capture: SourceCapture) -> bool:
        try:
            with zipfile.ZipFile(archive, "r") as zf:
                try:
                    info = zf.getinfo(entry_name)
                except KeyError:
                    structured_log(logger, logging.WARNING, "verify_missing_entry", archive=str(archive), entry=entry_name)
                    return False
                if info.file_size != capture.size:
                    structured_log(
                        logger, logging.WARNING, "verify_size_mismatch",
                        archive=str(archive), entry=entry_name, archived=info.file_size, source=capture.size,
                    )
                    return False
                with zf.open(info, "r") as entry:
                    for block in capture.chunks(CHUNK_SIZE):
                        if entry.read(len(block)) != block:
                            structured_log(logger, logging.WARNING, "verify_content_mismatch", archive=str(archive), entry=entry_name)
                            return False
                    if entry.read(1):
                        return False
        except (OSError, zipfile.BadZipFile) as e:
            # BadZipFile also covers CRC failures raised while reading the entry.
            structured_log(logger, logging.WARNING, "verify_failed", archive=str(archive), entry=entry_name, error=str(e))
            return False
        return True
