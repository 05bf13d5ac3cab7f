from __future__ import annotations

import fnmatch
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..utils.file_utils import printable_name
from ..utils.logging_utils import structured_log
from .archive import archive_name_pattern
from .errors import PathNotFound, RotationError, SourceUnreadable
from .models import LogFile
from .paths import folder_label

logger = logging.getLogger("logarchiver.selector")


class FileSelector:
    """Lists aged files under a root that match the include/exclude globs."""

    def __init__(self, include: str = "*.log", exclude: Optional[str] = None,
                 host: Optional[str] = None, extension: str = "zip"):
        self.include = include or "*"
        self.exclude = exclude or None
        self.host = host
        self.extension = extension

    def matches(self, name: str) -> bool:
        if not fnmatch.fnmatch(name, self.include):
            return False
        if self.exclude and fnmatch.fnmatch(name, self.exclude):
            return False
        return True

    def candidates(self, root, label: Optional[str] = None,
                   errors: Optional[list[RotationError]] = None) -> list[LogFile]:
        """Matching files under ``root``.

        Directories that cannot be listed and files that cannot be stat-ed are
        skipped; when ``errors`` is given they are appended to it as
        SourceUnreadable.
        """
        root = Path(root)
        if not root.is_dir():
            raise PathNotFound(root, "root path not found")
        own_archive = None
        if self.host:
            own_archive = archive_name_pattern(self.host, label or folder_label(root), self.extension)

        def _walk_error(err: OSError, path=None, what: str = "cannot list directory") -> None:
            path = path or getattr(err, "filename", None) or root
            structured_log(logger, logging.WARNING, "walk_error", path=printable_name(path), error=str(err))
            if errors is not None:
                errors.append(SourceUnreadable(path, f"{what} ({err.strerror or err})"))

        found: list[LogFile] = []
        for dirpath, _dirnames, filenames in os.walk(root, onerror=_walk_error):
            for name in filenames:
                if not self.matches(name):
                    continue
                if own_archive is not None and dirpath == str(root) and own_archive.match(name):
                    continue
                full = os.path.join(dirpath, name)
                if not os.path.isfile(full):
                    continue
                try:
                    found.append(LogFile.from_path(full))
                except OSError as e:
                    _walk_error(e, full, "cannot stat file")
        return found

    def select(self, root, cutoff: datetime, label: Optional[str] = None,
               errors: Optional[list[RotationError]] = None) -> list[LogFile]:
        """Candidates whose last modification is strictly before ``cutoff``."""
        return [f for f in self.candidates(root, label, errors) if f.modified < cutoff]
