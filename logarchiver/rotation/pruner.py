from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path

from ..utils.logging_utils import structured_log
from .archive import archive_name_pattern
from .errors import ArchivePruneFailed
from .models import Action

logger = logging.getLogger("logarchiver.pruner")


class ArchivePruner:
    def __init__(self, host: str, extension: str = "zip", dry_run: bool = False):
        self.host = host
        self.extension = extension
        self.dry_run = dry_run

    def list_archives(self, root, label: str) -> list[Path]:
        pattern = archive_name_pattern(self.host, label, self.extension)
        root = Path(root)
        return sorted(p for p in root.iterdir() if p.is_file() and pattern.match(p.name))

    def prune(self, root, label: str, cutoff: datetime) -> tuple[list[Action], list[ArchivePruneFailed]]:
        """Deletes archives last modified strictly before ``cutoff``.

        Failures are collected rather than raised so one stuck archive does not
        keep the others around.
        """
        actions: list[Action] = []
        failures: list[ArchivePruneFailed] = []
        try:
            archives = self.list_archives(root, label)
        except OSError as e:
            return actions, [ArchivePruneFailed(root, f"cannot list archives ({e.strerror or e})")]
        for archive in archives:
            try:
                modified = datetime.fromtimestamp(archive.stat().st_mtime)
            except OSError as e:
                failures.append(ArchivePruneFailed(archive, f"cannot stat archive ({e.strerror or e})"))
                continue
            if not modified < cutoff:
                continue
            if self.dry_run:
                actions.append(Action(kind="delete_archive", target=str(archive), detail=modified.isoformat(), performed=False))
                continue
            try:
                os.remove(archive)
            except FileNotFoundError:
                continue
            except OSError as e:
                structured_log(logger, logging.ERROR, "archive_prune_failed", archive=str(archive), error=str(e))
                failures.append(ArchivePruneFailed(archive, f"cannot delete archive ({e.strerror or e})"))
                continue
            structured_log(logger, logging.INFO, "archive_pruned", archive=str(archive), modified=modified.isoformat())
            actions.append(Action(kind="delete_archive", target=str(archive), detail=modified.isoformat()))
        return actions, failures
