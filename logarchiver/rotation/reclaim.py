from __future__ import annotations

import logging
import os

from ..utils.file_utils import printable_name
from ..utils.logging_utils import structured_log
from .errors import SourceNotRemoved
from .models import Action, LogFile

logger = logging.getLogger("logarchiver.reclaim")


class SourceReclaimer:
    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run

    @staticmethod
    def may_delete(verified: bool, entry_present: bool, captured_size: int) -> bool:
        # Empty sources skip the read-back but still need an entry in the archive.
        return bool(verified) or (captured_size == 0 and bool(entry_present))

    def reclaim(self, log_file: LogFile, verified: bool, entry_present: bool, captured_size: int) -> Action | None:
        if not self.may_delete(verified, entry_present, captured_size):
            return None
        if self.dry_run:
            return Action(kind="delete_source", target=log_file.path, performed=False)
        try:
            os.remove(log_file.path)
        except FileNotFoundError:
            structured_log(logger, logging.INFO, "source_already_gone", path=printable_name(log_file.path))
        except OSError as e:
            raise SourceNotRemoved(log_file.path, f"cannot delete source ({e.strerror or e})") from e
        else:
            structured_log(logger, logging.INFO, "source_deleted", path=printable_name(log_file.path), size=captured_size)
        return Action(kind="delete_source", target=log_file.path)
