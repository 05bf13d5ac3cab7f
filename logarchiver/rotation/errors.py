from __future__ import annotations

from ..utils.file_utils import printable_name


class RotationError(Exception):
    """Base class for failures local to one root, file or archive."""

    code = "rotation_error"

    def __init__(self, path, message: str | None = None):
        self.path = printable_name(path)
        self.message = printable_name(message or self.code)
        super().__init__(f"{self.message}: {self.path}")


class PathNotFound(RotationError):
    code = "path_not_found"


class SourceUnreadable(RotationError):
    code = "source_unreadable"


class SourceNotRemoved(RotationError):
    code = "source_not_removed"


class ArchiveUnwritable(RotationError):
    code = "archive_unwritable"


class VerificationMismatch(RotationError):
    code = "verification_mismatch"


class ArchivePruneFailed(RotationError):
    code = "archive_prune_failed"
