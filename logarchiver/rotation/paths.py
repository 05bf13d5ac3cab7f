from __future__ import annotations

from pathlib import Path

from .errors import PathNotFound


def validate_root(path) -> Path:
    """Absolute path of an existing root directory, or PathNotFound."""
    p = Path(path).expanduser()
    if not p.is_dir():
        raise PathNotFound(p, "root path not found")
    return p.resolve()


def folder_label(root, resolved=None) -> str:
    """Last component of the root as configured.

    Symlinked roots keep their own name. ``.`` and ``..`` fall back to the
    resolved directory name when one is given.
    """
    name = Path(root).expanduser().name
    if name in ("", "..") and resolved is not None:
        name = Path(resolved).name
    if not name or name == "..":
        # "/" or a bare drive letter
        return "root"
    return name
