from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, BeforeValidator, Field

from ..utils.file_utils import printable_name

# Report fields end up in JSON and on the terminal, so raw file name bytes are escaped.
PathText = Annotated[str, BeforeValidator(printable_name)]


@dataclass(frozen=True)
class LogFile:
    path: str
    name: str
    modified: datetime
    size: int

    @property
    def entry_name(self) -> str:
        return printable_name(self.name)

    @classmethod
    def from_path(cls, path) -> "LogFile":
        path = os.path.abspath(str(path))
        st = os.stat(path)
        return cls(
            path=path,
            name=os.path.basename(path),
            modified=datetime.fromtimestamp(st.st_mtime),
            size=int(st.st_size),
        )


@dataclass
class MonthGroup:
    month_key: str
    files: list[LogFile] = field(default_factory=list)


@dataclass(frozen=True)
class RunCutoffs:
    now: datetime
    compress_before: datetime
    retain_after: Optional[datetime] = None


class Action(BaseModel):
    kind: Literal["append_entry", "reuse_entry", "delete_source", "delete_archive"]
    target: PathText
    detail: PathText = ""
    performed: bool = True


class ItemError(BaseModel):
    code: str
    path: PathText
    message: PathText


class RootReport(BaseModel):
    root: PathText
    folder_label: str = ""
    found: int = 0
    archived: int = 0
    reused: int = 0
    deleted: int = 0
    skipped: int = 0
    pruned: int = 0
    errors: list[ItemError] = Field(default_factory=list)
    actions: list[Action] = Field(default_factory=list)


class RunReport(BaseModel):
    run_id: str
    started_at: datetime
    dry_run: bool = False
    compress_before: datetime
    retain_after: Optional[datetime] = None
    roots: list[RootReport] = Field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(len(r.errors) for r in self.roots)

    @property
    def ok(self) -> bool:
        return self.error_count == 0

    def totals(self) -> dict[str, int]:
        keys = ("found", "archived", "reused", "deleted", "skipped", "pruned")
        out = {k: sum(getattr(r, k) for r in self.roots) for k in keys}
        out["errors"] = self.error_count
        return out
