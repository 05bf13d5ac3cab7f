from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..config import settings
from .models import RunReport


def _rotation_dir() -> Optional[Path]:
    if not settings.evidence_dir:
        return None
    base = Path(settings.evidence_dir).resolve() / "rotation"
    base.mkdir(parents=True, exist_ok=True)
    return base


def ledger_path() -> Optional[Path]:
    base = _rotation_dir()
    return base / "rotation.jsonl" if base is not None else None


def append_event(event: str, **fields: Any) -> Optional[str]:
    out = ledger_path()
    if out is None:
        return None
    rec = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
        **fields,
    }
    with out.open("a", encoding="utf-8") as f:
        f.write(json.dumps(rec, ensure_ascii=False, sort_keys=True, default=str) + "\n")
    return str(out)


def record_run(report: RunReport) -> Optional[str]:
    return append_event(
        "run_finished",
        run_id=report.run_id,
        dry_run=report.dry_run,
        ok=report.ok,
        totals=report.totals(),
        errors=[e.model_dump() for r in report.roots for e in r.errors],
    )


def load_events() -> list[dict[str, Any]]:
    path = ledger_path()
    if path is None or not path.exists():
        return []
    items = []
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                items.append(json.loads(line))
    return items
