from __future__ import annotations

import contextvars
import json
import logging
from typing import Any

_run_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("run_id", default=None)
_root_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("root", default=None)
_month_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("month", default=None)


def set_rotation_context(run_id: str | None = None, root: str | None = None, month: str | None = None):
    tokens = {}
    if run_id is not None:
        tokens["run_id"] = _run_id_var.set(str(run_id))
    if root is not None:
        tokens["root"] = _root_var.set(str(root))
    if month is not None:
        tokens["month"] = _month_var.set(str(month))
    return tokens


def clear_rotation_context(tokens: dict[str, Any]) -> None:
    if not tokens:
        return
    if "month" in tokens:
        _month_var.reset(tokens["month"])
    if "root" in tokens:
        _root_var.reset(tokens["root"])
    if "run_id" in tokens:
        _run_id_var.reset(tokens["run_id"])


def get_rotation_context() -> dict[str, str | None]:
    return {
        "run_id": _run_id_var.get(),
        "root": _root_var.get(),
        "month": _month_var.get(),
    }


class RotationContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        ctx = get_rotation_context()
        record.run_id = ctx.get("run_id") or "-"
        record.root = ctx.get("root") or "-"
        record.month = ctx.get("month") or "-"
        return True


def configure_logging(level_name: str = "INFO") -> None:
    root = logging.getLogger()
    level = getattr(logging, (level_name or "INFO").upper(), logging.INFO)
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format=(
                "%(asctime)s %(levelname)s %(name)s "
                "[run_id=%(run_id)s root=%(root)s month=%(month)s] - %(message)s"
            ),
        )
    root.setLevel(level)
    for handler in root.handlers:
        exists = any(isinstance(f, RotationContextFilter) for f in handler.filters)
        if not exists:
            handler.addFilter(RotationContextFilter())


def structured_log(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, ensure_ascii=False, sort_keys=True, default=str))
