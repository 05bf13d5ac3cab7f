from __future__ import annotations

import argparse
import json
import logging

from . import __version__
from .config import settings
from .jobs import JobsFileError, job_from_args, load_jobs
from .rotation.engine import RotationEngine
from .rotation.models import RunReport
from .utils.logging_utils import configure_logging
from .utils.telemetry import telemetry

logger = logging.getLogger("logarchiver.cli")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="logarchiver",
        description="Archive aged log files into monthly zip files and prune old archives",
    )
    p.add_argument("paths", nargs="*", help="root directories to rotate")
    p.add_argument("--config", default=None, help="YAML jobs file (used when no paths are given)")
    p.add_argument("--include", default=None, help="file name glob to archive (default: *.log)")
    p.add_argument("--exclude", default=None, help="file name glob to leave alone")
    p.add_argument("--days", type=int, default=None, help="archive files older than N days")
    p.add_argument("--months", type=int, default=None, help="delete archives older than N months")
    p.add_argument("--host", default=None, help="host identifier used in archive names")
    p.add_argument("--workers", type=int, default=None, help="roots/months processed in parallel")
    p.add_argument("--dry-run", action="store_true", help="report what would change, change nothing")
    p.add_argument("--json", action="store_true", help="emit JSON summary")
    p.add_argument("--log-level", default=None)
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def _print_summary(reports: list[RunReport], as_json: bool) -> None:
    if as_json:
        payload = {
            "ok": all(r.ok for r in reports),
            "runs": [r.model_dump(mode="json") for r in reports],
            "telemetry": telemetry.snapshot(),
        }
        print(json.dumps(payload, ensure_ascii=False))
        return
    for report in reports:
        print(f"run_id={report.run_id} dry_run={str(report.dry_run).lower()}")
        for root in report.roots:
            print(
                f"root={root.root} found={root.found} archived={root.archived} reused={root.reused} "
                f"deleted={root.deleted} skipped={root.skipped} pruned={root.pruned} errors={len(root.errors)}"
            )
            for err in root.errors:
                print(f"  error={err.code} path={err.path} message={err.message}")
            if report.dry_run:
                for action in root.actions:
                    print(f"  would {action.kind} {action.target} {action.detail}".rstrip())


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level or settings.log_level)
    if args.dry_run:
        settings.dry_run = True
    if args.workers:
        settings.max_workers = args.workers

    if args.paths:
        jobs = [job_from_args(args.paths, args.include, args.exclude, args.days, args.months)]
    else:
        config = args.config or settings.jobs_path
        if not config:
            parser.error("give at least one path or a jobs file (--config)")
        try:
            jobs = load_jobs(config)
        except JobsFileError as e:
            logger.error("%s", e)
            return 2

    reports = []
    for job in jobs:
        engine = RotationEngine(job, host=args.host)
        reports.append(engine.run())

    _print_summary(reports, args.json)
    return 0 if all(r.ok for r in reports) else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
