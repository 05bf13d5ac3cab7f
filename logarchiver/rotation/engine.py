"""
logarchiver — Rotation engine

Per root: validate -> select aged files -> bucket by month -> for each file
capture, append to the month archive, read back and compare, delete the
source -> prune expired archives.

Failures are local to the file, archive or root they concern. They are
recorded on the RootReport and the run moves on.
"""
from __future__ import annotations

import contextvars
import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from ..config import settings
from ..jobs import RotationJob
from ..utils.file_utils import archive_lock
from ..utils.logging_utils import clear_rotation_context, set_rotation_context, structured_log
from ..utils.telemetry import telemetry
from .archive import ArchiveWriter, capture_source
from .buckets import bucketize
from .cutoffs import compute_cutoffs
from .errors import RotationError, VerificationMismatch
from .evidence import append_event, record_run
from .models import ItemError, LogFile, MonthGroup, RootReport, RunCutoffs, RunReport
from .paths import folder_label, validate_root
from .pruner import ArchivePruner
from .reclaim import SourceReclaimer
from .selector import FileSelector
from .verifier import Verifier

logger = logging.getLogger("logarchiver.engine")


def _merge(into: RootReport, part: RootReport) -> None:
    for key in ("archived", "reused", "deleted", "skipped", "pruned"):
        setattr(into, key, getattr(into, key) + getattr(part, key))
    into.errors.extend(part.errors)
    into.actions.extend(part.actions)


class RotationEngine:
    def __init__(self, job: RotationJob, host: Optional[str] = None, dry_run: Optional[bool] = None,
                 max_workers: Optional[int] = None, lock_archives: Optional[bool] = None):
        self.job = job
        self.host = host or settings.resolved_host
        self.dry_run = settings.dry_run if dry_run is None else bool(dry_run)
        self.max_workers = max(1, int(max_workers or settings.max_workers or 1))
        self.lock_archives = settings.lock_archives if lock_archives is None else bool(lock_archives)
        ext = settings.archive_extension

        self.selector = FileSelector(job.include, job.exclude, host=self.host, extension=ext)
        self.writer = ArchiveWriter(self.host, ext, dry_run=self.dry_run)
        self.verifier = Verifier()
        self.reclaimer = SourceReclaimer(dry_run=self.dry_run)
        self.pruner = ArchivePruner(self.host, ext, dry_run=self.dry_run)

    # ── Entry point ───────────────────────────────────────────────────────────
    def run(self, roots: Optional[Iterable] = None, now: Optional[datetime] = None) -> RunReport:
        """Rotate every root against one clock reading taken here."""
        now = now or datetime.now()
        cutoffs = compute_cutoffs(now, self.job.compress_after_days, self.job.retain_months)
        run_id = uuid.uuid4().hex[:12]
        roots = list(self.job.paths if roots is None else roots)

        tokens = set_rotation_context(run_id=run_id)
        try:
            structured_log(
                logger, logging.INFO, "run_started",
                job=self.job.name, roots=[str(r) for r in roots], dry_run=self.dry_run,
                compress_before=cutoffs.compress_before.isoformat(),
                retain_after=cutoffs.retain_after.isoformat() if cutoffs.retain_after else None,
            )
            append_event("run_started", run_id=run_id, job=self.job.name, roots=[str(r) for r in roots],
                         dry_run=self.dry_run)

            if self.max_workers > 1 and len(roots) > 1:
                with ThreadPoolExecutor(max_workers=self.max_workers) as ex:
                    futures = [
                        ex.submit(contextvars.copy_context().run, self.rotate_root, root, cutoffs)
                        for root in roots
                    ]
                    root_reports = [f.result() for f in futures]
            else:
                root_reports = [self.rotate_root(root, cutoffs) for root in roots]

            report = RunReport(
                run_id=run_id,
                started_at=cutoffs.now,
                dry_run=self.dry_run,
                compress_before=cutoffs.compress_before,
                retain_after=cutoffs.retain_after,
                roots=root_reports,
            )
            record_run(report)
            structured_log(logger, logging.INFO, "run_finished", ok=report.ok, **report.totals())
            return report
        finally:
            clear_rotation_context(tokens)

    # ── Per root ──────────────────────────────────────────────────────────────
    def rotate_root(self, root, cutoffs: RunCutoffs) -> RootReport:
        report = RootReport(root=str(root))
        tokens = set_rotation_context(root=str(root))
        started = time.perf_counter()
        try:
            try:
                root_path = validate_root(root)
                label = folder_label(root, resolved=root_path)
                report.root, report.folder_label = str(root_path), label
                walk_errors: list[RotationError] = []
                files = self.selector.select(root_path, cutoffs.compress_before, label=label, errors=walk_errors)
            except RotationError as e:
                self._record(report, e, logging.ERROR)
                return report
            for err in walk_errors:
                self._record(report, err, logging.WARNING)

            report.found = len(files)
            groups = bucketize(files)
            if self.max_workers > 1 and len(groups) > 1:
                with ThreadPoolExecutor(max_workers=self.max_workers) as ex:
                    futures = [
                        ex.submit(contextvars.copy_context().run, self.rotate_group, root_path, label, g)
                        for g in groups
                    ]
                    parts = [f.result() for f in futures]
            else:
                parts = [self.rotate_group(root_path, label, g) for g in groups]
            for part in parts:
                _merge(report, part)

            if cutoffs.retain_after is not None:
                self.prune_root(root_path, label, cutoffs.retain_after, report)
            return report
        finally:
            telemetry.timing("rotation.root", time.perf_counter() - started)
            clear_rotation_context(tokens)

    def prune_root(self, root: Path, label: str, cutoff: datetime, report: RootReport) -> None:
        actions, failures = self.pruner.prune(root, label, cutoff)
        report.actions.extend(actions)
        report.pruned += len(actions)
        if not self.dry_run:
            telemetry.incr("rotation.archives_pruned", len(actions))
        for err in failures:
            self._record(report, err, logging.ERROR)

    # ── Per month ─────────────────────────────────────────────────────────────
    def rotate_group(self, root: Path, label: str, group: MonthGroup) -> RootReport:
        part = RootReport(root=str(root), folder_label=label)
        tokens = set_rotation_context(month=group.month_key)
        try:
            archive = self.writer.archive_path(root, label, group.month_key)
            # Files sharing an archive are handled strictly one after another.
            for log_file in group.files:
                self.rotate_file(archive, log_file, part)
            return part
        finally:
            clear_rotation_context(tokens)

    # ── Per file ──────────────────────────────────────────────────────────────
    def rotate_file(self, archive: Path, log_file: LogFile, report: RootReport) -> None:
        try:
            with capture_source(log_file) as capture:
                with archive_lock(archive, enabled=self.lock_archives and not self.dry_run):
                    action = self.writer.append(archive, log_file, capture)
                    report.actions.append(action)
                    if action.kind == "append_entry":
                        report.archived += 1
                        if not self.dry_run:
                            telemetry.incr("rotation.files_archived")
                    else:
                        report.reused += 1

                    if self.dry_run and action.kind == "append_entry":
                        # Nothing was written, so there is nothing to read back yet.
                        verified = True
                    elif capture.size == 0:
                        verified = False
                    else:
                        verified = self.verifier.verify(archive, log_file.entry_name, capture)
                        if not verified:
                            telemetry.incr("rotation.verify_mismatch")
                            raise VerificationMismatch(log_file.path, f"archived copy differs in {archive.name}")

                    deleted = self.reclaimer.reclaim(log_file, verified, entry_present=True, captured_size=capture.size)
                    if deleted is not None:
                        report.actions.append(deleted)
                        report.deleted += 1
                        if not self.dry_run:
                            telemetry.incr("rotation.files_deleted")
        except RotationError as e:
            report.skipped += 1
            self._record(report, e, logging.WARNING)

    def _record(self, report: RootReport, err: RotationError, level: int) -> None:
        report.errors.append(ItemError(code=err.code, path=err.path, message=err.message))
        telemetry.incr("rotation.errors")
        structured_log(logger, level, err.code, path=err.path, message=err.message)
