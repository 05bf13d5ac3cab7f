"""
logarchiver — Configuration
Monthly log archiving with verify-before-delete.
Values come from the environment (LOGARCHIVER_*) or a .env file.
"""
from __future__ import annotations

import socket
import tempfile
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ── Logging ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"

    # ── Selection ─────────────────────────────────────────────────────────────
    include: str = "*.log"
    exclude: Optional[str] = None
    compress_after_days: int = 5        # files older than N days are archived

    # ── Archives ──────────────────────────────────────────────────────────────
    # Empty host_identifier falls back to the machine hostname.
    host_identifier: str = ""
    archive_extension: str = "zip"
    retain_months: Optional[int] = None  # None / 0 = keep archives forever

    # ── Execution ─────────────────────────────────────────────────────────────
    dry_run: bool = False
    max_workers: int = 1
    lock_archives: bool = True
    lock_dir: str = ""                  # empty = system temp dir
    spool_max_bytes: int = 16 * 1024 * 1024

    # ── Paths ─────────────────────────────────────────────────────────────────
    jobs_path: str = ""
    evidence_dir: str = ""              # empty = no evidence ledger

    model_config = SettingsConfigDict(env_prefix="LOGARCHIVER_", env_file=".env", extra="ignore")

    @property
    def resolved_host(self) -> str:
        return (self.host_identifier or socket.gethostname()).strip() or "localhost"

    @property
    def resolved_lock_dir(self) -> str:
        return self.lock_dir or tempfile.gettempdir()


settings = Settings()
