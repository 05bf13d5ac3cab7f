"""
Rotation jobs.

A job is a set of roots sharing one include/exclude filter and one aging
policy. Jobs come from the command line or from a YAML file:

    jobs:
      - name: nginx
        paths: [/var/log/nginx]
        include: "*.log"
        compress_after_days: 5
        retain_months: 6
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .config import settings

logger = logging.getLogger("logarchiver.jobs")


class JobsFileError(Exception):
    pass


class RotationJob(BaseModel):
    name: str = "default"
    paths: list[str] = Field(default_factory=list)
    include: str = Field(default_factory=lambda: settings.include)
    exclude: Optional[str] = Field(default_factory=lambda: settings.exclude)
    compress_after_days: int = Field(default_factory=lambda: settings.compress_after_days, ge=0)
    retain_months: Optional[int] = Field(default_factory=lambda: settings.retain_months)

    @field_validator("retain_months")
    @classmethod
    def _non_positive_means_forever(cls, v: Optional[int]) -> Optional[int]:
        if v is None or v <= 0:
            return None
        return v


def job_from_args(paths: list[str], include: str | None = None, exclude: str | None = None,
                  days: int | None = None, months: int | None = None) -> RotationJob:
    data: dict = {"name": "cli", "paths": list(paths)}
    if include is not None:
        data["include"] = include
    if exclude is not None:
        data["exclude"] = exclude
    if days is not None:
        data["compress_after_days"] = days
    if months is not None:
        data["retain_months"] = months
    return RotationJob(**data)


def load_jobs(path) -> list[RotationJob]:
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise JobsFileError(f"cannot read jobs file {p}: {e}") from e
    except yaml.YAMLError as e:
        raise JobsFileError(f"jobs file parse error {p}: {e}") from e
    if not isinstance(data, dict) or not isinstance(data.get("jobs", []), list):
        raise JobsFileError(f"jobs file {p} must contain a 'jobs' list")

    jobs: list[RotationJob] = []
    for i, entry in enumerate(data.get("jobs", [])):
        try:
            job = RotationJob(**(entry or {}))
        except (TypeError, ValidationError) as e:
            raise JobsFileError(f"invalid job #{i} in {p}: {e}") from e
        if not job.paths:
            raise JobsFileError(f"job '{job.name}' in {p} has no paths")
        jobs.append(job)
    logger.info("loaded %d rotation job(s) from %s", len(jobs), p)
    return jobs
