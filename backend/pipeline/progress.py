"""
Read-only progress snapshots for UI polling.

Elapsed time and throughput are derived at read time and never stored.
"""

import copy
from datetime import UTC, datetime
from typing import Any

from backend.db.stores import JobStore
from backend.models.job import SearchJob

RECENT_ACTIVITY_LIMIT = 10

IDLE_SNAPSHOT: dict[str, Any] = {
    "job_id": None,
    "status": "idle",
    "is_running": False,
    "progress": 0,
    "current_step": "No search in progress",
    "phase": None,
    "total_found": 0,
    "completed": True,
    "failed": False,
    "error": None,
    "live_stats": None,
    "recent_activity": [],
    "performance_metrics": {},
    "api_usage": {},
    "ai_analysis": "",
    "expanded_nationwide": False,
}


def format_duration(seconds: float) -> str:
    """Human duration: "42s" under a minute, otherwise "3m 5s"."""
    seconds = max(0, round(seconds))
    if seconds < 60:
        return f"{seconds}s"
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}m {secs}s"


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def performance_metrics(job: SearchJob, now: datetime | None = None) -> dict[str, Any]:
    start = job.performance.start_time
    if start is None:
        return {}
    end = job.performance.end_time if job.is_terminal and job.performance.end_time else now or datetime.now(UTC)
    elapsed = max(0.0, (_as_utc(end) - _as_utc(start)).total_seconds())
    processed = job.live_stats.companies_processed
    return {
        "elapsed_time": format_duration(elapsed),
        "elapsed_seconds": round(elapsed, 1),
        "companies_per_second": round(processed / elapsed, 2) if processed and elapsed > 0 else 0,
    }


def build_snapshot(job: SearchJob | None, now: datetime | None = None) -> dict[str, Any]:
    """Snapshot of a job, or the idle snapshot when there is none."""
    if job is None:
        return copy.deepcopy(IDLE_SNAPSHOT)

    return {
        "job_id": job.job_id,
        "status": job.status,
        "is_running": job.status == "running",
        "progress": job.progress.percentage,
        "current_step": job.progress.current_step or "Initializing...",
        "phase": job.progress.current_phase,
        "total_found": job.results.companies_found,
        "completed": job.status == "completed",
        "failed": job.status == "failed",
        "error": job.results.errors[0] if job.status == "failed" and job.results.errors else None,
        "live_stats": job.live_stats.model_dump(mode="json"),
        "recent_activity": [a.model_dump(mode="json") for a in job.recent_activity[:RECENT_ACTIVITY_LIMIT]],
        "performance_metrics": performance_metrics(job, now),
        "api_usage": job.api_usage.model_dump(mode="json"),
        "ai_analysis": job.ai_analysis,
        "expanded_nationwide": job.results.expanded_nationwide,
    }


class ProgressReporter:
    """Reports on the most recently created job."""

    def __init__(self, jobs: JobStore):
        self.jobs = jobs

    def snapshot(self, now: datetime | None = None) -> dict[str, Any]:
        return build_snapshot(self.jobs.latest(), now)
