"""Progress snapshots."""

from datetime import UTC, datetime, timedelta

from backend.models.job import SearchJob
from backend.pipeline.progress import (
    IDLE_SNAPSHOT,
    RECENT_ACTIVITY_LIMIT,
    ProgressReporter,
    build_snapshot,
    format_duration,
)


def test_idle_snapshot_without_jobs(jobs):
    snapshot = ProgressReporter(jobs).snapshot()

    assert snapshot == IDLE_SNAPSHOT
    assert snapshot["status"] == "idle"
    assert snapshot["completed"] is True


def test_idle_snapshots_do_not_share_state():
    first = build_snapshot(None)
    first["recent_activity"].append({"message": "stale"})
    first["api_usage"]["apollo"] = {"calls": 1}

    second = build_snapshot(None)

    assert second["recent_activity"] == []
    assert second["api_usage"] == {}
    assert IDLE_SNAPSHOT["recent_activity"] == []


def test_snapshot_of_latest_job(jobs):
    start = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
    job = SearchJob()
    job.start(now=start)
    job.update_progress("company-processing", 72, "Processed 6 of 10 companies")
    job.live_stats.companies_processed = 6
    for i in range(15):
        job.add_activity("company-found", f"Analyzing {i}")
    jobs.create(job)

    snapshot = ProgressReporter(jobs).snapshot(now=start + timedelta(seconds=60))

    assert snapshot["job_id"] == job.job_id
    assert snapshot["is_running"] is True
    assert snapshot["progress"] == 72
    assert snapshot["phase"] == "company-processing"
    assert len(snapshot["recent_activity"]) == RECENT_ACTIVITY_LIMIT
    assert snapshot["performance_metrics"]["elapsed_time"] == "1m 0s"
    assert snapshot["performance_metrics"]["companies_per_second"] == 0.1


def test_snapshot_is_read_only(jobs):
    job = SearchJob()
    job.start()
    jobs.create(job)
    reporter = ProgressReporter(jobs)
    now = datetime.now(UTC)
    before = jobs.get(job.job_id).updated_at

    first = reporter.snapshot(now=now)
    second = reporter.snapshot(now=now)

    assert first == second
    assert jobs.get(job.job_id).updated_at == before


def test_failed_job_surfaces_fatal_error():
    job = SearchJob()
    job.start()
    job.results.errors.append("Failed to process X: boom")
    job.fail("deepseek: timeout")

    snapshot = build_snapshot(job)

    assert snapshot["failed"] is True
    assert snapshot["error"] == "deepseek: timeout"


def test_terminal_job_elapsed_uses_end_time():
    start = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
    job = SearchJob()
    job.start(now=start)
    job.complete(now=start + timedelta(seconds=42))

    snapshot = build_snapshot(job, now=start + timedelta(hours=5))

    assert snapshot["performance_metrics"]["elapsed_time"] == "42s"
    assert snapshot["progress"] == 100


def test_format_duration():
    assert format_duration(0) == "0s"
    assert format_duration(59.4) == "59s"
    assert format_duration(125) == "2m 5s"
