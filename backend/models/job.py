"""
Search job aggregate.

A SearchJob is the in-memory state of one pipeline execution. The
orchestrator mutates it through the methods below and persists it
explicitly through the JobStore; nothing here touches storage.
"""

import uuid
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

JobStatus = Literal["pending", "running", "paused", "completed", "failed"]
Phase = Literal["profile-analysis", "company-generation", "company-processing", "completed"]
ActivityType = Literal["company-found", "company-processed", "contact-found", "error", "milestone"]

MAX_ACTIVITY = 50

# Bucket midpoints used for the running averages
MATCH_WEIGHTS = {"high_matches": 85, "medium_matches": 70, "low_matches": 50}
WLB_WEIGHTS = {"excellent_wlb": 8.5, "good_wlb": 6.5, "average_wlb": 4.5, "poor_wlb": 2.5}


def utcnow() -> datetime:
    return datetime.now(UTC)


class SearchParameters(BaseModel):
    location: str = "Boston, MA"
    max_results: int = 50


class JobProgress(BaseModel):
    current_phase: Phase = "profile-analysis"
    percentage: int = 0
    current_step: str = "Initializing search..."
    current: int = 0
    total: int = 0


class LiveStats(BaseModel):
    """Flat counters shown on the live dashboard."""

    # Discovery
    companies_generated: int = 0
    companies_processed: int = 0
    companies_saved: int = 0
    companies_skipped: int = 0

    # Region breakdown
    boston_companies: int = 0
    providence_companies: int = 0
    nationwide_companies: int = 0

    # Contacts
    total_hr_contacts: int = 0
    verified_contacts: int = 0
    apollo_contacts: int = 0
    hunter_contacts: int = 0

    # Match quality
    high_matches: int = 0
    medium_matches: int = 0
    low_matches: int = 0
    avg_match_score: int = 0

    # Work-life balance
    excellent_wlb: int = 0
    good_wlb: int = 0
    average_wlb: int = 0
    poor_wlb: int = 0
    avg_wlb_score: float = 0.0

    # Throughput
    current_company: str = ""
    companies_per_minute: int = 0
    estimated_time_remaining: str = ""

    # Errors
    processing_errors: int = 0
    api_errors: int = 0


class Activity(BaseModel):
    timestamp: datetime = Field(default_factory=utcnow)
    type: ActivityType
    message: str
    company_name: str | None = None
    data: dict[str, Any] | None = None


class JobResults(BaseModel):
    companies_found: int = 0
    contacts_found: int = 0
    expanded_nationwide: bool = False
    errors: list[str] = Field(default_factory=list)


class OracleUsage(BaseModel):
    calls: int = 0
    cost: float = 0.0
    credits_used: int = 0


class ApiUsage(BaseModel):
    generative: OracleUsage = Field(default_factory=OracleUsage)
    apollo: OracleUsage = Field(default_factory=OracleUsage)
    hunter: OracleUsage = Field(default_factory=OracleUsage)


class Performance(BaseModel):
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: float | None = None  # seconds
    average_company_processing_time: float = 0.0  # seconds


class SearchJob(BaseModel):
    """Persistent state of one search execution."""

    job_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    status: JobStatus = "pending"
    parameters: SearchParameters = Field(default_factory=SearchParameters)
    progress: JobProgress = Field(default_factory=JobProgress)
    live_stats: LiveStats = Field(default_factory=LiveStats)
    recent_activity: list[Activity] = Field(default_factory=list)
    results: JobResults = Field(default_factory=JobResults)
    api_usage: ApiUsage = Field(default_factory=ApiUsage)
    performance: Performance = Field(default_factory=Performance)
    ai_analysis: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in ("completed", "failed")

    def add_activity(
        self,
        type: ActivityType,
        message: str,
        company_name: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> Activity:
        """Prepend an activity entry, evicting the oldest beyond MAX_ACTIVITY."""
        entry = Activity(type=type, message=message, company_name=company_name, data=data)
        self.recent_activity.insert(0, entry)
        del self.recent_activity[MAX_ACTIVITY:]
        return entry

    def increment_stat(self, name: str, amount: int = 1, now: datetime | None = None) -> None:
        """Increment a live counter and recompute the derived stats."""
        if name not in LiveStats.model_fields:
            raise KeyError(f"Unknown stat: {name}")
        setattr(self.live_stats, name, getattr(self.live_stats, name) + amount)
        self.recompute_stats(now)

    def recompute_stats(self, now: datetime | None = None) -> None:
        stats = self.live_stats

        total_matches = sum(getattr(stats, key) for key in MATCH_WEIGHTS)
        if total_matches > 0:
            weighted = sum(getattr(stats, key) * weight for key, weight in MATCH_WEIGHTS.items())
            stats.avg_match_score = round(weighted / total_matches)

        total_wlb = sum(getattr(stats, key) for key in WLB_WEIGHTS)
        if total_wlb > 0:
            weighted = sum(getattr(stats, key) * weight for key, weight in WLB_WEIGHTS.items())
            stats.avg_wlb_score = round(weighted / total_wlb, 1)

        if self.performance.start_time is None:
            return
        elapsed_minutes = ((now or utcnow()) - self.performance.start_time).total_seconds() / 60
        if elapsed_minutes <= 0:
            return
        stats.companies_per_minute = round(stats.companies_processed / elapsed_minutes)
        if stats.companies_per_minute > 0:
            remaining = max(0, self.progress.total - stats.companies_processed)
            minutes_left = round(remaining / stats.companies_per_minute)
            stats.estimated_time_remaining = (
                f"{minutes_left} minutes" if minutes_left > 1 else "Less than 1 minute"
            )

    def update_progress(self, phase: Phase, percentage: float, step: str) -> None:
        """Move progress forward. Percentage never decreases within a phase."""
        value = max(0, min(100, int(percentage)))
        if phase == self.progress.current_phase:
            value = max(value, self.progress.percentage)
        self.progress.current_phase = phase
        self.progress.percentage = value
        self.progress.current_step = step

    def record_processing_time(self, seconds: float) -> None:
        """Fold one company's processing time into the running mean."""
        done = self.live_stats.companies_saved
        current = self.performance.average_company_processing_time
        self.performance.average_company_processing_time = (current * done + seconds) / (done + 1)

    def charge(self, oracle: Literal["generative", "apollo", "hunter"], cost: float = 0.0, credits: int = 0) -> None:
        usage: OracleUsage = getattr(self.api_usage, oracle)
        usage.calls += 1
        usage.cost = round(usage.cost + cost, 4)
        usage.credits_used += credits

    def start(self, now: datetime | None = None) -> None:
        self.status = "running"
        self.performance.start_time = now or utcnow()

    def complete(self, now: datetime | None = None) -> None:
        end = now or utcnow()
        self.status = "completed"
        self.performance.end_time = end
        if self.performance.start_time is not None:
            self.performance.duration = (end - self.performance.start_time).total_seconds()
        self.update_progress("completed", 100, "Search completed successfully!")

    def fail(self, message: str, now: datetime | None = None) -> None:
        self.status = "failed"
        self.performance.end_time = now or utcnow()
        # Fatal message goes first so it is what the reporter surfaces
        self.results.errors.insert(0, message)
        self.progress.current_step = f"Search failed: {message}"
        self.add_activity("error", f"Search failed: {message}")

    def reset_for_retry(self, attempt: int) -> None:
        """Clear per-run state before a retried attempt. Errors and usage are kept."""
        self.status = "pending"
        self.progress = JobProgress()
        self.live_stats = LiveStats()
        self.results = JobResults(errors=self.results.errors)
        self.performance = Performance()
        self.add_activity("milestone", f"Retrying search (attempt {attempt})")

    def total_api_calls(self) -> int:
        usage = self.api_usage
        return usage.generative.calls + usage.apollo.calls + usage.hunter.calls
