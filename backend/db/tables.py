"""Database table models."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.db.base import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class SearchJobRow(Base):
    """One search execution with its live progress."""

    __tablename__ = "search_jobs"

    job_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending/running/paused/completed/failed
    parameters: Mapped[dict] = mapped_column(JSON, default=dict)
    progress: Mapped[dict] = mapped_column(JSON, default=dict)
    live_stats: Mapped[dict] = mapped_column(JSON, default=dict)
    recent_activity: Mapped[list] = mapped_column(JSON, default=list)
    results: Mapped[dict] = mapped_column(JSON, default=dict)
    api_usage: Mapped[dict] = mapped_column(JSON, default=dict)
    performance: Mapped[dict] = mapped_column(JSON, default=dict)
    ai_analysis: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC), index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))


class CompanyRow(Base):
    """A discovered company. Names are unique across the catalog."""

    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    domain: Mapped[str | None] = mapped_column(String(255), default=None)
    website: Mapped[str | None] = mapped_column(String(500), default=None)
    location: Mapped[str | None] = mapped_column(String(255), default=None)
    industry: Mapped[str | None] = mapped_column(String(100), default=None)
    size: Mapped[str] = mapped_column(String(20), default="unknown")
    employee_count: Mapped[int | None] = mapped_column(Integer, default=None)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    is_local_priority: Mapped[bool] = mapped_column(Boolean, default=False)
    hr_contacts: Mapped[list] = mapped_column(JSON, default=list)
    work_life_balance: Mapped[dict | None] = mapped_column(JSON, default=None)
    ai_match_score: Mapped[int] = mapped_column(Integer, default=0)
    ai_analysis: Mapped[str] = mapped_column(Text, default="")
    match_factors: Mapped[list] = mapped_column(JSON, default=list)
    highlights: Mapped[list] = mapped_column(JSON, default=list)
    concerns: Mapped[list] = mapped_column(JSON, default=list)
    status: Mapped[str] = mapped_column(String(20), default="not-contacted")
    notes: Mapped[list] = mapped_column(JSON, default=list)
    email_history: Mapped[list] = mapped_column(JSON, default=list)
    api_sources: Mapped[list] = mapped_column(JSON, default=list)
    data_quality: Mapped[int] = mapped_column(Integer, default=0)
    search_job_id: Mapped[str | None] = mapped_column(String(36), default=None)  # no FK, linkage only
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))


class UserProfileRow(Base):
    """The single user's profile and latest AI analysis."""

    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True, default="default")
    data: Mapped[dict] = mapped_column(JSON, default=dict)
    ai_analysis: Mapped[dict | None] = mapped_column(JSON, default=None)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
