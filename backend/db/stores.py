"""
Repositories for search jobs, companies and the user profile.

Stores take a session factory and open one short session per call, so they
can be shared between request handlers and background pipeline runs. All
calls are synchronous and complete without awaiting anything.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from backend.db.tables import CompanyRow, SearchJobRow, UserProfileRow
from backend.models.company import COMPANY_STATUSES, CompanyRecord, EmailEntry, Note
from backend.models.job import SearchJob
from backend.models.profile import ProfileAnalysis, UserProfile

logger = logging.getLogger(__name__)

JOB_JSON_FIELDS = (
    "parameters",
    "progress",
    "live_stats",
    "recent_activity",
    "results",
    "api_usage",
    "performance",
)

SORT_KEYS = ("match", "wlb", "name", "recent", "updated")


class DuplicateCompanyError(Exception):
    """A company with this name is already in the catalog."""

    def __init__(self, name: str):
        super().__init__(f"Company already exists: {name}")
        self.name = name


class InvalidStatusError(ValueError):
    """Status is not one of COMPANY_STATUSES."""

    def __init__(self, status: str):
        super().__init__(f"Invalid status: {status}. Must be one of: {', '.join(COMPANY_STATUSES)}")
        self.status = status


def _now() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Search jobs
# ---------------------------------------------------------------------------


class JobStore:
    """Persistence for SearchJob aggregates."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _to_model(self, row: SearchJobRow) -> SearchJob:
        data: dict[str, Any] = {field: getattr(row, field) for field in JOB_JSON_FIELDS}
        data.update(
            job_id=row.job_id,
            status=row.status,
            ai_analysis=row.ai_analysis or "",
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
        return SearchJob.model_validate(data)

    def _write(self, row: SearchJobRow, job: SearchJob) -> None:
        dumped = job.model_dump(mode="json", include=set(JOB_JSON_FIELDS))
        for field in JOB_JSON_FIELDS:
            setattr(row, field, dumped[field])
        row.status = job.status
        row.ai_analysis = job.ai_analysis
        row.updated_at = job.updated_at

    def create(self, job: SearchJob) -> SearchJob:
        with self._session_factory() as db:
            row = SearchJobRow(job_id=job.job_id, created_at=job.created_at)
            self._write(row, job)
            db.add(row)
            db.commit()
        return job

    def get(self, job_id: str) -> SearchJob | None:
        with self._session_factory() as db:
            row = db.get(SearchJobRow, job_id)
            return self._to_model(row) if row else None

    def get_status(self, job_id: str) -> str | None:
        with self._session_factory() as db:
            return db.scalar(select(SearchJobRow.status).where(SearchJobRow.job_id == job_id))

    def latest(self) -> SearchJob | None:
        """Most recently created job, or None."""
        with self._session_factory() as db:
            row = db.scalars(select(SearchJobRow).order_by(SearchJobRow.created_at.desc()).limit(1)).first()
            return self._to_model(row) if row else None

    def save(self, job: SearchJob) -> SearchJob:
        """Flush the whole aggregate.

        A stored ``paused`` status is never overwritten by ``running``; the
        in-memory job adopts it instead so the caller can notice.
        """
        job.updated_at = _now()
        with self._session_factory() as db:
            row = db.get(SearchJobRow, job.job_id)
            if row is None:
                row = SearchJobRow(job_id=job.job_id, created_at=job.created_at)
                db.add(row)
            elif row.status == "paused" and job.status == "running":
                job.status = "paused"
            self._write(row, job)
            db.commit()
        return job

    def pause_latest_running(self) -> SearchJob | None:
        """Mark the most recent running job as paused."""
        with self._session_factory() as db:
            row = db.scalars(
                select(SearchJobRow)
                .where(SearchJobRow.status == "running")
                .order_by(SearchJobRow.created_at.desc())
                .limit(1)
            ).first()
            if row is None:
                return None
            job = self._to_model(row)
            job.status = "paused"
            job.add_activity("milestone", "Search paused by user")
            job.updated_at = _now()
            self._write(row, job)
            db.commit()
        logger.info(f"[{job.job_id}] Paused by user")
        return job


# ---------------------------------------------------------------------------
# Companies
# ---------------------------------------------------------------------------


@dataclass
class CompanyFilters:
    location: str | None = None
    industry: str | None = None
    size: str | None = None
    status: str | None = None
    min_match_score: int | None = None
    min_wlb_score: float | None = None
    has_contacts: bool | None = None
    local_only: bool = False
    q: str | None = None


def _company_values(company: CompanyRecord) -> dict[str, Any]:
    values = company.model_dump(mode="json", exclude={"created_at", "updated_at"})
    values["created_at"] = company.created_at
    values["updated_at"] = company.updated_at
    return values


def _wlb_score(company: CompanyRecord) -> float:
    return company.work_life_balance.score if company.work_life_balance else 0.0


class CompanyStore:
    """Deduplicated company catalog."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _to_model(self, row: CompanyRow) -> CompanyRecord:
        return CompanyRecord.model_validate(row, from_attributes=True)

    def _load(self, db: Session, company_id: str) -> CompanyRow | None:
        return db.get(CompanyRow, company_id)

    def find_by_name(self, name: str) -> CompanyRecord | None:
        with self._session_factory() as db:
            row = db.scalars(select(CompanyRow).where(CompanyRow.name == name)).first()
            return self._to_model(row) if row else None

    def insert(self, company: CompanyRecord) -> CompanyRecord:
        """Insert a new company; raises DuplicateCompanyError if the name is taken."""
        company.normalize()
        with self._session_factory() as db:
            db.add(CompanyRow(**_company_values(company)))
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                raise DuplicateCompanyError(company.name) from e
        return company

    def get(self, company_id: str) -> CompanyRecord | None:
        with self._session_factory() as db:
            row = self._load(db, company_id)
            return self._to_model(row) if row else None

    def search(
        self,
        filters: CompanyFilters | None = None,
        sort_by: str = "match",
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[CompanyRecord], int]:
        """Filter, sort and paginate the catalog. Returns (page_items, total)."""
        filters = filters or CompanyFilters()
        stmt = select(CompanyRow)
        if filters.location:
            stmt = stmt.where(CompanyRow.location.ilike(f"%{filters.location}%"))
        if filters.industry:
            stmt = stmt.where(CompanyRow.industry == filters.industry)
        if filters.size:
            stmt = stmt.where(CompanyRow.size == filters.size)
        if filters.status:
            stmt = stmt.where(CompanyRow.status == filters.status)
        if filters.min_match_score is not None:
            stmt = stmt.where(CompanyRow.ai_match_score >= filters.min_match_score)
        if filters.local_only:
            stmt = stmt.where(CompanyRow.is_local_priority.is_(True))
        if filters.q:
            pattern = f"%{filters.q}%"
            stmt = stmt.where(
                or_(
                    CompanyRow.name.ilike(pattern),
                    CompanyRow.description.ilike(pattern),
                    CompanyRow.industry.ilike(pattern),
                    CompanyRow.location.ilike(pattern),
                )
            )

        with self._session_factory() as db:
            companies = [self._to_model(row) for row in db.scalars(stmt)]

        # JSON-backed filters are applied in Python
        if filters.min_wlb_score is not None:
            companies = [c for c in companies if _wlb_score(c) >= filters.min_wlb_score]
        if filters.has_contacts is not None:
            companies = [c for c in companies if bool(c.hr_contacts) == filters.has_contacts]

        if sort_by == "wlb":
            companies.sort(key=_wlb_score, reverse=True)
        elif sort_by == "name":
            companies.sort(key=lambda c: c.name.lower())
        elif sort_by == "recent":
            companies.sort(key=lambda c: c.created_at, reverse=True)
        elif sort_by == "updated":
            companies.sort(key=lambda c: c.updated_at, reverse=True)
        else:
            companies.sort(key=lambda c: (c.ai_match_score, _wlb_score(c)), reverse=True)

        total = len(companies)
        start = (max(page, 1) - 1) * limit
        return companies[start : start + limit], total

    def _update(self, company_id: str, mutate) -> CompanyRecord | None:
        with self._session_factory() as db:
            row = self._load(db, company_id)
            if row is None:
                return None
            company = self._to_model(row)
            mutate(company)
            company.updated_at = _now()
            company.normalize()
            for key, value in _company_values(company).items():
                setattr(row, key, value)
            db.commit()
        return company

    def update_status(self, company_id: str, status: str) -> CompanyRecord | None:
        if status not in COMPANY_STATUSES:
            raise InvalidStatusError(status)

        def mutate(company: CompanyRecord) -> None:
            company.status = status

        return self._update(company_id, mutate)

    def add_note(self, company_id: str, content: str) -> CompanyRecord | None:
        if not content or not content.strip():
            raise ValueError("Note content is required")
        return self._update(company_id, lambda c: c.notes.append(Note(content=content.strip())))

    def bulk_update(self, company_ids: list[str], status: str | None = None, note: str | None = None) -> int:
        """Apply the same patch to several companies. Returns how many matched."""
        if status is not None and status not in COMPANY_STATUSES:
            raise InvalidStatusError(status)

        def mutate(company: CompanyRecord) -> None:
            if status is not None:
                company.status = status
            if note:
                company.notes.append(Note(content=note))

        return sum(1 for company_id in company_ids if self._update(company_id, mutate) is not None)

    def append_email(self, company_id: str, entry: EmailEntry) -> CompanyRecord | None:
        return self._update(company_id, lambda c: c.email_history.append(entry))

    def mark_email_sent(self, company_id: str, index: int) -> CompanyRecord | None:
        """Flag one email in the history as sent. Raises IndexError for a bad index."""

        def mutate(company: CompanyRecord) -> None:
            if not 0 <= index < len(company.email_history):
                raise IndexError(f"No email at index {index}")
            entry = company.email_history[index]
            entry.sent = True
            entry.sent_at = _now()
            if company.status == "not-contacted":
                company.status = "contacted"

        return self._update(company_id, mutate)

    def email_history(self, page: int = 1, limit: int = 20) -> tuple[list[dict[str, Any]], int]:
        """All generated emails across companies, newest first."""
        with self._session_factory() as db:
            companies = [self._to_model(row) for row in db.scalars(select(CompanyRow))]

        emails = [
            {
                "company_id": company.id,
                "company_name": company.name,
                "index": index,
                **entry.model_dump(mode="json"),
                "_sort": entry.generated_at,
            }
            for company in companies
            for index, entry in enumerate(company.email_history)
        ]
        emails.sort(key=lambda e: e.pop("_sort"), reverse=True)
        start = (max(page, 1) - 1) * limit
        return emails[start : start + limit], len(emails)

    def delete(self, company_id: str) -> bool:
        with self._session_factory() as db:
            row = self._load(db, company_id)
            if row is None:
                return False
            db.delete(row)
            db.commit()
        return True

    def summary(self) -> dict[str, Any]:
        """Aggregate catalog statistics."""
        with self._session_factory() as db:
            companies = [self._to_model(row) for row in db.scalars(select(CompanyRow))]

        total = len(companies)
        wlb_scores = [c.work_life_balance.score for c in companies if c.work_life_balance]
        emails = [e for c in companies for e in c.email_history]
        return {
            "total_companies": total,
            "avg_match_score": round(sum(c.ai_match_score for c in companies) / total) if total else 0,
            "avg_wlb_score": round(sum(wlb_scores) / len(wlb_scores), 1) if wlb_scores else 0,
            "high_matches": sum(1 for c in companies if c.ai_match_score >= 80),
            "excellent_wlb": sum(1 for score in wlb_scores if score >= 8),
            "local_priority": sum(1 for c in companies if c.is_local_priority),
            "with_contacts": sum(1 for c in companies if c.hr_contacts),
            "total_contacts": sum(len(c.hr_contacts) for c in companies),
            "emails_generated": len(emails),
            "emails_sent": sum(1 for e in emails if e.sent),
            "status_breakdown": dict(Counter(c.status for c in companies)),
            "top_locations": Counter(c.location for c in companies if c.location).most_common(5),
            "top_industries": Counter(c.industry for c in companies if c.industry).most_common(5),
        }


# ---------------------------------------------------------------------------
# User profile
# ---------------------------------------------------------------------------


class ProfileStore:
    """Single-tenant profile storage."""

    USER_ID = "default"

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self) -> UserProfile | None:
        with self._session_factory() as db:
            row = db.get(UserProfileRow, self.USER_ID)
            if row is None:
                return None
            profile = UserProfile.model_validate(row.data or {})
            if row.ai_analysis:
                profile.ai_analysis = ProfileAnalysis.model_validate(row.ai_analysis)
            return profile

    def save(self, profile: UserProfile) -> UserProfile:
        with self._session_factory() as db:
            row = db.get(UserProfileRow, self.USER_ID)
            if row is None:
                row = UserProfileRow(user_id=self.USER_ID)
                db.add(row)
            row.data = profile.model_dump(mode="json", exclude={"ai_analysis"})
            if profile.ai_analysis is not None:
                row.ai_analysis = profile.ai_analysis.model_dump(mode="json")
            row.updated_at = _now()
            db.commit()
        return profile

    def save_analysis(self, profile: UserProfile, analysis: ProfileAnalysis) -> UserProfile:
        """Upsert the profile together with a fresh analysis."""
        profile.ai_analysis = analysis
        return self.save(profile)
