"""Company catalog models."""

import uuid
from datetime import UTC, datetime
from typing import Literal, get_args
from urllib.parse import urlparse

from pydantic import BaseModel, Field

CompanySize = Literal["startup", "small", "medium", "large", "unknown"]
CompanyStatus = Literal["not-contacted", "contacted", "responded", "interview", "rejected", "hired"]
ContactSource = Literal["apollo", "hunter", "manual", "ai-generated"]

COMPANY_STATUSES: tuple[str, ...] = get_args(CompanyStatus)

# Weights summing to 100
QUALITY_WEIGHTS = {
    "name": 20,
    "website": 15,
    "location": 10,
    "industry": 10,
    "description": 10,
    "hr_contacts": 25,
    "work_life_balance": 10,
}


def _now() -> datetime:
    return datetime.now(UTC)


def size_from_employee_count(count: int | None) -> CompanySize:
    """Bucket a headcount into a size category."""
    if not count:
        return "unknown"
    if count <= 50:
        return "startup"
    if count <= 200:
        return "small"
    if count <= 1000:
        return "medium"
    return "large"


class HRContact(BaseModel):
    name: str = ""
    email: str = ""
    title: str = ""
    confidence: int = Field(default=0, ge=0, le=100)
    verified: bool = False
    source: ContactSource = "manual"
    linkedin_url: str | None = None


class WorkLifeBalance(BaseModel):
    score: float = Field(ge=1, le=10)
    analysis: str = ""
    sources: list[str] = Field(default_factory=list)
    positives: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=_now)


class Note(BaseModel):
    content: str
    created_at: datetime = Field(default_factory=_now)


class EmailEntry(BaseModel):
    generated_at: datetime = Field(default_factory=_now)
    recipient_email: str
    recipient_name: str = ""
    subject: str
    content: str = ""
    sent: bool = False
    sent_at: datetime | None = None


class CompanyRecord(BaseModel):
    """One discovered company, unique by name."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    domain: str | None = None
    website: str | None = None
    location: str | None = None
    industry: str | None = None
    size: CompanySize = "unknown"
    employee_count: int | None = None
    description: str | None = None
    is_local_priority: bool = False

    hr_contacts: list[HRContact] = Field(default_factory=list)
    work_life_balance: WorkLifeBalance | None = None

    ai_match_score: int = Field(default=0, ge=0, le=100)
    ai_analysis: str = ""
    match_factors: list[str] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)

    status: CompanyStatus = "not-contacted"
    notes: list[Note] = Field(default_factory=list)
    email_history: list[EmailEntry] = Field(default_factory=list)

    api_sources: list[str] = Field(default_factory=list)
    data_quality: int = 0
    search_job_id: str | None = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    def compute_data_quality(self) -> int:
        return sum(weight for field, weight in QUALITY_WEIGHTS.items() if getattr(self, field))

    def normalize(self) -> "CompanyRecord":
        """Apply save-time normalization: URL scheme, domain, data quality."""
        if self.website and not self.website.startswith(("http://", "https://")):
            self.website = f"https://{self.website}"
        if self.website and not self.domain:
            host = urlparse(self.website).hostname or ""
            self.domain = host.removeprefix("www.") or None
        self.data_quality = self.compute_data_quality()
        return self

    @property
    def primary_hr_contact(self) -> HRContact | None:
        for contact in self.hr_contacts:
            if contact.verified:
                return contact
        return self.hr_contacts[0] if self.hr_contacts else None

    @property
    def contact_count(self) -> int:
        return len(self.hr_contacts)

    @property
    def match_grade(self) -> str:
        score = self.ai_match_score
        if score >= 90:
            return "A"
        if score >= 80:
            return "B"
        if score >= 70:
            return "C"
        if score >= 60:
            return "D"
        return "F"
