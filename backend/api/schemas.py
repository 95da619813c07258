"""API request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from backend.models.company import CompanyRecord, EmailEntry, HRContact
from backend.models.profile import UserProfile


# Search schemas
class StartSearchRequest(BaseModel):
    profile: UserProfile | None = Field(default=None, description="Uses the saved profile when omitted")
    location: str = "Boston, MA"
    max_results: int | None = Field(default=None, ge=1, le=500)


class StartSearchResponse(BaseModel):
    success: bool = True
    job_id: str
    status: str = "pending"
    mode: str
    message: str = "AI-powered search started with real-time tracking"


class PauseResponse(BaseModel):
    success: bool = True
    job_id: str | None
    message: str


# Company schemas
class CompanyResponse(CompanyRecord):
    match_grade: str = "F"
    contact_count: int = 0
    primary_hr_contact: HRContact | None = None

    @classmethod
    def from_record(cls, company: CompanyRecord) -> "CompanyResponse":
        return cls(
            **company.model_dump(),
            match_grade=company.match_grade,
            contact_count=company.contact_count,
            primary_hr_contact=company.primary_hr_contact,
        )


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class CompanyListResponse(BaseModel):
    companies: list[CompanyResponse]
    pagination: Pagination


class StatusUpdate(BaseModel):
    status: str


class NoteCreate(BaseModel):
    content: str


class BulkUpdateRequest(BaseModel):
    company_ids: list[str] = Field(min_length=1)
    status: str | None = None
    note: str | None = None


class BulkUpdateResponse(BaseModel):
    success: bool = True
    updated: int


# Email schemas
class GeneratedEmailResponse(BaseModel):
    success: bool = True
    company_id: str
    company_name: str
    index: int
    email: EmailEntry


class BulkGenerateRequest(BaseModel):
    company_ids: list[str] = Field(min_length=1, max_length=20)


class EmailHistoryItem(BaseModel):
    company_id: str
    company_name: str
    index: int
    generated_at: datetime
    recipient_email: str
    recipient_name: str
    subject: str
    content: str
    sent: bool
    sent_at: datetime | None


class EmailHistoryResponse(BaseModel):
    emails: list[EmailHistoryItem]
    pagination: Pagination


# Profile upload
class ResumeUploadResponse(BaseModel):
    success: bool = True
    characters: int
    preview: str
    message: str = "Resume extracted successfully"


def pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, pages=(total + limit - 1) // limit if limit else 0)
