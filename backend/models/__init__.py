"""Domain models for search jobs, companies and the user profile."""

from backend.models.company import (
    COMPANY_STATUSES,
    CompanyRecord,
    EmailEntry,
    HRContact,
    Note,
    WorkLifeBalance,
    size_from_employee_count,
)
from backend.models.job import Activity, LiveStats, SearchJob, SearchParameters
from backend.models.profile import PersonalInfo, Preferences, ProfileAnalysis, UserProfile

__all__ = [
    "COMPANY_STATUSES",
    "CompanyRecord",
    "EmailEntry",
    "HRContact",
    "Note",
    "WorkLifeBalance",
    "size_from_employee_count",
    "Activity",
    "LiveStats",
    "SearchJob",
    "SearchParameters",
    "PersonalInfo",
    "Preferences",
    "ProfileAnalysis",
    "UserProfile",
]
