"""Typed enrichment payloads returned by the contact-discovery providers."""

from typing import Literal

from pydantic import BaseModel, Field

from backend.models.company import CompanySize, HRContact


class CompanySuggestion(BaseModel):
    """One company proposed by the generative oracle."""

    name: str
    location: str | None = None
    industry: str | None = None
    size: CompanySize = "unknown"
    employee_count: int | None = None
    description: str | None = None
    website: str | None = None
    reasons: list[str] = Field(default_factory=list)


class ApolloPatch(BaseModel):
    """Company metadata and HR contacts from Apollo."""

    provider: Literal["apollo"] = "apollo"
    domain: str | None = None
    website: str | None = None
    location: str | None = None
    industry: str | None = None
    size: CompanySize | None = None
    employee_count: int | None = None
    description: str | None = None
    hr_contacts: list[HRContact] = Field(default_factory=list)
    apollo_id: str | None = None


class HunterPatch(BaseModel):
    """HR contacts found by domain on Hunter."""

    provider: Literal["hunter"] = "hunter"
    hr_contacts: list[HRContact] = Field(default_factory=list)


EnrichmentPatch = ApolloPatch | HunterPatch
