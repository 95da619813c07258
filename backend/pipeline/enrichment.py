"""
Merging provider enrichment into a company record.

Precedence: fields suggested by the generative oracle are defaults,
provider fields override them when present, and contact lists are
concatenated (duplicate emails across providers are kept).
"""

from backend.models.company import CompanyRecord
from backend.models.enrichment import ApolloPatch, CompanySuggestion, EnrichmentPatch, HunterPatch
from backend.pipeline.regions import is_local_priority

APOLLO_OVERRIDES = ("domain", "website", "location", "industry", "size", "employee_count", "description")


def company_from_suggestion(suggestion: CompanySuggestion, search_job_id: str | None = None) -> CompanyRecord:
    """Seed a company record from a generative suggestion."""
    company = CompanyRecord(
        name=suggestion.name,
        website=suggestion.website,
        location=suggestion.location,
        industry=suggestion.industry,
        size=suggestion.size,
        employee_count=suggestion.employee_count,
        description=suggestion.description,
        is_local_priority=is_local_priority(suggestion.location),
        api_sources=["ai-generated"],
        search_job_id=search_job_id,
    )
    return company.normalize()


def apply_patch(company: CompanyRecord, patch: EnrichmentPatch) -> CompanyRecord:
    """Fold one provider patch into the company in place."""
    if isinstance(patch, ApolloPatch):
        for field in APOLLO_OVERRIDES:
            value = getattr(patch, field)
            if value is not None:
                setattr(company, field, value)
    elif not isinstance(patch, HunterPatch):
        raise TypeError(f"Unsupported enrichment patch: {type(patch).__name__}")

    company.hr_contacts.extend(patch.hr_contacts)
    if patch.provider not in company.api_sources:
        company.api_sources.append(patch.provider)
    return company.normalize()


def merge_enrichment(suggestion: CompanySuggestion, *patches: EnrichmentPatch | None) -> CompanyRecord:
    """Build a company from a suggestion plus any number of provider patches."""
    company = company_from_suggestion(suggestion)
    for patch in patches:
        if patch is not None:
            apply_patch(company, patch)
    return company
