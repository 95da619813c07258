"""Outreach email endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from backend.api.deps import Services, get_services
from backend.api.schemas import (
    BulkGenerateRequest,
    EmailHistoryResponse,
    GeneratedEmailResponse,
    pagination,
)
from backend.models.profile import UserProfile
from backend.services.outreach import generate_email

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_profile(services: Services) -> UserProfile:
    profile = services.profiles.get()
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found. Save your profile first.")
    return profile


async def _generate_for(services: Services, profile: UserProfile, company_id: str) -> GeneratedEmailResponse | None:
    company = services.companies.get(company_id)
    if company is None:
        return None
    entry = await generate_email(services.generative, profile, company)
    updated = services.companies.append_email(company_id, entry)
    if updated is None:
        return None
    logger.info(f"Generated email for {company.name} to {entry.recipient_email or 'unknown recipient'}")
    return GeneratedEmailResponse(
        company_id=company_id,
        company_name=company.name,
        index=len(updated.email_history) - 1,
        email=entry,
    )


@router.post("/generate/{company_id}", response_model=GeneratedEmailResponse)
async def generate(company_id: str, services: Services = Depends(get_services)):
    """Draft and store an outreach email for one company."""
    profile = _require_profile(services)
    result = await _generate_for(services, profile, company_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return result


@router.post("/bulk-generate")
async def bulk_generate(data: BulkGenerateRequest, services: Services = Depends(get_services)):
    """Draft emails for several companies; unknown ids are reported, not fatal."""
    profile = _require_profile(services)
    generated = []
    missing = []
    for company_id in data.company_ids:
        result = await _generate_for(services, profile, company_id)
        if result is None:
            missing.append(company_id)
        else:
            generated.append(result)
    return {"success": True, "generated": generated, "missing": missing}


@router.get("/history", response_model=EmailHistoryResponse)
def history(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    services: Services = Depends(get_services),
):
    emails, total = services.companies.email_history(page=page, limit=limit)
    return EmailHistoryResponse(emails=emails, pagination=pagination(page, limit, total))


@router.put("/history/{company_id}/{index}/sent")
def mark_sent(company_id: str, index: int, services: Services = Depends(get_services)):
    """Mark a stored email as sent."""
    try:
        company = services.companies.mark_email_sent(company_id, index)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return {"success": True, "status": company.status, "email": company.email_history[index]}


@router.get("/stats")
def stats(services: Services = Depends(get_services)):
    summary = services.companies.summary()
    generated = summary["emails_generated"]
    sent = summary["emails_sent"]
    return {
        "emails_generated": generated,
        "emails_sent": sent,
        "pending": generated - sent,
        "companies_contacted": summary["status_breakdown"].get("contacted", 0),
    }
