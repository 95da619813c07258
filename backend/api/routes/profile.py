"""Profile endpoints."""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from backend.api.deps import Services, get_services
from backend.api.schemas import ResumeUploadResponse
from backend.models.profile import ProfileAnalysis, UserProfile
from backend.tools.base import OracleError
from backend.tools.pdf_parser import extract_resume_text

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB


def _require_profile(services: Services) -> UserProfile:
    profile = services.profiles.get()
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.get("", response_model=UserProfile)
def get_profile(services: Services = Depends(get_services)):
    """Get the saved profile."""
    return _require_profile(services)


@router.put("", response_model=UserProfile)
def save_profile(profile: UserProfile, services: Services = Depends(get_services)):
    """Replace the saved profile, keeping the previous analysis when none is sent."""
    if profile.ai_analysis is None:
        existing = services.profiles.get()
        if existing is not None:
            profile.ai_analysis = existing.ai_analysis
    return services.profiles.save(profile)


@router.post("/resume", response_model=ResumeUploadResponse)
async def upload_resume(
    file: UploadFile = File(...),
    services: Services = Depends(get_services),
):
    """Extract text from a PDF resume and store it on the profile."""
    if not file.filename or not file.filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")

    content = await file.read()
    if len(content) > MAX_FILE_SIZE:
        raise HTTPException(status_code=400, detail="File too large. Maximum size is 10MB")

    try:
        text = extract_resume_text(content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not text:
        raise HTTPException(status_code=400, detail="Could not extract text from PDF")

    profile = services.profiles.get() or UserProfile()
    profile.resume = text
    services.profiles.save(profile)
    logger.info(f"Stored resume text ({len(text)} chars) from {file.filename}")
    return ResumeUploadResponse(characters=len(text), preview=text[:500])


@router.post("/analyze", response_model=ProfileAnalysis)
async def analyze_profile(services: Services = Depends(get_services)):
    """Run the generative profile analysis on demand and store the result."""
    profile = _require_profile(services)
    if not services.generative.enabled:
        raise HTTPException(status_code=400, detail="DeepSeek API key is required for AI analysis")
    try:
        analysis = await services.generative.analyze_profile(profile)
    except OracleError as e:
        logger.error(f"Profile analysis failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    services.profiles.save_analysis(profile, analysis)
    return analysis
