"""Search endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from backend.api.deps import Services, get_services
from backend.api.limiter import limiter
from backend.api.schemas import PauseResponse, StartSearchRequest, StartSearchResponse
from backend.models.job import SearchJob
from backend.pipeline.validation import SubmissionError, validate_submission

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/start", response_model=StartSearchResponse)
@limiter.limit("3/minute")
async def start_search(
    request: Request,
    data: StartSearchRequest,
    services: Services = Depends(get_services),
):
    """Validate the profile and start a background search."""
    profile = data.profile or services.profiles.get()
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found. Save your profile first.")

    try:
        validate_submission(profile, services.config)
    except SubmissionError as e:
        raise HTTPException(status_code=400, detail=e.message)

    if data.profile is not None:
        services.profiles.save(profile)

    max_results = data.max_results or services.config.default_max_results
    job_id = await services.dispatcher.submit(profile, data.location, max_results)
    return StartSearchResponse(job_id=job_id, mode=services.dispatcher.mode)


@router.get("/progress")
def get_progress(services: Services = Depends(get_services)):
    """Live snapshot of the most recent search."""
    return services.reporter.snapshot()


@router.post("/pause", response_model=PauseResponse)
def pause_search(services: Services = Depends(get_services)):
    """Pause the most recent running search."""
    job = services.jobs.pause_latest_running()
    if job is None:
        return PauseResponse(job_id=None, message="No running search to pause")
    return PauseResponse(job_id=job.job_id, message="Search paused successfully")


@router.get("/{job_id}", response_model=SearchJob)
def get_search(job_id: str, services: Services = Depends(get_services)):
    """Full job record."""
    job = services.jobs.get(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Search not found")
    return job
