"""
arq worker for queued searches.

Run with:
    arq backend.worker.WorkerSettings
"""

import asyncio
import logging

from arq import Retry
from arq.connections import RedisSettings
from arq.worker import func

from backend.config import settings, setup_logging
from backend.db.base import get_session_factory, init_db
from backend.models.profile import UserProfile
from backend.pipeline.dispatch import QUEUE_FUNCTION, RetryPolicy
from backend.pipeline.orchestrator import build_orchestrator

logger = logging.getLogger(__name__)

retry_policy = RetryPolicy.from_settings(settings)


async def startup(ctx: dict) -> None:
    setup_logging()
    init_db()
    ctx["orchestrator"] = build_orchestrator(settings, get_session_factory())
    logger.info("Search worker started")


async def shutdown(ctx: dict) -> None:
    logger.info("Search worker stopped")


async def run_search_job(ctx: dict, job_id: str, profile_data: dict) -> dict:
    """Execute one queued search, asking arq to retry with backoff on failure."""
    attempt = ctx.get("job_try", 1)
    profile = UserProfile.model_validate(profile_data)
    logger.info(f"[{job_id}] Queue job started, attempt {attempt}")

    try:
        job = await ctx["orchestrator"].run(job_id, profile, attempt=attempt)
    except asyncio.CancelledError:
        logger.warning(f"[{job_id}] Queue job stalled on attempt {attempt}")
        raise
    except Exception as e:
        if attempt < retry_policy.max_attempts:
            defer = retry_policy.delay_for(attempt)
            logger.warning(f"[{job_id}] Queue job failed on attempt {attempt}: {e}; retrying in {defer:.0f}s")
            raise Retry(defer=defer) from e
        logger.error(f"[{job_id}] Queue job failed after {attempt} attempts: {e}")
        raise

    logger.info(f"[{job_id}] Queue job completed with status {job.status}")
    return {"job_id": job_id, "status": job.status, "companies_found": job.results.companies_found}


class WorkerSettings:
    functions = [func(run_search_job, name=QUEUE_FUNCTION, max_tries=retry_policy.max_attempts)]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = RedisSettings.from_dsn(settings.redis_url or "redis://localhost:6379")
    max_jobs = 1
    job_timeout = 3600
