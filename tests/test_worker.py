"""arq worker task."""

import pytest
from arq import Retry

from backend.models.job import SearchJob
from backend.worker import retry_policy, run_search_job


class StubOrchestrator:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: list[int] = []

    async def run(self, job_id, profile, attempt=1):
        self.calls.append(attempt)
        if self.error:
            raise self.error
        job = SearchJob(job_id=job_id, status="completed")
        job.results.companies_found = 4
        return job


@pytest.mark.asyncio
async def test_success_returns_summary(profile):
    ctx = {"job_try": 1, "orchestrator": StubOrchestrator()}

    result = await run_search_job(ctx, "job-1", profile.model_dump(mode="json"))

    assert result == {"job_id": "job-1", "status": "completed", "companies_found": 4}


@pytest.mark.asyncio
async def test_failure_requests_retry_with_backoff(profile):
    ctx = {"job_try": 1, "orchestrator": StubOrchestrator(RuntimeError("boom"))}

    with pytest.raises(Retry) as exc_info:
        await run_search_job(ctx, "job-1", profile.model_dump(mode="json"))

    assert exc_info.value.defer_score == int(retry_policy.delay_for(1) * 1000)


@pytest.mark.asyncio
async def test_last_attempt_reraises(profile):
    orchestrator = StubOrchestrator(RuntimeError("boom"))
    ctx = {"job_try": retry_policy.max_attempts, "orchestrator": orchestrator}

    with pytest.raises(RuntimeError):
        await run_search_job(ctx, "job-1", profile.model_dump(mode="json"))

    assert orchestrator.calls == [retry_policy.max_attempts]
