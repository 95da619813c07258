"""
Dispatch layer: start pipeline runs in the background.

Two strategies share one contract, `submit(...) -> job_id`:

- QueuedDispatch enqueues the run on an arq (Redis) queue; the worker in
  backend.worker executes it with bounded retries.
- InlineDispatch schedules the run as an asyncio task in this process,
  applying the same retry policy with tenacity.

`create_dispatcher` picks one once at startup depending on whether the
broker answers.
"""

import asyncio
import dataclasses
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from redis.exceptions import RedisError
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from backend.config import Settings
from backend.db.stores import JobStore
from backend.models.job import SearchJob, SearchParameters
from backend.models.profile import UserProfile
from backend.pipeline.orchestrator import Orchestrator

logger = logging.getLogger(__name__)

QUEUE_FUNCTION = "run_search_job"


@dataclass(frozen=True)
class RetryPolicy:
    """Whole-job retry: attempt count and exponential backoff base (seconds)."""

    max_attempts: int = 3
    backoff_base: float = 2.0

    @classmethod
    def from_settings(cls, config: Settings) -> "RetryPolicy":
        return cls(max_attempts=config.queue_max_attempts, backoff_base=config.queue_backoff_base)

    def delay_for(self, attempt: int) -> float:
        """Backoff before the attempt following `attempt` (1-based)."""
        return self.backoff_base * 2 ** (attempt - 1)


class Dispatcher(ABC):
    """Creates the job record, then hands the run to a strategy."""

    mode = "abstract"

    def __init__(self, jobs: JobStore, retry_policy: RetryPolicy):
        self.jobs = jobs
        self.retry_policy = retry_policy

    async def submit(self, profile: UserProfile, location: str, max_results: int) -> str:
        job = SearchJob(parameters=SearchParameters(location=location, max_results=max_results))
        self.jobs.create(job)
        logger.info(f"[{job.job_id}] Created search job ({self.mode}), max_results={max_results}")
        await self._start(job.job_id, profile)
        return job.job_id

    @abstractmethod
    async def _start(self, job_id: str, profile: UserProfile) -> None: ...

    async def close(self) -> None:
        pass


class InlineDispatch(Dispatcher):
    """Run searches as asyncio tasks in this process."""

    mode = "inline"

    def __init__(self, jobs: JobStore, orchestrator: Orchestrator, retry_policy: RetryPolicy):
        super().__init__(jobs, retry_policy)
        self.orchestrator = orchestrator
        # Strong references to running tasks; each removes itself when done
        self._tasks: dict[str, asyncio.Task] = {}

    async def _start(self, job_id: str, profile: UserProfile) -> None:
        task = asyncio.create_task(self._run(job_id, profile), name=f"search-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job_id, None))

    async def _run(self, job_id: str, profile: UserProfile) -> None:
        policy = self.retry_policy
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(policy.max_attempts),
                wait=wait_exponential(multiplier=policy.backoff_base),
                reraise=True,
            ):
                with attempt:
                    number = attempt.retry_state.attempt_number
                    if number > 1:
                        logger.warning(f"[{job_id}] Retrying search, attempt {number}")
                    await self.orchestrator.run(job_id, profile, attempt=number)
        except asyncio.CancelledError:
            logger.warning(f"[{job_id}] Search task cancelled")
            raise
        except Exception as e:
            logger.error(f"[{job_id}] Search failed after {policy.max_attempts} attempts: {e}")
        else:
            logger.info(f"[{job_id}] Search task finished")

    async def wait(self, job_id: str) -> None:
        """Wait for an inline run to finish; returns at once if it already has."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def close(self) -> None:
        pending = [task for task in list(self._tasks.values()) if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


class QueuedDispatch(Dispatcher):
    """Enqueue searches on the arq worker queue."""

    mode = "queued"

    def __init__(self, jobs: JobStore, pool: ArqRedis, retry_policy: RetryPolicy):
        super().__init__(jobs, retry_policy)
        self.pool = pool

    async def _start(self, job_id: str, profile: UserProfile) -> None:
        await self.pool.enqueue_job(QUEUE_FUNCTION, job_id, profile.model_dump(mode="json"), _job_id=job_id)

    async def close(self) -> None:
        await self.pool.close()


def redis_settings(config: Settings) -> RedisSettings:
    """Broker settings that fail fast instead of retrying the connection."""
    return dataclasses.replace(RedisSettings.from_dsn(config.redis_url), conn_retries=0, conn_timeout=2)


async def create_dispatcher(jobs: JobStore, orchestrator: Orchestrator, config: Settings) -> Dispatcher:
    """Queued dispatch if the broker answers now, inline otherwise."""
    policy = RetryPolicy.from_settings(config)
    if config.redis_url:
        try:
            pool = await create_pool(redis_settings(config))
        except (OSError, RedisError, asyncio.TimeoutError) as e:
            logger.warning(f"Queue broker unavailable ({e}), running searches inline")
        else:
            logger.info("Queue broker reachable, using queued dispatch")
            return QueuedDispatch(jobs, pool, policy)
    else:
        logger.info("No queue broker configured, running searches inline")
    return InlineDispatch(jobs, orchestrator, policy)
