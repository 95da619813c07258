"""Service container and FastAPI dependencies."""

from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.orm import sessionmaker

from backend.config import Settings
from backend.db.stores import CompanyStore, JobStore, ProfileStore
from backend.pipeline.dispatch import Dispatcher, create_dispatcher
from backend.pipeline.orchestrator import build_orchestrator
from backend.pipeline.progress import ProgressReporter
from backend.tools.generative import GenerativeOracle


@dataclass
class Services:
    """Long-lived components built once per process."""

    config: Settings
    session_factory: sessionmaker
    jobs: JobStore
    companies: CompanyStore
    profiles: ProfileStore
    generative: GenerativeOracle
    dispatcher: Dispatcher
    reporter: ProgressReporter


async def build_services(config: Settings, session_factory: sessionmaker) -> Services:
    orchestrator = build_orchestrator(config, session_factory)
    dispatcher = await create_dispatcher(orchestrator.jobs, orchestrator, config)
    return Services(
        config=config,
        session_factory=session_factory,
        jobs=orchestrator.jobs,
        companies=orchestrator.companies,
        profiles=orchestrator.profiles,
        generative=orchestrator.generative,
        dispatcher=dispatcher,
        reporter=ProgressReporter(orchestrator.jobs),
    )


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the process-wide services."""
    return request.app.state.services
