"""Shared fixtures: in-memory database, test settings and fake oracles."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.config import Settings
from backend.db.base import init_db
from backend.db.stores import CompanyStore, JobStore, ProfileStore
from backend.models.company import HRContact, WorkLifeBalance
from backend.models.enrichment import ApolloPatch, CompanySuggestion, HunterPatch
from backend.models.profile import Location, PersonalInfo, Preferences, ProfileAnalysis, UserProfile
from backend.pipeline.orchestrator import Orchestrator
from backend.tools.base import OracleError
from backend.tools.generative import EmailDraft, MatchEvaluation


@pytest.fixture
def config() -> Settings:
    return Settings(
        _env_file=None,
        deepseek_api_key="test-deepseek",
        apollo_api_key="",
        hunter_api_key="",
        database_url="sqlite://",
        redis_url="",
        inter_company_delay=0,
        provider_min_interval=0,
        queue_backoff_base=0,
        flush_every=5,
    )


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def jobs(session_factory) -> JobStore:
    return JobStore(session_factory)


@pytest.fixture
def companies(session_factory) -> CompanyStore:
    return CompanyStore(session_factory)


@pytest.fixture
def profiles(session_factory) -> ProfileStore:
    return ProfileStore(session_factory)


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(
        personal_info=PersonalInfo(
            first_name="Alex",
            last_name="Rivera",
            email="alex@example.com",
            phone="555-0100",
            location=Location(city="Boston", state="MA"),
        ),
        resume="Senior backend engineer. Python, FastAPI, PostgreSQL, AWS.",
        personal_statement="I want to build developer tools at a humane company.",
        current_title="Senior Software Engineer",
        experience_level="senior",
        preferences=Preferences(company_sizes=["startup", "medium"], industries=["technology"]),
    )


def suggestion(name: str, location: str = "Boston, MA", **kwargs) -> CompanySuggestion:
    data = {"industry": "technology", "size": "startup", "website": f"{name.lower().replace(' ', '')}.com"}
    data.update(kwargs)
    return CompanySuggestion(name=name, location=location, **data)


class FakeGenerative:
    """Scripted stand-in for GenerativeOracle."""

    def __init__(
        self,
        regional: list[CompanySuggestion] | None = None,
        nationwide: list[CompanySuggestion] | None = None,
        match_score: int = 85,
        wlb_score: float = 8.0,
        enabled: bool = True,
    ):
        self.regional = regional or []
        self.nationwide = nationwide or []
        self.match_score = match_score
        self.wlb_score = wlb_score
        self.enabled = enabled
        self.analysis_error: Exception | None = None
        self.match_errors: dict[str, Exception] = {}
        self.suggest_calls: list[dict] = []
        self.match_calls: list[str] = []
        self.on_match = None

    async def analyze_profile(self, profile):
        if not self.enabled:
            return None
        if self.analysis_error:
            raise self.analysis_error
        return ProfileAnalysis(strengths=["python", "apis"], interests=["devtools"], market_positioning="Strong IC")

    async def suggest_companies(self, profile, count, location, nationwide=False, exclude=None):
        self.suggest_calls.append({"count": count, "nationwide": nationwide, "exclude": exclude or []})
        if not self.enabled or count <= 0:
            return []
        source = self.nationwide if nationwide else self.regional
        return source[:count]

    async def evaluate_work_life_balance(self, company):
        if not self.enabled:
            return None
        return WorkLifeBalance(score=self.wlb_score, analysis="Reasonable hours")

    async def evaluate_match(self, profile, company):
        self.match_calls.append(company.name)
        if self.on_match is not None:
            self.on_match(company)
        if company.name in self.match_errors:
            raise self.match_errors[company.name]
        if not self.enabled:
            return None
        return MatchEvaluation(match_score=self.match_score, analysis="Good fit", highlights=["Remote-first"])

    async def draft_email(self, profile, company, contact):
        if not self.enabled:
            return None
        return EmailDraft(subject=f"Hello {company.name}", content="Generated body")


class FakeApollo:
    def __init__(self, enabled: bool = True, contacts: int = 1, error: bool = False):
        self.enabled = enabled
        self.contacts = contacts
        self.error = error
        self.calls: list[str] = []

    async def lookup_company_and_contacts(self, name, location=None):
        self.calls.append(name)
        if not self.enabled:
            return None
        if self.error:
            raise OracleError("apollo", "HTTP 500")
        slug = name.lower().replace(" ", "")
        return ApolloPatch(
            domain=f"{slug}.com",
            website=f"https://{slug}.com",
            employee_count=40,
            size="startup",
            hr_contacts=[
                HRContact(name=f"Recruiter {i}", email=f"r{i}@{slug}.com", verified=True, source="apollo")
                for i in range(self.contacts)
            ],
        )


class FakeHunter:
    def __init__(self, enabled: bool = True, contacts: int = 1):
        self.enabled = enabled
        self.contacts = contacts
        self.calls: list[str] = []

    async def lookup_contacts_by_domain(self, domain):
        self.calls.append(domain)
        if not self.enabled:
            return None
        return HunterPatch(
            hr_contacts=[
                HRContact(name=f"Talent {i}", email=f"t{i}@{domain}", source="hunter") for i in range(self.contacts)
            ]
        )


@pytest.fixture
def make_orchestrator(jobs, companies, profiles, config):
    def _make(generative=None, apollo=None, hunter=None, sleep=None, **overrides):
        cfg = config.model_copy(update=overrides) if overrides else config
        kwargs = {"sleep": sleep} if sleep is not None else {}
        return Orchestrator(
            jobs=jobs,
            companies=companies,
            profiles=profiles,
            generative=generative or FakeGenerative(),
            apollo=apollo or FakeApollo(enabled=False),
            hunter=hunter or FakeHunter(enabled=False),
            config=cfg,
            **kwargs,
        )

    return _make
