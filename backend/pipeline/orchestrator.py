"""
Search pipeline orchestrator.

Drives one SearchJob through its phases:

1. profile-analysis    generative analysis of the resume, stored on the profile
2. company-generation  regional suggestions, nationwide top-up below threshold
3. company-processing  per company: dedup, enrichment, evaluations, save
4. completed

Companies are processed strictly one at a time. A failure inside one
company is recorded and the loop moves on; anything else fails the job and
is re-raised so the dispatcher can retry.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from backend.config import Settings, settings as default_settings
from backend.db.stores import CompanyStore, DuplicateCompanyError, JobStore, ProfileStore
from backend.models.company import CompanyRecord
from backend.models.enrichment import CompanySuggestion
from backend.models.job import SearchJob
from backend.models.profile import ProfileAnalysis, UserProfile
from backend.pipeline.enrichment import apply_patch, company_from_suggestion
from backend.pipeline.progress import format_duration
from backend.pipeline.regions import classify_region
from backend.tools.apollo import ApolloClient
from backend.tools.base import OracleError
from backend.tools.generative import GenerativeOracle
from backend.tools.hunter import HunterClient

logger = logging.getLogger(__name__)

# Estimated USD per generative call
GENERATIVE_CALL_COST = 0.02

PROCESSING_START = 60
PROCESSING_SPAN = 35


def match_bucket(score: int) -> str:
    if score >= 80:
        return "high_matches"
    if score >= 60:
        return "medium_matches"
    return "low_matches"


def wlb_bucket(score: float) -> str:
    if score >= 8:
        return "excellent_wlb"
    if score >= 6:
        return "good_wlb"
    if score >= 4:
        return "average_wlb"
    return "poor_wlb"


class Orchestrator:
    """Runs the search pipeline for one job at a time."""

    def __init__(
        self,
        jobs: JobStore,
        companies: CompanyStore,
        profiles: ProfileStore,
        generative: GenerativeOracle,
        apollo: ApolloClient,
        hunter: HunterClient,
        config: Settings | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.jobs = jobs
        self.companies = companies
        self.profiles = profiles
        self.generative = generative
        self.apollo = apollo
        self.hunter = hunter
        self.config = config or default_settings
        self._sleep = sleep

    async def run(self, job_id: str, profile: UserProfile, attempt: int = 1) -> SearchJob:
        """Run the pipeline for a pending job and return its final state."""
        job = self.jobs.get(job_id)
        if job is None:
            raise LookupError(f"Search job not found: {job_id}")

        if job.status == "failed" and attempt > 1:
            job.reset_for_retry(attempt)
        elif job.status != "pending":
            logger.info(f"[{job_id}] Not starting, job is {job.status}")
            return job

        try:
            await self._run_phases(job, profile)
        except Exception as e:
            logger.error(f"[{job_id}] Search failed: {e}")
            job.fail(str(e))
            self.jobs.save(job)
            raise
        return job

    def _flush(self, job: SearchJob) -> None:
        self.jobs.save(job)

    def _pause_requested(self, job: SearchJob) -> bool:
        if self.jobs.get_status(job.job_id) == "paused":
            job.status = "paused"
            return True
        return job.status == "paused"

    async def _run_phases(self, job: SearchJob, profile: UserProfile) -> None:
        job_id = job.job_id
        location = job.parameters.location
        max_results = job.parameters.max_results

        # Phase 1: profile analysis
        job.start()
        job.update_progress("profile-analysis", 5, "Analyzing your profile with AI...")
        job.add_activity(
            "milestone",
            "Starting AI profile analysis",
            data={
                "company_sizes": profile.preferences.company_sizes,
                "industries": profile.preferences.industries,
            },
        )
        self._flush(job)
        logger.info(f"[{job_id}] Analyzing profile...")

        analysis = await self._analyze_profile(job, profile)
        profile = profile.model_copy(update={"ai_analysis": analysis})

        # Phase 2: company generation
        job.update_progress("company-generation", 15, f"AI generating {location} company matches...")
        self._flush(job)
        candidates = await self._generate_companies(job, profile, location, max_results)

        # Phase 3: company processing
        to_process = candidates[:max_results]
        total = len(to_process)
        job.progress.total = total
        job.update_progress("company-processing", PROCESSING_START, "Processing companies and finding HR contacts...")
        self._flush(job)
        logger.info(f"[{job_id}] Processing {total} companies")

        for index, suggestion in enumerate(to_process):
            if self._stop_if_paused(job, total):
                return

            await self._process_company(job, profile, suggestion)

            processed = job.live_stats.companies_processed
            job.progress.current = processed
            job.update_progress(
                "company-processing",
                PROCESSING_START + (processed / total) * PROCESSING_SPAN,
                f"Processed {processed} of {total} companies",
            )
            if processed % self.config.flush_every == 0:
                self._flush(job)

            if index < total - 1:
                await self._sleep(self.config.inter_company_delay)

        # A pause during the last company or with nothing to process still wins
        if self._stop_if_paused(job, total):
            return

        # Phase 4: completed
        self._complete(job)

    def _stop_if_paused(self, job: SearchJob, total: int) -> bool:
        if not self._pause_requested(job):
            return False
        processed = job.live_stats.companies_processed
        job.add_activity("milestone", f"Search paused after {processed} of {total} companies")
        self._flush(job)
        logger.info(f"[{job.job_id}] Paused after {processed} of {total} companies")
        return True

    async def _analyze_profile(self, job: SearchJob, profile: UserProfile) -> ProfileAnalysis:
        if self.generative.enabled:
            job.charge("generative", cost=GENERATIVE_CALL_COST)
        analysis = await self.generative.analyze_profile(profile) or ProfileAnalysis()

        self.profiles.save_analysis(profile, analysis)
        summary = f"Found {len(analysis.strengths)} key strengths and {len(analysis.interests)} interests"
        job.ai_analysis = "\n".join(part for part in (summary, analysis.summary()) if part)
        job.add_activity(
            "milestone",
            f"AI identified {len(analysis.strengths)} key strengths and {len(analysis.interests)} interests",
        )
        return analysis

    async def _generate_companies(
        self, job: SearchJob, profile: UserProfile, location: str, max_results: int
    ) -> list[CompanySuggestion]:
        """Regional suggestions first, then a nationwide top-up if below threshold."""
        job_id = job.job_id
        logger.info(f"[{job_id}] Generating {location} companies...")

        if self.generative.enabled:
            job.charge("generative", cost=GENERATIVE_CALL_COST)
        regional = await self.generative.suggest_companies(profile, max_results, location)

        counts = {"boston": 0, "providence": 0}
        for suggestion in regional:
            region = classify_region(suggestion.location)
            if region:
                counts[region] += 1
        job.increment_stat("companies_generated", len(regional))
        job.increment_stat("boston_companies", counts["boston"])
        job.increment_stat("providence_companies", counts["providence"])
        job.add_activity("milestone", f"Generated {len(regional)} regional companies", data=counts)
        job.update_progress("company-generation", 35, f"Found {len(regional)} regional companies...")
        self._flush(job)

        if len(regional) >= self.config.nationwide_threshold:
            return list(regional)

        remaining = max_results - len(regional)
        logger.info(f"[{job_id}] Expanding nationwide, {len(regional)} regional, {remaining} requested")
        job.results.expanded_nationwide = True
        job.add_activity("milestone", f"Expanding to nationwide search (found {len(regional)} regional companies)")
        job.update_progress("company-generation", 45, "Expanding to nationwide search for more matches...")
        self._flush(job)

        nationwide: list[CompanySuggestion] = []
        if remaining > 0:
            if self.generative.enabled:
                job.charge("generative", cost=GENERATIVE_CALL_COST)
            nationwide = await self.generative.suggest_companies(
                profile,
                remaining,
                location,
                nationwide=True,
                exclude=[s.name for s in regional],
            )

        combined = list(regional) + list(nationwide)
        job.increment_stat("nationwide_companies", len(nationwide))
        job.increment_stat("companies_generated", len(nationwide))
        job.add_activity("milestone", f"Added {len(nationwide)} nationwide companies", data={"total": len(combined)})
        job.update_progress(
            "company-generation", 55, f"Total {len(combined)} companies found (including nationwide)"
        )
        self._flush(job)
        return combined

    async def _process_company(self, job: SearchJob, profile: UserProfile, suggestion: CompanySuggestion) -> None:
        """Exactly one outcome per company: skipped, saved, or recorded as an error."""
        name = suggestion.name
        job.live_stats.current_company = name
        job.progress.current_step = f"Analyzing {name}..."
        job.add_activity(
            "company-found",
            f"Analyzing {name}",
            name,
            {"location": suggestion.location, "industry": suggestion.industry, "size": suggestion.size},
        )

        try:
            await self._enrich_and_save(job, profile, suggestion)
        except Exception as e:
            message = f"Failed to process {name}: {e}"
            logger.error(f"[{job.job_id}] {message}")
            job.increment_stat("processing_errors")
            job.increment_stat("companies_processed")
            job.results.errors.append(message)
            job.add_activity("error", message, name)
            self._flush(job)
            return

        job.increment_stat("companies_processed")

    def _record_skip(self, job: SearchJob, name: str) -> None:
        job.increment_stat("companies_skipped")
        job.add_activity("company-processed", f"Skipped {name} (already exists)", name)

    async def _enrich_and_save(self, job: SearchJob, profile: UserProfile, suggestion: CompanySuggestion) -> None:
        started = time.monotonic()
        name = suggestion.name

        if self.companies.find_by_name(name) is not None:
            self._record_skip(job, name)
            return

        company = company_from_suggestion(suggestion, job.job_id)
        apollo_found = await self._enrich_apollo(job, company, suggestion.location)
        hunter_found = await self._enrich_hunter(job, company)

        if self.generative.enabled:
            job.charge("generative", cost=GENERATIVE_CALL_COST)
        wlb = await self.generative.evaluate_work_life_balance(company)
        if self.generative.enabled:
            job.charge("generative", cost=GENERATIVE_CALL_COST)
        match = await self.generative.evaluate_match(profile, company)

        if wlb is not None:
            company.work_life_balance = wlb
        if match is not None:
            company.ai_match_score = match.match_score
            company.ai_analysis = match.analysis
            company.match_factors = match.match_factors
            company.highlights = match.highlights
            company.concerns = match.concerns

        try:
            self.companies.insert(company)
        except DuplicateCompanyError:
            # Another job saved this name after our existence check
            self._record_skip(job, name)
            return

        self._record_saved(job, company, apollo_found + hunter_found, time.monotonic() - started)

    async def _enrich_apollo(self, job: SearchJob, company: CompanyRecord, location: str | None) -> int:
        if not self.apollo.enabled:
            return 0
        job.charge("apollo", credits=1)
        try:
            patch = await self.apollo.lookup_company_and_contacts(company.name, location)
        except OracleError as e:
            job.increment_stat("api_errors")
            logger.warning(f"[{job.job_id}] Apollo failed for {company.name}: {e}")
            return 0
        if patch is None:
            return 0
        apply_patch(company, patch)
        job.increment_stat("apollo_contacts", len(patch.hr_contacts))
        return len(patch.hr_contacts)

    async def _enrich_hunter(self, job: SearchJob, company: CompanyRecord) -> int:
        if not company.domain or not self.hunter.enabled:
            return 0
        job.charge("hunter")
        try:
            patch = await self.hunter.lookup_contacts_by_domain(company.domain)
        except OracleError as e:
            job.increment_stat("api_errors")
            logger.warning(f"[{job.job_id}] Hunter failed for {company.name}: {e}")
            return 0
        if patch is None:
            return 0
        apply_patch(company, patch)
        job.increment_stat("hunter_contacts", len(patch.hr_contacts))
        return len(patch.hr_contacts)

    def _record_saved(self, job: SearchJob, company: CompanyRecord, contacts: int, elapsed: float) -> None:
        name = company.name
        wlb_score = company.work_life_balance.score if company.work_life_balance else None

        job.increment_stat(match_bucket(company.ai_match_score))
        if wlb_score is not None:
            job.increment_stat(wlb_bucket(wlb_score))

        job.record_processing_time(elapsed)
        job.increment_stat("companies_saved")
        job.increment_stat("total_hr_contacts", contacts)
        job.increment_stat("verified_contacts", sum(1 for c in company.hr_contacts if c.verified))
        job.results.companies_found += 1
        job.results.contacts_found += contacts

        if contacts:
            job.add_activity("contact-found", f"Found {contacts} HR contacts at {name}", name)
        job.add_activity(
            "company-processed",
            f"{name} - {company.ai_match_score}% match, {wlb_score or 'n/a'}/10 WLB, {contacts} contacts",
            name,
            {
                "match_score": company.ai_match_score,
                "wlb_score": wlb_score,
                "contacts": contacts,
                "processing_time": f"{elapsed:.1f}s",
            },
        )
        logger.info(
            f"[{job.job_id}] Saved {name}: {company.ai_match_score}% match, "
            f"{wlb_score}/10 WLB, {contacts} contacts in {elapsed:.1f}s"
        )

    def _complete(self, job: SearchJob) -> None:
        job.complete()
        job.progress.current_step = (
            "Search completed! Expanded nationwide for more matches."
            if job.results.expanded_nationwide
            else "Search completed! Found matches in the local area."
        )
        stats = job.live_stats
        job.add_activity(
            "milestone",
            f"Search completed! {stats.companies_saved} companies saved, {stats.total_hr_contacts} HR contacts found",
            data={
                "total_duration": format_duration(job.performance.duration or 0),
                "avg_processing_time": f"{job.performance.average_company_processing_time:.1f}s",
                "api_calls": job.total_api_calls(),
            },
        )
        self._flush(job)
        logger.info(
            f"[{job.job_id}] Search completed: {stats.companies_saved} saved, "
            f"{stats.companies_skipped} skipped, {stats.processing_errors} errors"
        )


def build_orchestrator(config: Settings, session_factory) -> Orchestrator:
    """Wire stores and oracle clients from settings."""
    return Orchestrator(
        jobs=JobStore(session_factory),
        companies=CompanyStore(session_factory),
        profiles=ProfileStore(session_factory),
        generative=GenerativeOracle(config),
        apollo=ApolloClient(config),
        hunter=HunterClient(config),
        config=config,
    )
