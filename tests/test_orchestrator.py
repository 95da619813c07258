"""Pipeline orchestrator behaviour against fake oracles and an in-memory database."""

import httpx
import pytest
from conftest import FakeApollo, FakeGenerative, FakeHunter, suggestion

from backend.config import Settings
from backend.models.company import CompanyRecord
from backend.models.job import SearchJob, SearchParameters
from backend.tools.base import OracleError
from backend.tools.hunter import HunterClient


def create_job(jobs, max_results: int = 10, location: str = "Boston, MA") -> SearchJob:
    job = SearchJob(parameters=SearchParameters(location=location, max_results=max_results))
    jobs.create(job)
    return job


def assert_outcomes_balance(job: SearchJob) -> None:
    stats = job.live_stats
    assert stats.companies_saved + stats.companies_skipped + stats.processing_errors == stats.companies_processed


@pytest.mark.asyncio
async def test_expands_nationwide_below_threshold(jobs, make_orchestrator, profile):
    regional = [suggestion(f"Boston Co {i}") for i in range(5)] + [suggestion("Providence Co", "Providence, RI")]
    nationwide = [suggestion(f"Remote Co {i}", "Austin, TX") for i in range(4)]
    generative = FakeGenerative(regional=regional, nationwide=nationwide)
    orchestrator = make_orchestrator(generative=generative)
    job = create_job(jobs, max_results=10)

    result = await orchestrator.run(job.job_id, profile)

    assert result.status == "completed"
    assert result.results.expanded_nationwide is True
    assert generative.suggest_calls[1]["nationwide"] is True
    assert generative.suggest_calls[1]["count"] == 4
    assert generative.suggest_calls[1]["exclude"] == [s.name for s in regional]

    stats = result.live_stats
    assert stats.companies_generated == 10
    assert stats.boston_companies == 5
    assert stats.providence_companies == 1
    assert stats.nationwide_companies == 4
    assert stats.companies_saved == 10
    assert result.results.companies_found == 10
    assert result.progress.percentage == 100
    assert_outcomes_balance(result)


@pytest.mark.asyncio
async def test_no_expansion_at_threshold(jobs, make_orchestrator, profile):
    regional = [suggestion(f"Company {i}") for i in range(3)]
    generative = FakeGenerative(regional=regional)
    orchestrator = make_orchestrator(generative=generative, nationwide_threshold=3)
    job = create_job(jobs, max_results=3)

    result = await orchestrator.run(job.job_id, profile)

    assert result.results.expanded_nationwide is False
    assert len(generative.suggest_calls) == 1
    assert result.live_stats.companies_saved == 3


@pytest.mark.asyncio
async def test_expansion_flag_without_second_call_when_nothing_remaining(jobs, make_orchestrator, profile):
    regional = [suggestion(f"Company {i}") for i in range(5)]
    generative = FakeGenerative(regional=regional)
    orchestrator = make_orchestrator(generative=generative)
    job = create_job(jobs, max_results=5)

    result = await orchestrator.run(job.job_id, profile)

    assert result.results.expanded_nationwide is True
    assert len(generative.suggest_calls) == 1


@pytest.mark.asyncio
async def test_existing_company_is_skipped(jobs, companies, make_orchestrator, profile):
    companies.insert(CompanyRecord(name="Acme Robotics"))
    generative = FakeGenerative(regional=[suggestion("Acme Robotics"), suggestion("Beacon Labs")])
    orchestrator = make_orchestrator(generative=generative)
    job = create_job(jobs, max_results=2)

    result = await orchestrator.run(job.job_id, profile)

    assert result.live_stats.companies_skipped == 1
    assert result.live_stats.companies_saved == 1
    assert generative.match_calls == ["Beacon Labs"]
    assert_outcomes_balance(result)


@pytest.mark.asyncio
async def test_concurrent_insert_counts_as_skip(jobs, companies, make_orchestrator, profile):
    generative = FakeGenerative(regional=[suggestion("Racing Co")])
    # Another job saves the same name between the existence check and the insert
    generative.on_match = lambda company: companies.insert(CompanyRecord(name=company.name))
    orchestrator = make_orchestrator(generative=generative)
    job = create_job(jobs, max_results=1)

    result = await orchestrator.run(job.job_id, profile)

    assert result.status == "completed"
    assert result.live_stats.companies_skipped == 1
    assert result.live_stats.companies_saved == 0


@pytest.mark.asyncio
async def test_company_error_does_not_stop_the_loop(jobs, companies, make_orchestrator, profile):
    generative = FakeGenerative(regional=[suggestion("Broken Co"), suggestion("Working Co")])
    generative.match_errors["Broken Co"] = OracleError("deepseek", "Could not parse MatchEvaluation")
    orchestrator = make_orchestrator(generative=generative)
    job = create_job(jobs, max_results=2)

    result = await orchestrator.run(job.job_id, profile)

    assert result.status == "completed"
    assert result.live_stats.processing_errors == 1
    assert result.live_stats.companies_saved == 1
    assert any("Broken Co" in error for error in result.results.errors)
    assert companies.find_by_name("Broken Co") is None
    assert companies.find_by_name("Working Co") is not None
    assert_outcomes_balance(result)


@pytest.mark.asyncio
async def test_profile_analysis_failure_fails_job(jobs, make_orchestrator, profile):
    generative = FakeGenerative(regional=[suggestion("Never Reached")])
    generative.analysis_error = OracleError("deepseek", "timeout")
    orchestrator = make_orchestrator(generative=generative)
    job = create_job(jobs)

    with pytest.raises(OracleError):
        await orchestrator.run(job.job_id, profile)

    stored = jobs.get(job.job_id)
    assert stored.status == "failed"
    assert stored.results.errors[0] == "deepseek: timeout"
    assert stored.recent_activity[0].type == "error"
    assert generative.suggest_calls == []


@pytest.mark.asyncio
async def test_pause_stops_before_next_company(jobs, make_orchestrator, profile):
    generative = FakeGenerative(regional=[suggestion(f"Company {i}") for i in range(4)])

    async def pause_after_first(delay):
        jobs.pause_latest_running()

    orchestrator = make_orchestrator(generative=generative, sleep=pause_after_first)
    job = create_job(jobs, max_results=4)

    result = await orchestrator.run(job.job_id, profile)

    assert result.status == "paused"
    assert result.live_stats.companies_processed == 1
    stored = jobs.get(job.job_id)
    assert stored.status == "paused"
    assert stored.live_stats.companies_processed == 1
    assert "paused" in stored.recent_activity[0].message.lower()


@pytest.mark.asyncio
async def test_progress_never_decreases(jobs, make_orchestrator, profile):
    regional = [suggestion(f"Company {i}") for i in range(3)]
    generative = FakeGenerative(regional=regional, nationwide=[suggestion("Far Co", "Denver, CO")])
    seen: list[int] = []
    original_save = jobs.save

    def recording_save(job):
        seen.append(job.progress.percentage)
        return original_save(job)

    jobs.save = recording_save
    orchestrator = make_orchestrator(generative=generative)
    job = create_job(jobs, max_results=4)

    await orchestrator.run(job.job_id, profile)

    assert seen == sorted(seen)
    assert seen[-1] == 100


@pytest.mark.asyncio
async def test_enrichment_merges_provider_contacts(jobs, companies, make_orchestrator, profile):
    generative = FakeGenerative(regional=[suggestion("Harbor AI")])
    orchestrator = make_orchestrator(
        generative=generative,
        apollo=FakeApollo(contacts=2),
        hunter=FakeHunter(contacts=1),
    )
    job = create_job(jobs, max_results=1)

    result = await orchestrator.run(job.job_id, profile)

    saved = companies.find_by_name("Harbor AI")
    assert saved.contact_count == 3
    assert saved.api_sources == ["ai-generated", "apollo", "hunter"]
    assert saved.domain == "harborai.com"
    assert saved.work_life_balance.score == 8.0
    assert saved.ai_match_score == 85
    assert saved.is_local_priority is True
    assert result.live_stats.apollo_contacts == 2
    assert result.live_stats.hunter_contacts == 1
    assert result.live_stats.total_hr_contacts == 3
    assert result.live_stats.verified_contacts == 2
    assert result.results.contacts_found == 3
    assert result.api_usage.apollo.credits_used == 1
    assert result.api_usage.hunter.calls == 1


@pytest.mark.asyncio
async def test_provider_failure_is_tolerated(jobs, companies, make_orchestrator, profile):
    generative = FakeGenerative(regional=[suggestion("Quiet Co")])
    orchestrator = make_orchestrator(generative=generative, apollo=FakeApollo(error=True))
    job = create_job(jobs, max_results=1)

    result = await orchestrator.run(job.job_id, profile)

    assert result.status == "completed"
    assert result.live_stats.api_errors == 1
    assert result.live_stats.companies_saved == 1
    assert companies.find_by_name("Quiet Co").contact_count == 0


@pytest.mark.asyncio
async def test_disabled_providers_are_never_called_or_charged(jobs, make_orchestrator, profile):
    apollo = FakeApollo(enabled=False)
    hunter = FakeHunter(enabled=False)
    generative = FakeGenerative(regional=[suggestion("Solo Co")])
    orchestrator = make_orchestrator(generative=generative, apollo=apollo, hunter=hunter)
    job = create_job(jobs, max_results=1)

    result = await orchestrator.run(job.job_id, profile)

    assert apollo.calls == []
    assert hunter.calls == []
    assert result.api_usage.apollo.calls == 0
    assert result.api_usage.hunter.calls == 0
    assert result.api_usage.generative.calls > 0


@pytest.mark.asyncio
async def test_buckets_and_averages(jobs, make_orchestrator, profile):
    generative = FakeGenerative(regional=[suggestion("One"), suggestion("Two")], match_score=65, wlb_score=9)
    orchestrator = make_orchestrator(generative=generative)
    job = create_job(jobs, max_results=2)

    result = await orchestrator.run(job.job_id, profile)

    stats = result.live_stats
    assert stats.medium_matches == 2
    assert stats.avg_match_score == 70
    assert stats.excellent_wlb == 2
    assert stats.avg_wlb_score == 8.5


@pytest.mark.asyncio
async def test_analysis_is_stored_on_profile_and_job(jobs, profiles, make_orchestrator, profile):
    orchestrator = make_orchestrator(generative=FakeGenerative())
    job = create_job(jobs, max_results=1)

    result = await orchestrator.run(job.job_id, profile)

    assert "2 key strengths" in result.ai_analysis
    assert profiles.get().ai_analysis.strengths == ["python", "apis"]


@pytest.mark.asyncio
async def test_non_pending_job_is_not_rerun(jobs, make_orchestrator, profile):
    generative = FakeGenerative(regional=[suggestion("Once Co")])
    orchestrator = make_orchestrator(generative=generative)
    job = create_job(jobs, max_results=1)
    await orchestrator.run(job.job_id, profile)

    result = await orchestrator.run(job.job_id, profile)

    assert result.status == "completed"
    assert len(generative.suggest_calls) == 1


@pytest.mark.asyncio
async def test_retry_resets_failed_job(jobs, make_orchestrator, profile):
    generative = FakeGenerative(regional=[suggestion("Retry Co")])
    generative.analysis_error = OracleError("deepseek", "timeout")
    orchestrator = make_orchestrator(generative=generative)
    job = create_job(jobs, max_results=1)
    with pytest.raises(OracleError):
        await orchestrator.run(job.job_id, profile)

    generative.analysis_error = None
    result = await orchestrator.run(job.job_id, profile, attempt=2)

    assert result.status == "completed"
    assert result.live_stats.companies_saved == 1
    assert result.results.errors == ["deepseek: timeout"]


@pytest.mark.asyncio
async def test_unknown_job_raises(make_orchestrator, profile):
    with pytest.raises(LookupError):
        await make_orchestrator().run("missing", profile)


@pytest.mark.asyncio
async def test_second_submission_skips_known_company(jobs, make_orchestrator, profile):
    apollo = FakeApollo(contacts=0)
    generative = FakeGenerative(regional=[suggestion("Same Co")])
    orchestrator = make_orchestrator(generative=generative, apollo=apollo)

    first = await orchestrator.run(create_job(jobs, max_results=1).job_id, profile)
    second = await orchestrator.run(create_job(jobs, max_results=1).job_id, profile)

    assert first.live_stats.companies_saved == 1
    assert second.live_stats.companies_skipped == 1
    assert second.live_stats.companies_saved == 0
    assert apollo.calls == ["Same Co"]
    assert generative.match_calls == ["Same Co"]


@pytest.mark.asyncio
async def test_no_expansion_at_default_threshold(jobs, make_orchestrator, profile, config):
    threshold = Settings.model_fields["nationwide_threshold"].default
    assert threshold == 100
    assert config.nationwide_threshold == threshold
    regional = [suggestion(f"Company {i}") for i in range(threshold)]
    generative = FakeGenerative(regional=regional, nationwide=[suggestion("Far Co", "Denver, CO")])
    orchestrator = make_orchestrator(generative=generative)
    job = create_job(jobs, max_results=threshold)

    result = await orchestrator.run(job.job_id, profile)

    assert len(generative.suggest_calls) == 1
    assert result.results.expanded_nationwide is False
    assert result.live_stats.companies_saved == threshold


@pytest.mark.asyncio
async def test_malformed_hunter_body_skips_only_hunter(jobs, companies, make_orchestrator, profile, config):
    def handler(request):
        return httpx.Response(
            200,
            json={"data": {"emails": [{"value": "jo@acme.com", "department": "hr", "confidence": "high"}]}},
        )

    hunter = HunterClient(
        config.model_copy(update={"hunter_api_key": "hunter-key"}),
        transport=httpx.MockTransport(handler),
    )
    generative = FakeGenerative(regional=[suggestion("Acme")])
    orchestrator = make_orchestrator(generative=generative, hunter=hunter)
    job = create_job(jobs, max_results=1)

    result = await orchestrator.run(job.job_id, profile)

    assert result.status == "completed"
    assert result.live_stats.companies_saved == 1
    assert result.live_stats.processing_errors == 0
    assert result.live_stats.api_errors == 1
    assert result.results.errors == []
    saved = companies.find_by_name("Acme")
    assert saved.contact_count == 0
    assert saved.ai_match_score == 85


@pytest.mark.asyncio
async def test_pause_during_last_company_is_kept(jobs, companies, make_orchestrator, profile):
    generative = FakeGenerative(regional=[suggestion("Only Co")])
    generative.on_match = lambda company: jobs.pause_latest_running()
    orchestrator = make_orchestrator(generative=generative)
    job = create_job(jobs, max_results=1)

    result = await orchestrator.run(job.job_id, profile)

    assert result.status == "paused"
    assert jobs.get(job.job_id).status == "paused"
    assert jobs.get(job.job_id).performance.end_time is None
    assert companies.find_by_name("Only Co") is not None


@pytest.mark.asyncio
async def test_pause_during_generation_with_no_candidates(jobs, make_orchestrator, profile):
    class PausingGenerative(FakeGenerative):
        async def suggest_companies(self, *args, **kwargs):
            jobs.pause_latest_running()
            return await super().suggest_companies(*args, **kwargs)

    orchestrator = make_orchestrator(generative=PausingGenerative())
    job = create_job(jobs, max_results=3)

    result = await orchestrator.run(job.job_id, profile)

    assert result.status == "paused"
    stored = jobs.get(job.job_id)
    assert stored.status == "paused"
    assert "paused" in stored.recent_activity[0].message.lower()
