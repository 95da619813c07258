"""Region classification, enrichment merging and submission checks."""

import pytest
from conftest import suggestion

from backend.models.company import CompanyRecord, HRContact, size_from_employee_count
from backend.models.enrichment import ApolloPatch, HunterPatch
from backend.pipeline.enrichment import apply_patch, company_from_suggestion, merge_enrichment
from backend.pipeline.regions import classify_region, is_local_priority
from backend.pipeline.validation import SubmissionError, validate_submission


@pytest.mark.parametrize(
    "location,region",
    [
        ("Boston, MA", "boston"),
        ("Cambridge, Massachusetts", "boston"),
        ("Somerville", "boston"),
        ("Providence, RI", "providence"),
        ("Newport, Rhode Island", "providence"),
        ("Austin, TX", None),
        (None, None),
    ],
)
def test_classify_region(location, region):
    assert classify_region(location) == region


def test_first_matching_region_wins():
    assert classify_region("Boston and Providence") == "boston"
    assert is_local_priority("Providence") is True


def test_company_from_suggestion():
    company = company_from_suggestion(suggestion("Acme", website="acme.io"), "job-1")

    assert company.api_sources == ["ai-generated"]
    assert company.website == "https://acme.io"
    assert company.domain == "acme.io"
    assert company.is_local_priority is True
    assert company.search_job_id == "job-1"


def test_provider_fields_override_suggestion():
    patch = ApolloPatch(domain="acme.com", industry="software", location=None, hr_contacts=[HRContact(email="a@acme.com")])
    company = merge_enrichment(suggestion("Acme", industry="technology"), patch)

    assert company.domain == "acme.com"
    assert company.industry == "software"
    assert company.location == "Boston, MA"
    assert company.api_sources == ["ai-generated", "apollo"]


def test_contacts_are_concatenated_including_duplicates():
    contact = HRContact(email="hr@acme.com")
    company = merge_enrichment(
        suggestion("Acme"),
        ApolloPatch(hr_contacts=[contact]),
        None,
        HunterPatch(hr_contacts=[contact]),
    )

    assert company.contact_count == 2
    assert company.api_sources == ["ai-generated", "apollo", "hunter"]


def test_unknown_patch_type():
    with pytest.raises(TypeError):
        apply_patch(CompanyRecord(name="Acme"), object())


def test_data_quality_and_grade():
    company = CompanyRecord(
        name="Acme",
        website="https://acme.com",
        location="Boston",
        industry="tech",
        description="Tools",
        hr_contacts=[HRContact(email="hr@acme.com"), HRContact(email="v@acme.com", verified=True)],
        ai_match_score=84,
    )

    assert company.compute_data_quality() == 90
    assert company.match_grade == "B"
    assert company.primary_hr_contact.email == "v@acme.com"


def test_size_from_employee_count():
    assert size_from_employee_count(None) == "unknown"
    assert size_from_employee_count(50) == "startup"
    assert size_from_employee_count(51) == "small"
    assert size_from_employee_count(1000) == "medium"
    assert size_from_employee_count(1001) == "large"


class TestValidation:
    def test_valid_profile_passes(self, profile, config):
        validate_submission(profile, config)

    @pytest.mark.parametrize(
        "mutate,message",
        [
            (lambda p, c: setattr(p, "resume", " "), "Resume and personal statement are required"),
            (lambda p, c: setattr(p.personal_info, "email", ""), "Name and email are required"),
            (lambda p, c: setattr(p.preferences, "company_sizes", []), "Please select at least one company size preference"),
            (lambda p, c: setattr(p.preferences, "industries", []), "Please select at least one industry preference"),
            (lambda p, c: setattr(c, "deepseek_api_key", ""), "DeepSeek API key is required for AI analysis"),
        ],
    )
    def test_first_failing_check_is_reported(self, profile, config, mutate, message):
        mutate(profile, config)
        with pytest.raises(SubmissionError) as exc_info:
            validate_submission(profile, config)
        assert exc_info.value.message == message


def test_first_contact_adds_25_quality_points():
    company = CompanyRecord(name="Acme", website="https://acme.com", industry="tech")
    before = company.compute_data_quality()

    company.hr_contacts.append(HRContact(email="hr@acme.com"))

    assert company.compute_data_quality() - before == 25
