"""Preconditions for starting a search."""

from backend.config import Settings
from backend.models.profile import UserProfile


class SubmissionError(ValueError):
    """A search request failed a precondition; no job was created."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def validate_submission(profile: UserProfile, config: Settings) -> None:
    """Raise SubmissionError naming the first failing check."""
    if not profile.resume.strip() or not profile.personal_statement.strip():
        raise SubmissionError("Resume and personal statement are required")
    if not profile.personal_info.first_name.strip() or not profile.personal_info.email.strip():
        raise SubmissionError("Name and email are required")
    if not profile.preferences.company_sizes:
        raise SubmissionError("Please select at least one company size preference")
    if not profile.preferences.industries:
        raise SubmissionError("Please select at least one industry preference")
    if not config.deepseek_api_key:
        raise SubmissionError("DeepSeek API key is required for AI analysis")
