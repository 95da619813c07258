"""
External oracle clients.

- generative: DeepSeek-backed analysis, suggestions and evaluations
- apollo: company + HR contact lookup by name (provider A)
- hunter: HR contact lookup by domain (provider B)
- pdf_parser: resume text extraction
"""

from backend.tools.apollo import ApolloClient
from backend.tools.base import MinIntervalRateLimiter, OracleError
from backend.tools.generative import EmailDraft, GenerativeOracle, MatchEvaluation
from backend.tools.hunter import HunterClient
from backend.tools.pdf_parser import extract_resume_text

__all__ = [
    "ApolloClient",
    "HunterClient",
    "GenerativeOracle",
    "MatchEvaluation",
    "EmailDraft",
    "MinIntervalRateLimiter",
    "OracleError",
    "extract_resume_text",
]
