"""Utility modules."""

from .parser import (
    extract_json,
    parse_email_response,
    parse_match_response,
    parse_profile_analysis_response,
    parse_suggestions_response,
    parse_wlb_response,
)

__all__ = [
    "extract_json",
    "parse_email_response",
    "parse_match_response",
    "parse_profile_analysis_response",
    "parse_suggestions_response",
    "parse_wlb_response",
]
