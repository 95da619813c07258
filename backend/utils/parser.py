"""
Lenient JSON extraction for chat-model output.

Model replies arrive in several shapes:
- Bare JSON
- JSON inside ```json fences, or fences with another tag or none
- JSON embedded in prose
- Plain "Subject:" emails (fallback)

The parse_* helpers below normalise each reply to the field names the
domain models expect, or return None when nothing usable was found.
"""

import json
import re
from typing import Any

FENCE_PATTERNS = (
    re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE),
    re.compile(r"```\w*\s*([\s\S]*?)\s*```"),
)

CLOSERS = {"{": "}", "[": "]"}


def extract_json(text: str, expect_array: bool = False) -> dict | list | None:
    """
    Pull the first JSON value out of a model reply.

    Args:
        text: Raw model output
        expect_array: Prefer a list result; a non-empty value of the other
            type is still returned so callers can unwrap it

    Returns:
        Parsed dict or list, or None
    """
    if not text or not text.strip():
        return None

    wanted = list if expect_array else dict
    fallback = None
    for strategy in (_parse_whole, _parse_fenced, _parse_embedded):
        result = strategy(text)
        if isinstance(result, wanted):
            return result
        if result and fallback is None:
            fallback = result
    return fallback


def _loads(candidate: str) -> Any:
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        return None


def _parse_whole(text: str) -> Any:
    return _loads(text.strip())


def _parse_fenced(text: str) -> Any:
    """First fenced block that decodes."""
    for pattern in FENCE_PATTERNS:
        for block in pattern.findall(text):
            result = _loads(block)
            if result is not None:
                return result
    return None


def _parse_embedded(text: str) -> Any:
    """Scan for balanced {...} or [...] spans, earliest opener first."""
    start = 0
    while True:
        positions = [p for p in (text.find("{", start), text.find("[", start)) if p != -1]
        if not positions:
            return None
        begin = min(positions)
        end = _matching_close(text, begin)
        if end is not None:
            result = _loads(text[begin : end + 1])
            if result is not None:
                return result
        start = begin + 1


def _matching_close(text: str, begin: int) -> int | None:
    """Index of the bracket closing text[begin], skipping string contents."""
    stack = []
    in_string = False
    escaped = False
    for i in range(begin, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char in CLOSERS:
            stack.append(CLOSERS[char])
        elif stack and char == stack[-1]:
            stack.pop()
            if not stack:
                return i
        elif char in ("}", "]"):
            return None
    return None


def _coerce_number(value: Any, default: float = 0) -> float:
    """Accept 85, "85", "85%" or "8/10" and return the leading number."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int | float):
        return value
    match = re.search(r"\d+(?:\.\d+)?", str(value or ""))
    return float(match.group()) if match else default


def _as_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, list | tuple | set):
        return [str(v) for v in value if v]
    return [str(value)]


def _normalize_size(size: Any) -> str:
    size_str = str(size or "").lower()
    for known in ("startup", "small", "medium", "large"):
        if known in size_str:
            return known
    return "unknown"


def normalize_suggestion(data: dict) -> dict:
    """Normalize one company suggestion to the expected schema."""
    employees = data.get("employee_count") or data.get("employeeCount") or data.get("employees")
    return {
        "name": str(data.get("name", "") or data.get("company", "") or data.get("company_name", "")).strip(),
        "location": data.get("location") or data.get("city") or None,
        "industry": data.get("industry") or None,
        "size": _normalize_size(data.get("size")),
        "employee_count": int(_coerce_number(employees)) or None,
        "description": data.get("description") or None,
        "website": data.get("website") or data.get("url") or None,
        "reasons": _as_list(data.get("reasons") or data.get("why")),
    }


def parse_suggestions_response(text: str) -> list[dict] | None:
    """
    Parse company suggestions from AI response.

    Returns list of dicts with: name, location, industry, size,
    employee_count, description, website, reasons. Entries without a
    name are dropped. None if no JSON array could be found.
    """
    result = extract_json(text, expect_array=True)
    if isinstance(result, dict):
        # {"companies": [...]} wrapper
        result = next((v for v in result.values() if isinstance(v, list)), None)
    if not isinstance(result, list):
        return None
    suggestions = [normalize_suggestion(item) for item in result if isinstance(item, dict)]
    return [s for s in suggestions if s["name"]]


def parse_wlb_response(text: str) -> dict | None:
    """Parse a work-life-balance evaluation. Score is clamped to 1-10."""
    result = extract_json(text, expect_array=False)
    if not isinstance(result, dict) or "score" not in result:
        return None
    return {
        "score": min(10.0, max(1.0, _coerce_number(result.get("score"), 1))),
        "analysis": result.get("analysis", "") or "",
        "sources": _as_list(result.get("sources")),
        "positives": _as_list(result.get("positives")),
        "concerns": _as_list(result.get("concerns")),
    }


def parse_match_response(text: str) -> dict | None:
    """Parse a match evaluation. Score is clamped to 0-100."""
    result = extract_json(text, expect_array=False)
    if not isinstance(result, dict):
        return None
    score = result.get("match_score", result.get("matchScore", result.get("score")))
    if score is None:
        return None
    return {
        "match_score": int(min(100, max(0, _coerce_number(score)))),
        "analysis": result.get("analysis", "") or "",
        "match_factors": _as_list(result.get("match_factors") or result.get("matchFactors")),
        "highlights": _as_list(result.get("highlights")),
        "concerns": _as_list(result.get("concerns")),
    }


def parse_profile_analysis_response(text: str) -> dict | None:
    """Parse a profile analysis, accepting camelCase keys as well."""
    result = extract_json(text, expect_array=False)
    if not isinstance(result, dict):
        return None
    return {
        "strengths": _as_list(result.get("strengths")),
        "interests": _as_list(result.get("interests")),
        "career_goals": _as_list(result.get("career_goals") or result.get("careerGoals")),
        "ideal_company_profile": result.get("ideal_company_profile") or result.get("idealCompanyProfile") or "",
        "market_positioning": result.get("market_positioning") or result.get("marketPositioning") or "",
        "improvement_areas": _as_list(result.get("improvement_areas") or result.get("improvementAreas")),
    }


def parse_email_response(text: str) -> dict | None:
    """Parse an email draft. Falls back to "Subject:" line parsing for plain text."""
    result = extract_json(text, expect_array=False)
    if isinstance(result, dict) and (result.get("content") or result.get("body")):
        return {
            "subject": str(result.get("subject", "") or "").strip().strip("\"'"),
            "content": str(result.get("content") or result.get("body")).strip(),
        }

    match = re.match(r"\s*Subject:\s*([^\n]+)\n+([\s\S]+)", text or "", re.IGNORECASE)
    if match:
        return {"subject": match.group(1).strip().strip("\"'"), "content": match.group(2).strip()}
    return None
