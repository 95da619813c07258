"""
Generative matching oracle.

Wraps a chat model (DeepSeek by default) behind typed operations:
profile analysis, company suggestions, work-life-balance and match
evaluations, and outreach email drafts. Responses are parsed as JSON with
the shared parsers; anything unparseable raises OracleError.
"""

import json
import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_deepseek import ChatDeepSeek
from pydantic import BaseModel, Field, ValidationError

from backend.config import Settings, settings as default_settings
from backend.models.company import CompanyRecord, HRContact, WorkLifeBalance
from backend.models.enrichment import CompanySuggestion
from backend.models.profile import ProfileAnalysis, UserProfile
from backend.tools.base import MinIntervalRateLimiter, OracleError, unexpected_shape
from backend.utils.parser import (
    parse_email_response,
    parse_match_response,
    parse_profile_analysis_response,
    parse_suggestions_response,
    parse_wlb_response,
)

logger = logging.getLogger(__name__)

PROVIDER = "deepseek"

ANALYST_SYSTEM = "You are a career analyst. Reply with raw JSON only, no markdown and no prose."

RECRUITER_SYSTEM = (
    "You are a professional recruiter with deep knowledge of the tech industry. "
    "Suggest real companies that exist. Reply with raw JSON only."
)

CULTURE_SYSTEM = "You are a workplace culture expert. Evaluate companies objectively. Reply with raw JSON only."

MATCH_SYSTEM = "You are a recruiter evaluating candidate-company fit. Be objective. Reply with raw JSON only."

EMAIL_SYSTEM = (
    "You write short, personalized networking emails that get responses. "
    "Reply with raw JSON only."
)

PROFILE_PROMPT = """Analyze this professional profile.

Resume:
{resume}

Personal statement:
{statement}

Current title: {title}
Experience level: {experience}

Return ONLY this JSON object:
{{"strengths": ["..."], "interests": ["..."], "career_goals": ["..."], "ideal_company_profile": "...", "market_positioning": "...", "improvement_areas": ["..."]}}
"""

SUGGEST_PROMPT = """Suggest {count} companies {scope} that would be good matches for this candidate.

Candidate:
- Title: {title}
- Experience: {experience}
- Company size preferences: {sizes}
- Industry preferences: {industries}
- Work-life balance priority: {wlb}
- Remote friendly: {remote}
- Strengths: {strengths}
- Interests: {interests}
- Career goals: {goals}
{exclude}
Return ONLY a JSON array:
[{{"name": "Company", "location": "City, ST", "industry": "technology", "size": "startup|small|medium|large", "employee_count": 100, "description": "one sentence", "website": "https://company.com", "reasons": ["reason"]}}]

Rules:
- Real companies only, no duplicates
- Mix well-known and emerging companies that are actively hiring
- IMPORTANT: Return the FULL JSON array. Do NOT truncate.
"""

WLB_PROMPT = """Evaluate the work-life balance at {name}.

Industry: {industry}
Size: {size}
Location: {location}
Description: {description}

Return ONLY this JSON object:
{{"score": 1-10, "analysis": "two sentences", "sources": ["..."], "positives": ["..."], "concerns": ["..."]}}
"""

MATCH_PROMPT = """Evaluate how well this company matches the candidate.

Candidate:
- Title: {title}
- Experience: {experience}
- Strengths: {strengths}
- Interests: {interests}
- Preferences: {sizes} companies in {industries}

Company:
- Name: {name}
- Industry: {industry}
- Size: {size}
- Location: {location}
- Description: {description}

Return ONLY this JSON object:
{{"match_score": 0-100, "analysis": "brief analysis", "match_factors": ["..."], "highlights": ["..."], "concerns": ["..."]}}
"""

EMAIL_PROMPT = """Write an informational interview request email.

Sender: {sender}, {title} ({experience})
Sender strengths: {strengths}
Sender interests: {interests}

Company: {company} ({industry}, {size}, {location})
Company highlights: {highlights}

Recipient: {recipient} ({recipient_title})

Rules:
- 150-250 words, warm but professional
- Reference something specific about {company}
- Ask for a 15-20 minute conversation
- Avoid "I hope this email finds you well"

Return ONLY this JSON object:
{{"subject": "under 60 characters", "content": "full email body"}}
"""


class MatchEvaluation(BaseModel):
    match_score: int = Field(ge=0, le=100)
    analysis: str = ""
    match_factors: list[str] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)


class EmailDraft(BaseModel):
    subject: str
    content: str


def _join(items: list[str] | None, fallback: str) -> str:
    return ", ".join(items) if items else fallback


def create_chat_model(config: Settings) -> BaseChatModel | None:
    """Build the default DeepSeek chat model, or None without a key."""
    if not config.deepseek_api_key:
        return None

    return ChatDeepSeek(
        model=config.deepseek_model,
        api_key=config.deepseek_api_key,
        temperature=0.7,
        timeout=config.oracle_timeout,
    )


class GenerativeOracle:
    """Typed operations over a chat model."""

    provider = PROVIDER

    def __init__(self, config: Settings | None = None, model: BaseChatModel | None = None):
        config = config or default_settings
        self.model = model if model is not None else create_chat_model(config)
        self.rate_limiter = MinIntervalRateLimiter(config.provider_min_interval)

    @property
    def enabled(self) -> bool:
        return self.model is not None

    async def _complete(self, system: str, prompt: str) -> str:
        """Send one prompt and return the raw response text."""
        await self.rate_limiter.wait()
        try:
            response = await self.model.ainvoke([SystemMessage(content=system), HumanMessage(content=prompt)])
        except Exception as e:
            raise OracleError(self.provider, str(e) or type(e).__name__) from e
        content = response.content
        return content if isinstance(content, str) else json.dumps(content)

    def _parse(self, parser, raw: str):
        with unexpected_shape(self.provider):
            return parser(raw)

    def _build(self, model: type[BaseModel], data: dict | None, raw: str):
        if data is None:
            logger.warning(f"Unparseable {self.provider} response: {raw[:200]}")
            raise OracleError(self.provider, f"Could not parse {model.__name__} from response")
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise OracleError(self.provider, f"Malformed {model.__name__}: {e.error_count()} errors") from e

    async def analyze_profile(self, profile: UserProfile) -> ProfileAnalysis | None:
        if not self.enabled:
            return None
        prompt = PROFILE_PROMPT.format(
            resume=profile.resume[:4000],
            statement=profile.personal_statement,
            title=profile.current_title or "Not specified",
            experience=profile.experience_level or "Not specified",
        )
        raw = await self._complete(ANALYST_SYSTEM, prompt)
        return self._build(ProfileAnalysis, self._parse(parse_profile_analysis_response, raw), raw)

    async def suggest_companies(
        self,
        profile: UserProfile,
        count: int,
        location: str,
        nationwide: bool = False,
        exclude: list[str] | None = None,
    ) -> list[CompanySuggestion]:
        """Suggest `count` companies near `location`, or across the US when nationwide."""
        if not self.enabled or count <= 0:
            return []
        analysis = profile.ai_analysis or ProfileAnalysis()
        prefs = profile.preferences
        prompt = SUGGEST_PROMPT.format(
            count=count,
            scope="across the United States (outside the local area)" if nationwide else f"in or near {location}",
            title=profile.current_title or "Not specified",
            experience=profile.experience_level or "Not specified",
            sizes=_join(prefs.company_sizes, "any"),
            industries=_join(prefs.industries, "any"),
            wlb="Yes" if prefs.work_life_balance else "No",
            remote="Yes" if prefs.remote_friendly else "No",
            strengths=_join(analysis.strengths, "Technical skills"),
            interests=_join(analysis.interests, "Technology"),
            goals=_join(analysis.career_goals, "Growth"),
            exclude=f"- Do not include: {', '.join(exclude)}\n" if exclude else "",
        )
        raw = await self._complete(RECRUITER_SYSTEM, prompt)
        items = self._parse(parse_suggestions_response, raw)
        if items is None:
            logger.warning(f"Unparseable {self.provider} response: {raw[:200]}")
            raise OracleError(self.provider, "Could not parse company suggestions from response")
        return [self._build(CompanySuggestion, item, raw) for item in items][:count]

    async def evaluate_work_life_balance(self, company: CompanyRecord) -> WorkLifeBalance | None:
        if not self.enabled:
            return None
        prompt = WLB_PROMPT.format(
            name=company.name,
            industry=company.industry or "Unknown",
            size=company.size,
            location=company.location or "Unknown",
            description=company.description or "",
        )
        raw = await self._complete(CULTURE_SYSTEM, prompt)
        return self._build(WorkLifeBalance, self._parse(parse_wlb_response, raw), raw)

    async def evaluate_match(self, profile: UserProfile, company: CompanyRecord) -> MatchEvaluation | None:
        if not self.enabled:
            return None
        analysis = profile.ai_analysis or ProfileAnalysis()
        prompt = MATCH_PROMPT.format(
            title=profile.current_title or "Not specified",
            experience=profile.experience_level or "Not specified",
            strengths=_join(analysis.strengths, "Technical skills"),
            interests=_join(analysis.interests, "Technology"),
            sizes=_join(profile.preferences.company_sizes, "any"),
            industries=_join(profile.preferences.industries, "any"),
            name=company.name,
            industry=company.industry or "Unknown",
            size=company.size,
            location=company.location or "Unknown",
            description=company.description or "",
        )
        raw = await self._complete(MATCH_SYSTEM, prompt)
        return self._build(MatchEvaluation, self._parse(parse_match_response, raw), raw)

    async def draft_email(
        self, profile: UserProfile, company: CompanyRecord, contact: HRContact | None
    ) -> EmailDraft | None:
        if not self.enabled:
            return None
        analysis = profile.ai_analysis or ProfileAnalysis()
        prompt = EMAIL_PROMPT.format(
            sender=profile.personal_info.full_name,
            title=profile.current_title or "professional",
            experience=profile.experience_level or "experienced",
            strengths=_join(analysis.strengths[:3], "technical skills, problem-solving"),
            interests=_join(analysis.interests[:3], "technology, innovation"),
            company=company.name,
            industry=company.industry or "their industry",
            size=company.size,
            location=company.location or "",
            highlights=_join(company.highlights[:3], "innovative culture"),
            recipient=contact.name if contact and contact.name else "Hiring Manager",
            recipient_title=contact.title if contact and contact.title else "HR Professional",
        )
        raw = await self._complete(EMAIL_SYSTEM, prompt)
        return self._build(EmailDraft, self._parse(parse_email_response, raw), raw)
