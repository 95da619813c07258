"""User profile models (single tenant)."""

from pydantic import BaseModel, Field


class Location(BaseModel):
    city: str = ""
    state: str = ""


class PersonalInfo(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    linkedin_url: str = ""
    portfolio_url: str = ""
    location: Location = Field(default_factory=Location)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Preferences(BaseModel):
    company_sizes: list[str] = Field(default_factory=list, description="startup/small/medium/large")
    industries: list[str] = Field(default_factory=list)
    work_life_balance: bool = True
    remote_friendly: bool = False


class ProfileAnalysis(BaseModel):
    """Output of the generative profile analysis."""

    strengths: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    career_goals: list[str] = Field(default_factory=list)
    ideal_company_profile: str = ""
    market_positioning: str = ""
    improvement_areas: list[str] = Field(default_factory=list)

    def summary(self) -> str:
        parts = []
        if self.market_positioning:
            parts.append(self.market_positioning)
        if self.strengths:
            parts.append(f"Strengths: {', '.join(self.strengths)}")
        if self.ideal_company_profile:
            parts.append(f"Ideal company: {self.ideal_company_profile}")
        return "\n".join(parts)


class UserProfile(BaseModel):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    resume: str = ""
    personal_statement: str = ""
    current_title: str = ""
    experience_level: str = ""
    preferences: Preferences = Field(default_factory=Preferences)
    ai_analysis: ProfileAnalysis | None = None
