"""
Outreach email generation.

Drafts an informational-interview email with the generative oracle and
falls back to a static template when the oracle is unavailable or fails.
Generation never raises to the caller.
"""

import logging

from backend.models.company import CompanyRecord, EmailEntry, HRContact
from backend.models.profile import UserProfile
from backend.tools.base import OracleError
from backend.tools.generative import GenerativeOracle

logger = logging.getLogger(__name__)

INDUSTRY_INTROS = {
    "technology": "In researching innovative tech companies,",
    "fintech": "As someone passionate about the intersection of finance and technology,",
    "healthcare": "With my interest in healthcare innovation,",
    "ecommerce": "Having followed the evolution of digital commerce,",
    "biotech": "As an advocate for biotechnology advancements,",
    "education": "With my commitment to educational technology,",
    "media": "As someone engaged with digital media trends,",
    "ai-ml": "Being deeply interested in AI and machine learning applications,",
    "gaming": "As an enthusiast of interactive entertainment technology,",
    "cybersecurity": "With the critical importance of digital security,",
}

SIZE_APPEALS = {
    "startup": "The fast-paced environment of a startup like yours fits my entrepreneurial mindset.",
    "small": "I'm drawn to smaller companies where individual contributions have significant impact.",
    "medium": "The balance of stability and growth at a mid-sized company is particularly appealing to me.",
    "large": "The resources and scale of an established company like yours offer exciting possibilities.",
}


def recipient_for(company: CompanyRecord) -> tuple[str, str, HRContact | None]:
    """Pick (name, email, contact) for the best HR contact."""
    contact = company.primary_hr_contact
    name = contact.name if contact and contact.name else "Hiring Manager"
    if contact and contact.email:
        email = contact.email
    else:
        email = f"hr@{company.domain}" if company.domain else ""
    return name, email, contact


def template_email(profile: UserProfile, company: CompanyRecord, recipient_name: str) -> tuple[str, str]:
    """Static fallback. Returns (subject, content)."""
    info = profile.personal_info
    sender = info.full_name or "A fellow professional"
    title = profile.current_title or "professional"
    analysis = profile.ai_analysis
    strength = analysis.strengths[0] if analysis and analysis.strengths else "technology"
    interest = analysis.interests[0] if analysis and analysis.interests else "continuous learning"
    highlights = company.highlights + ["innovative approach", "company culture"]

    intro = INDUSTRY_INTROS.get((company.industry or "").lower(), "In my search for innovative companies,")
    appeal = SIZE_APPEALS.get(company.size, "Your company's position in the market is particularly intriguing.")
    local_note = ""
    if info.location.city and company.location and info.location.city.lower() in company.location.lower():
        local_note = " As a local professional, I'm particularly excited about companies in our community."

    signature = "\n".join(
        line
        for line in (
            sender,
            info.email,
            info.phone,
            f"LinkedIn: {info.linkedin_url}" if info.linkedin_url else "",
        )
        if line
    )

    subject = f"Informational Interview Request - {sender}, {title}"
    content = f"""Dear {recipient_name},

My name is {sender}, and I'm a {title} with a strong interest in {company.name}'s work in the {company.industry or 'industry'} space.

{intro} I've been particularly impressed by {company.name}'s {highlights[0].lower()} and {highlights[1].lower()}. {appeal}

With my background in {strength} and passion for {interest}, I believe I could contribute meaningfully to your team.{local_note}

Would you be available for a brief 15-20 minute conversation in the coming weeks? I'd love to learn more about {company.name}'s culture and current initiatives.

Thank you for considering my request.

Best regards,
{signature}"""
    return subject, content


async def generate_email(oracle: GenerativeOracle, profile: UserProfile, company: CompanyRecord) -> EmailEntry:
    """Draft an email for the company's best contact; never raises OracleError."""
    recipient_name, recipient_email, contact = recipient_for(company)

    draft = None
    try:
        draft = await oracle.draft_email(profile, company, contact)
    except OracleError as e:
        logger.warning(f"Email generation failed for {company.name}, using template: {e}")

    if draft is not None and draft.content.strip():
        subject, content = draft.subject or f"Informational Interview Request - {company.name}", draft.content
    else:
        subject, content = template_email(profile, company, recipient_name)

    return EmailEntry(
        recipient_email=recipient_email,
        recipient_name=recipient_name,
        subject=subject,
        content=content,
    )
