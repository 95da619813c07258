"""
Hunter enrichment client.

Domain search filtered down to HR / recruiting people.
"""

from backend.config import Settings, settings as default_settings
from backend.models.company import HRContact
from backend.models.enrichment import HunterPatch
from backend.tools.base import HTTPOracle, unexpected_shape

HUNTER_API_URL = "https://api.hunter.io"

HR_POSITION_KEYWORDS = ("recruit", "talent", "people", "human resources")


def is_hr_email(email: dict) -> bool:
    """True for HR-department entries or recruiting-style positions."""
    if email.get("department") == "hr":
        return True
    position = (email.get("position") or "").lower()
    return any(keyword in position for keyword in HR_POSITION_KEYWORDS)


class HunterClient(HTTPOracle):
    """Enrichment provider B."""

    provider = "hunter"

    def __init__(self, config: Settings | None = None, transport=None):
        config = config or default_settings
        super().__init__(
            api_key=config.hunter_api_key,
            base_url=HUNTER_API_URL,
            timeout=config.oracle_timeout,
            min_interval=config.provider_min_interval,
            transport=transport,
        )

    async def lookup_contacts_by_domain(self, domain: str) -> HunterPatch | None:
        """Return HR contacts for a domain, or None without a credential or domain."""
        if not self.enabled or not domain:
            return None

        params = {"domain": domain, "limit": 10, "type": "personal", "api_key": self.api_key}
        data = await self._request("GET", "/v2/domain-search", params=params)

        with unexpected_shape(self.provider):
            emails = (data.get("data") or {}).get("emails") or []
            contacts = [
                HRContact(
                    name=f"{email.get('first_name') or ''} {email.get('last_name') or ''}".strip(),
                    email=email.get("value") or "",
                    title=email.get("position") or "",
                    confidence=min(100, max(0, int(email.get("confidence") or 0))),
                    verified=(email.get("verification") or {}).get("result") == "deliverable",
                    source="hunter",
                    linkedin_url=email.get("linkedin"),
                )
                for email in emails
                if isinstance(email, dict) and is_hr_email(email)
            ]
            return HunterPatch(hr_contacts=contacts)
