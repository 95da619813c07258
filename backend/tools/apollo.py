"""
Apollo enrichment client.

Looks up a company by name and pulls its HR / talent contacts.
"""

import logging

from backend.config import Settings, settings as default_settings
from backend.models.company import HRContact, size_from_employee_count
from backend.models.enrichment import ApolloPatch
from backend.tools.base import HTTPOracle, OracleError, unexpected_shape

logger = logging.getLogger(__name__)

APOLLO_API_URL = "https://api.apollo.io"

HR_TITLES = [
    "Human Resources",
    "HR Director",
    "Recruiter",
    "Talent Acquisition",
    "People Operations",
    "Head of People",
    "VP of People",
    "Talent Partner",
]


def _strip_url(url: str) -> str:
    return url.removeprefix("https://").removeprefix("http://").rstrip("/")


class ApolloClient(HTTPOracle):
    """Enrichment provider A."""

    provider = "apollo"

    def __init__(self, config: Settings | None = None, transport=None):
        config = config or default_settings
        super().__init__(
            api_key=config.apollo_api_key,
            base_url=APOLLO_API_URL,
            timeout=config.oracle_timeout,
            min_interval=config.provider_min_interval,
            transport=transport,
        )

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Cache-Control": "no-cache",
            "X-Api-Key": self.api_key,
        }

    async def lookup_company_and_contacts(self, name: str, location: str | None = None) -> ApolloPatch | None:
        """
        Find a company by name and its HR contacts.

        Returns None when the credential is missing or no account matched.
        A failed contact lookup degrades to an empty contact list.
        """
        if not self.enabled:
            return None

        payload = {"q_organization_name": name, "per_page": 1}
        if location:
            payload["organization_locations"] = [location]
        data = await self._request("POST", "/api/v1/accounts/search", json=payload, headers=self._headers())

        with unexpected_shape(self.provider):
            accounts = data.get("accounts") or []
            if not accounts:
                return None
            account = accounts[0]
            if not isinstance(account, dict):
                raise OracleError(self.provider, "Unexpected account shape")
            website = account.get("website_url")
            domain = _strip_url(website) if website else None

        contacts: list[HRContact] = []
        if domain:
            try:
                contacts = await self._lookup_contacts(domain)
            except OracleError as e:
                logger.warning(f"Apollo contact lookup failed for {name}: {e}")

        with unexpected_shape(self.provider):
            city, state = account.get("city") or "", account.get("state") or ""
            employees = account.get("estimated_num_employees")
            return ApolloPatch(
                domain=domain,
                website=website,
                location=", ".join(part for part in (city, state) if part) or None,
                industry=account.get("industry"),
                size=size_from_employee_count(employees) if employees else None,
                employee_count=employees,
                description=account.get("short_description"),
                hr_contacts=contacts,
                apollo_id=account.get("id"),
            )

    async def _lookup_contacts(self, domain: str) -> list[HRContact]:
        payload = {
            "q_organization_domains": [domain],
            "q_person_titles": HR_TITLES,
            "contact_email_status": ["verified", "guessed"],
            "per_page": 10,
        }
        data = await self._request("POST", "/api/v1/contacts/search", json=payload, headers=self._headers())

        contacts = []
        with unexpected_shape(self.provider):
            for person in data.get("people") or []:
                verified = person.get("email_status") == "verified"
                contacts.append(
                    HRContact(
                        name=f"{person.get('first_name') or ''} {person.get('last_name') or ''}".strip(),
                        email=person.get("email") or "",
                        title=person.get("title") or "",
                        confidence=95 if verified else 80,
                        verified=verified,
                        source="apollo",
                        linkedin_url=person.get("linkedin_url"),
                    )
                )
        return contacts
