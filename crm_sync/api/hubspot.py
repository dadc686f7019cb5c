"""
HubSpot CRM v3 API wrapper (sink side).

Provides listing, search-by-email, create and update for contact objects.
Create and update calls are paced by the client's RateLimiter.
"""

import logging
from typing import Any, Optional

import requests

from crm_sync.api.base import (
    DEFAULT_TIMEOUT,
    MAX_FETCH_LIMIT,
    RestClient,
    SinkClient,
    SourceCredentials,
    UpstreamError,
    clamp_limit,
)
from crm_sync.api.rate_limit import RateLimiter
from crm_sync.sync.contact import Contact
from crm_sync.sync.normalizer import normalize_hubspot_record
from crm_sync.utils.normalization import split_name

DEFAULT_BASE_URL = "https://api.hubapi.com"

CONTACTS_PATH = "/crm/v3/objects/contacts"

# Contact properties requested from and written to HubSpot
CONTACT_PROPERTIES = ["firstname", "lastname", "email", "phone", "company"]

logger = logging.getLogger(__name__)


def to_hubspot_properties(contact: Contact) -> dict[str, str]:
    """
    Convert a Contact into HubSpot contact properties.

    The full name is split on its first space into first and last name.

    Args:
        contact: Contact to write

    Returns:
        Property dictionary for create/update payloads
    """
    first, last = split_name(contact.name)
    return {
        "email": contact.email,
        "firstname": first,
        "lastname": last,
        "phone": contact.phone,
        "company": contact.company,
    }


class HubSpotClient(RestClient, SinkClient):
    """
    HubSpot contact sink.

    Usage:
        client = HubSpotClient(access_token="pat-na1-...")

        # Bounded listing
        contacts = client.fetch_contacts(limit=100)

        # Upsert one contact
        existing = client.find_by_email(contact.email)
        if existing:
            client.update_contact(existing.source_id, contact)
        else:
            new_id = client.create_contact(contact)
    """

    service_name = "hubspot"

    def __init__(
        self,
        access_token: str,
        base_url: str = DEFAULT_BASE_URL,
        rate_limiter: Optional[RateLimiter] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the HubSpot client.

        Args:
            access_token: OAuth or private-app bearer token
            base_url: API base URL (default https://api.hubapi.com)
            rate_limiter: Limiter pacing create/update calls
                (default: 200 ms minimum spacing)
            timeout: Per-request timeout in seconds
            session: Optional pre-built session (used by tests)

        Raises:
            MissingCredentialsError: If the token is empty
        """
        RestClient.__init__(
            self,
            base_url=base_url,
            access_token=access_token,
            normalizer=normalize_hubspot_record,
            timeout=timeout,
            session=session,
        )
        SinkClient.__init__(self, rate_limiter=rate_limiter)

    @classmethod
    def from_credentials(
        cls, credentials: SourceCredentials, **kwargs: Any
    ) -> "HubSpotClient":
        """Build a client from explicit credentials."""
        return cls(access_token=credentials.access_token, **kwargs)

    def fetch_contacts(self, limit: int = MAX_FETCH_LIMIT) -> list[Contact]:
        """
        Fetch one page of up to ``limit`` contacts.

        Args:
            limit: Maximum number of records (clamped to 100)

        Returns:
            Normalized contacts

        Raises:
            UpstreamError: If the listing fails
        """
        params = {
            "limit": clamp_limit(limit),
            "properties": ",".join(CONTACT_PROPERTIES),
            "archived": "false",
        }
        data = self.request("GET", CONTACTS_PATH, params=params) or {}

        records: list[dict[str, Any]] = data.get("results", [])
        contacts = self.normalize(records)
        logger.info(f"Fetched {len(contacts)} contacts from HubSpot")
        return contacts

    def find_by_email(self, email: str) -> Optional[Contact]:
        """
        Search for a contact whose email equals ``email``.

        A failed lookup is logged and reported as "not found" so a single
        bad lookup never aborts a batch.

        Args:
            email: Email to search for (used as-is)

        Returns:
            Matching Contact, or None
        """
        email_filter = {"propertyName": "email", "operator": "EQ", "value": email}
        body = {
            "filterGroups": [{"filters": [email_filter]}],
            "properties": CONTACT_PROPERTIES,
            "limit": 1,
        }

        try:
            data = self.request("POST", f"{CONTACTS_PATH}/search", json=body) or {}
        except UpstreamError as e:
            logger.warning(f"HubSpot lookup for {email} failed: {e}")
            return None

        results = self.normalize(data.get("results", []))
        return results[0] if results else None

    def _create(self, contact: Contact) -> str:
        """Create a HubSpot contact and return its id."""
        data = self.request(
            "POST",
            CONTACTS_PATH,
            json={"properties": to_hubspot_properties(contact)},
        )
        new_id = str((data or {}).get("id", ""))
        logger.debug(f"Created HubSpot contact {new_id} for {contact.email}")
        return new_id

    def _update(self, external_id: str, contact: Contact) -> None:
        """Overwrite the properties of an existing HubSpot contact."""
        self.request(
            "PATCH",
            f"{CONTACTS_PATH}/{external_id}",
            json={"properties": to_hubspot_properties(contact)},
        )
        logger.debug(f"Updated HubSpot contact {external_id} for {contact.email}")

    def __repr__(self) -> str:
        """Return a readable string representation."""
        return f"HubSpotClient(base_url={self.base_url!r}, {self.rate_limiter!r})"
