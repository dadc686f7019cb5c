"""
Salesforce REST API wrapper (primary, read-only side).

Queries Contact records through the SOQL query endpoint of a tenant's
instance URL and normalizes them into Contact values.
"""

import logging
from typing import Any, Optional

import requests

from crm_sync.api.base import (
    DEFAULT_TIMEOUT,
    MAX_FETCH_LIMIT,
    MissingCredentialsError,
    RestClient,
    SourceClient,
    SourceCredentials,
    clamp_limit,
)
from crm_sync.sync.contact import Contact
from crm_sync.sync.normalizer import normalize_salesforce_record

# REST API version used in the query path
DEFAULT_API_VERSION = "v59.0"

# Contact fields selected by every query
CONTACT_FIELDS = ",".join(
    [
        "Id",
        "FirstName",
        "LastName",
        "Email",
        "Phone",
        "Account.Name",
    ]
)

logger = logging.getLogger(__name__)


def build_contact_query(limit: int) -> str:
    """
    Build the SOQL query for a bounded contact fetch.

    Records without an email are excluded server-side; the normalizer
    still drops any that slip through (e.g. whitespace-only values).

    Args:
        limit: Maximum number of rows (already clamped)

    Returns:
        SOQL query string
    """
    return (
        f"SELECT {CONTACT_FIELDS} FROM Contact "
        f"WHERE Email != null ORDER BY LastModifiedDate DESC LIMIT {limit}"
    )


class SalesforceClient(RestClient, SourceClient):
    """
    Read-only Salesforce contact source.

    Usage:
        client = SalesforceClient(
            access_token="00D...",
            instance_url="https://acme.my.salesforce.com",
        )
        contacts = client.fetch_contacts(limit=100)
    """

    service_name = "salesforce"

    def __init__(
        self,
        access_token: str,
        instance_url: str,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the Salesforce client.

        Args:
            access_token: OAuth bearer token
            instance_url: Tenant base URL, e.g. https://acme.my.salesforce.com
            api_version: REST API version (default v59.0)
            timeout: Per-request timeout in seconds
            session: Optional pre-built session (used by tests)

        Raises:
            MissingCredentialsError: If the token or instance URL is empty
        """
        if not instance_url:
            raise MissingCredentialsError("salesforce instance URL is missing")

        self.instance_url = instance_url.rstrip("/")
        self.api_version = api_version
        super().__init__(
            base_url=f"{self.instance_url}/services/data/{api_version}",
            access_token=access_token,
            normalizer=normalize_salesforce_record,
            timeout=timeout,
            session=session,
        )

    @classmethod
    def from_credentials(
        cls, credentials: SourceCredentials, **kwargs: Any
    ) -> "SalesforceClient":
        """Build a client from explicit credentials."""
        return cls(
            access_token=credentials.access_token,
            instance_url=credentials.instance_url or "",
            **kwargs,
        )

    def fetch_contacts(self, limit: int = MAX_FETCH_LIMIT) -> list[Contact]:
        """
        Fetch up to ``limit`` contacts with a single SOQL query.

        Args:
            limit: Maximum number of records (clamped to 100)

        Returns:
            Normalized contacts

        Raises:
            UpstreamError: If the query fails
        """
        soql = build_contact_query(clamp_limit(limit))
        data = self.request("GET", "/query", params={"q": soql}) or {}

        records: list[dict[str, Any]] = data.get("records", [])
        contacts = self.normalize(records)
        logger.info(f"Fetched {len(contacts)} contacts from Salesforce")
        return contacts

    def __repr__(self) -> str:
        """Return a readable string representation."""
        return f"SalesforceClient(instance_url={self.instance_url!r})"
