"""
Generic REST client shared by the Salesforce and HubSpot wrappers.

Provides:
- A requests-based client parameterized by base URL and bearer token
- UpstreamError for non-2xx responses and transport failures
- The SourceClient / SinkClient capability interfaces
- SourceCredentials, the explicit per-CRM credential value

No call made through this module is retried: retry policy belongs to the
caller.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import requests
from requests.exceptions import RequestException

from crm_sync import __version__
from crm_sync.api.rate_limit import RateLimiter
from crm_sync.sync.contact import Contact
from crm_sync.sync.normalizer import RecordNormalizer, normalize_records

# HTTP timeout for every CRM call
DEFAULT_TIMEOUT = 30.0  # seconds

# Hard cap on records returned by a single fetch
MAX_FETCH_LIMIT = 100

logger = logging.getLogger(__name__)


class CRMSyncError(Exception):
    """Base class for errors raised by crm_sync."""

    pass


class UpstreamError(CRMSyncError):
    """
    Raised when a CRM call fails.

    Attributes:
        service: Name of the CRM ("salesforce" or "hubspot")
        status: HTTP status code, or None for transport failures
        body: Response body or transport error text
    """

    def __init__(self, service: str, status: Optional[int], body: str):
        self.service = service
        self.status = status
        self.body = body
        if status is None:
            message = f"{service} request failed: {body}"
        else:
            message = f"{service} API error {status}: {body}"
        super().__init__(message)


class MissingCredentialsError(CRMSyncError):
    """Raised when required CRM credentials are absent or incomplete."""

    pass


@dataclass(frozen=True)
class SourceCredentials:
    """
    Credentials for one CRM.

    Attributes:
        access_token: OAuth bearer token
        instance_url: Tenant base URL (Salesforce only)
    """

    access_token: str
    instance_url: Optional[str] = None

    def __repr__(self) -> str:
        """Return a representation that never exposes the token."""
        return f"SourceCredentials(instance_url={self.instance_url!r})"


class RestClient:
    """
    Minimal JSON-over-HTTPS client with bearer authentication.

    Subclasses supply the base URL, service name and record normalizer.

    Attributes:
        base_url: Base URL every request path is appended to
        timeout: Per-request timeout in seconds
        session: Shared requests session carrying the auth header
    """

    service_name = "crm"

    def __init__(
        self,
        base_url: str,
        access_token: str,
        normalizer: RecordNormalizer,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API base URL (trailing slash is ignored)
            access_token: OAuth bearer token
            normalizer: Maps one raw record to a Contact (or None to drop)
            timeout: Per-request timeout in seconds (default 30)
            session: Optional pre-built session (used by tests)
        """
        if not access_token:
            raise MissingCredentialsError(f"{self.service_name} access token is empty")

        self.base_url = base_url.rstrip("/")
        self.normalizer = normalizer
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
                "User-Agent": f"crm-sync/{__version__}",
            }
        )

    def request(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        Perform one HTTP request and decode its JSON body.

        Args:
            method: HTTP method
            path: Path appended to base_url
            **kwargs: Passed through to requests (params, json, ...)

        Returns:
            Decoded JSON body, or None for an empty body

        Raises:
            UpstreamError: On a non-2xx status or a transport failure
        """
        url = f"{self.base_url}{path}"
        logger.debug(f"{self.service_name} {method} {path}")

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except RequestException as e:
            logger.error(f"{self.service_name} {method} {path} failed: {e}")
            raise UpstreamError(self.service_name, None, str(e)) from e

        if not 200 <= response.status_code < 300:
            logger.error(
                f"{self.service_name} {method} {path} returned "
                f"{response.status_code}: {response.text}"
            )
            raise UpstreamError(self.service_name, response.status_code, response.text)

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                self.service_name,
                response.status_code,
                f"invalid JSON response: {response.text[:200]}",
            ) from e

    def normalize(self, records: list[dict[str, Any]]) -> list[Contact]:
        """
        Normalize raw records, logging how many were dropped.

        Args:
            records: Raw records from a list/query response

        Returns:
            Contacts that carry an email
        """
        contacts, dropped = normalize_records(records, self.normalizer)
        if dropped:
            logger.info(
                f"Skipped {dropped} {self.service_name} records without an email"
            )
        return contacts

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()


def clamp_limit(limit: int) -> int:
    """Clamp a requested fetch size to 0..MAX_FETCH_LIMIT."""
    return max(0, min(limit, MAX_FETCH_LIMIT))


class SourceClient(ABC):
    """Read capability: fetch a bounded batch of contacts."""

    @abstractmethod
    def fetch_contacts(self, limit: int = MAX_FETCH_LIMIT) -> list[Contact]:
        """
        Fetch up to ``limit`` contacts.

        The cap is applied by the remote query, not by truncating locally.

        Raises:
            UpstreamError: If the remote call fails
        """

    def close(self) -> None:
        """Release resources held by the client."""


class SinkClient(SourceClient):
    """
    Read/write capability: lookup by email, create and update.

    Writes go through create_contact()/update_contact(), which pace calls
    with the client's RateLimiter before delegating to _create()/_update().
    Implementations only provide the raw calls.
    """

    def __init__(self, rate_limiter: Optional[RateLimiter] = None):
        self.rate_limiter = rate_limiter or RateLimiter()

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[Contact]:
        """
        Look up a contact by exact email.

        Returns None when nothing matches or when the lookup fails.
        """

    def create_contact(self, contact: Contact) -> str:
        """
        Create a contact in the sink, respecting the rate limit.

        Returns:
            Identifier assigned by the sink

        Raises:
            UpstreamError: If the sink rejects the call
        """
        self.rate_limiter.acquire()
        return self._create(contact)

    def update_contact(self, external_id: str, contact: Contact) -> None:
        """
        Overwrite a sink contact with the given values, respecting the rate limit.

        Raises:
            UpstreamError: If the sink rejects the call
        """
        self.rate_limiter.acquire()
        self._update(external_id, contact)

    @abstractmethod
    def _create(self, contact: Contact) -> str:
        """Issue the raw create call."""

    @abstractmethod
    def _update(self, external_id: str, contact: Contact) -> None:
        """Issue the raw update call."""
