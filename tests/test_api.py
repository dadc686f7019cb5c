"""
Tests for the CRM API wrappers.

Tests the generic REST client, the Salesforce query client and the
HubSpot contact client with a mocked HTTP session.
"""

import json
from unittest.mock import MagicMock

import pytest
import requests

from crm_sync.api.base import (
    MAX_FETCH_LIMIT,
    MissingCredentialsError,
    RestClient,
    SourceCredentials,
    UpstreamError,
    clamp_limit,
)
from crm_sync.api.hubspot import (
    CONTACTS_PATH,
    CONTACT_PROPERTIES,
    HubSpotClient,
    to_hubspot_properties,
)
from crm_sync.api.rate_limit import RateLimiter
from crm_sync.api.salesforce import SalesforceClient, build_contact_query
from crm_sync.sync.contact import Contact, ContactOrigin
from crm_sync.sync.normalizer import normalize_hubspot_record

INSTANCE_URL = "https://acme.my.salesforce.com"


def make_response(status_code=200, json_data=None, text=None):
    """Create a mock requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    if json_data is None:
        response.content = b""
        response.text = text or ""
    else:
        body = json.dumps(json_data)
        response.content = body.encode()
        response.text = text if text is not None else body
    response.json.return_value = json_data
    return response


@pytest.fixture
def session():
    """Create a real session whose request method is mocked."""
    mock_session = requests.Session()
    mock_session.request = MagicMock(return_value=make_response(json_data={}))
    return mock_session


def sf_record(record_id, email, first="Ada", last="Lovelace", account="Acme"):
    return {
        "attributes": {"type": "Contact"},
        "Id": record_id,
        "FirstName": first,
        "LastName": last,
        "Email": email,
        "Phone": "555-0100",
        "Account": {"Name": account} if account else None,
    }


def hs_record(record_id, email, first="Ada", last="Lovelace"):
    return {
        "id": record_id,
        "properties": {
            "firstname": first,
            "lastname": last,
            "email": email,
            "phone": "555-0100",
            "company": "Acme",
        },
    }


# =============================================================================
# RestClient Tests
# =============================================================================


class TestRestClient:
    """Tests for the generic REST client."""

    def make_client(self, session):
        return RestClient(
            "https://api.example.com/",
            "secret",
            normalize_hubspot_record,
            timeout=5,
            session=session,
        )

    def test_empty_token_raises(self, session):
        with pytest.raises(MissingCredentialsError):
            RestClient("https://api.example.com", "", normalize_hubspot_record)

    def test_sets_bearer_header(self, session):
        self.make_client(session)
        assert session.headers["Authorization"] == "Bearer secret"
        assert session.headers["Accept"] == "application/json"
        assert session.headers["User-Agent"].startswith("crm-sync/")

    def test_request_joins_url_and_passes_timeout(self, session):
        client = self.make_client(session)
        session.request.return_value = make_response(json_data={"ok": True})

        data = client.request("GET", "/things", params={"a": 1})

        assert data == {"ok": True}
        session.request.assert_called_once_with(
            "GET", "https://api.example.com/things", timeout=5, params={"a": 1}
        )

    def test_empty_body_returns_none(self, session):
        client = self.make_client(session)
        session.request.return_value = make_response(204)

        assert client.request("PATCH", "/things/1") is None

    def test_non_2xx_raises_upstream_error(self, session):
        client = self.make_client(session)
        session.request.return_value = make_response(
            401, json_data={"message": "expired"}, text="token expired"
        )

        with pytest.raises(UpstreamError) as exc_info:
            client.request("GET", "/things")

        assert exc_info.value.status == 401
        assert exc_info.value.body == "token expired"
        assert str(exc_info.value) == "crm API error 401: token expired"

    def test_transport_failure_raises_upstream_error(self, session):
        client = self.make_client(session)
        session.request.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(UpstreamError) as exc_info:
            client.request("GET", "/things")

        assert exc_info.value.status is None
        assert "connection refused" in str(exc_info.value)

    def test_invalid_json_raises_upstream_error(self, session):
        client = self.make_client(session)
        response = make_response(200, json_data={}, text="<html>")
        response.json.side_effect = ValueError("no json")
        session.request.return_value = response

        with pytest.raises(UpstreamError, match="invalid JSON"):
            client.request("GET", "/things")

    def test_normalize_drops_records_without_email(self, session):
        client = self.make_client(session)
        contacts = client.normalize(
            [hs_record("1", "a@example.com"), hs_record("2", "  ")]
        )
        assert [c.email for c in contacts] == ["a@example.com"]


class TestHelpers:
    """Tests for module helpers."""

    def test_clamp_limit(self):
        assert clamp_limit(500) == MAX_FETCH_LIMIT
        assert clamp_limit(10) == 10
        assert clamp_limit(-1) == 0

    def test_credentials_repr_hides_token(self):
        creds = SourceCredentials("super-secret", instance_url=INSTANCE_URL)
        assert "super-secret" not in repr(creds)

    def test_upstream_error_message_with_status(self):
        error = UpstreamError("hubspot", 429, "rate limited")
        assert str(error) == "hubspot API error 429: rate limited"


# =============================================================================
# Salesforce Tests
# =============================================================================


class TestSalesforceClient:
    """Tests for SalesforceClient."""

    def test_missing_instance_url_raises(self, session):
        with pytest.raises(MissingCredentialsError):
            SalesforceClient("token", "", session=session)

    def test_empty_token_raises(self, session):
        with pytest.raises(MissingCredentialsError):
            SalesforceClient("", INSTANCE_URL, session=session)

    def test_from_credentials(self, session):
        creds = SourceCredentials("token", instance_url=INSTANCE_URL + "/")
        client = SalesforceClient.from_credentials(creds, session=session)
        assert client.base_url == f"{INSTANCE_URL}/services/data/v59.0"

    def test_fetch_contacts_queries_soql(self, session):
        client = SalesforceClient("token", INSTANCE_URL, session=session)
        session.request.return_value = make_response(
            json_data={
                "totalSize": 2,
                "done": True,
                "records": [
                    sf_record("003A", "ada@example.com"),
                    sf_record("003B", "grace@example.com", "Grace", "Hopper", None),
                ],
            }
        )

        contacts = client.fetch_contacts(limit=50)

        args, kwargs = session.request.call_args
        assert args == ("GET", f"{INSTANCE_URL}/services/data/v59.0/query")
        assert kwargs["params"]["q"] == build_contact_query(50)
        assert [c.source_id for c in contacts] == ["003A", "003B"]
        assert contacts[0].company == "Acme"
        assert contacts[1].company == ""
        assert all(c.origin is ContactOrigin.SALESFORCE for c in contacts)

    def test_fetch_contacts_clamps_limit(self, session):
        client = SalesforceClient("token", INSTANCE_URL, session=session)
        session.request.return_value = make_response(json_data={"records": []})

        client.fetch_contacts(limit=1000)

        query = session.request.call_args[1]["params"]["q"]
        assert query.endswith("LIMIT 100")

    def test_fetch_contacts_drops_missing_email(self, session):
        client = SalesforceClient("token", INSTANCE_URL, session=session)
        session.request.return_value = make_response(
            json_data={"records": [sf_record("003A", None), sf_record("003B", "b@x")]}
        )

        contacts = client.fetch_contacts()

        assert [c.email for c in contacts] == ["b@x"]

    def test_fetch_contacts_error(self, session):
        client = SalesforceClient("token", INSTANCE_URL, session=session)
        session.request.return_value = make_response(
            401, json_data=[{"errorCode": "INVALID_SESSION_ID"}]
        )

        with pytest.raises(UpstreamError) as exc_info:
            client.fetch_contacts()

        assert exc_info.value.service == "salesforce"
        assert "INVALID_SESSION_ID" in exc_info.value.body

    def test_build_contact_query(self):
        query = build_contact_query(25)
        assert query.startswith("SELECT Id,FirstName,LastName,Email,Phone,Account.Name")
        assert "FROM Contact" in query
        assert query.endswith("LIMIT 25")


# =============================================================================
# HubSpot Tests
# =============================================================================


class TestHubSpotClient:
    """Tests for HubSpotClient."""

    @pytest.fixture
    def limiter(self):
        return MagicMock(spec=RateLimiter)

    @pytest.fixture
    def client(self, session, limiter):
        return HubSpotClient("pat-token", rate_limiter=limiter, session=session)

    def test_empty_token_raises(self, session):
        with pytest.raises(MissingCredentialsError):
            HubSpotClient("", session=session)

    def test_default_rate_limiter(self, session):
        client = HubSpotClient("pat-token", session=session)
        assert client.rate_limiter.interval == pytest.approx(0.2)

    def test_fetch_contacts(self, client, session):
        session.request.return_value = make_response(
            json_data={"results": [hs_record("51", "ada@example.com")]}
        )

        contacts = client.fetch_contacts(limit=20)

        args, kwargs = session.request.call_args
        assert args == ("GET", f"https://api.hubapi.com{CONTACTS_PATH}")
        assert kwargs["params"] == {
            "limit": 20,
            "properties": ",".join(CONTACT_PROPERTIES),
            "archived": "false",
        }
        assert contacts == [
            Contact(
                source_id="51",
                email="ada@example.com",
                name="Ada Lovelace",
                phone="555-0100",
                company="Acme",
                origin=ContactOrigin.HUBSPOT,
            )
        ]

    def test_find_by_email_found(self, client, session):
        session.request.return_value = make_response(
            json_data={"total": 1, "results": [hs_record("51", "ada@example.com")]}
        )

        contact = client.find_by_email("ada@example.com")

        args, kwargs = session.request.call_args
        assert args == ("POST", f"https://api.hubapi.com{CONTACTS_PATH}/search")
        filters = kwargs["json"]["filterGroups"][0]["filters"]
        assert filters == [
            {"propertyName": "email", "operator": "EQ", "value": "ada@example.com"}
        ]
        assert contact.source_id == "51"

    def test_find_by_email_not_found(self, client, session):
        session.request.return_value = make_response(
            json_data={"total": 0, "results": []}
        )
        assert client.find_by_email("nobody@example.com") is None

    def test_find_by_email_failure_returns_none(self, client, session):
        session.request.return_value = make_response(500, text="server error")
        assert client.find_by_email("ada@example.com") is None

    def test_find_by_email_is_not_rate_limited(self, client, session, limiter):
        session.request.return_value = make_response(json_data={"results": []})
        client.find_by_email("ada@example.com")
        limiter.acquire.assert_not_called()

    def test_create_contact(self, client, session, limiter):
        session.request.return_value = make_response(201, json_data={"id": 901})
        contact = Contact("003A", "ada@example.com", "Ada King Lovelace", "", "Acme")

        new_id = client.create_contact(contact)

        assert new_id == "901"
        limiter.acquire.assert_called_once()
        args, kwargs = session.request.call_args
        assert args == ("POST", f"https://api.hubapi.com{CONTACTS_PATH}")
        assert kwargs["json"] == {
            "properties": {
                "email": "ada@example.com",
                "firstname": "Ada",
                "lastname": "King Lovelace",
                "phone": "",
                "company": "Acme",
            }
        }

    def test_update_contact(self, client, session, limiter):
        session.request.return_value = make_response(json_data={"id": "51"})
        contact = Contact("003A", "ada@example.com", "Ada Lovelace")

        client.update_contact("51", contact)

        limiter.acquire.assert_called_once()
        args, kwargs = session.request.call_args
        assert args == ("PATCH", f"https://api.hubapi.com{CONTACTS_PATH}/51")
        assert kwargs["json"]["properties"]["lastname"] == "Lovelace"

    def test_create_contact_error_propagates(self, client, session):
        session.request.return_value = make_response(
            409, text="Contact already exists"
        )

        with pytest.raises(UpstreamError) as exc_info:
            client.create_contact(Contact("003A", "ada@example.com"))

        assert exc_info.value.status == 409

    def test_custom_base_url(self, session):
        client = HubSpotClient(
            "pat-token", base_url="http://localhost:8080/", session=session
        )
        assert client.base_url == "http://localhost:8080"

    def test_to_hubspot_properties_single_name(self):
        properties = to_hubspot_properties(Contact("1", "a@x", name="Cher"))
        assert properties["firstname"] == "Cher"
        assert properties["lastname"] == ""
