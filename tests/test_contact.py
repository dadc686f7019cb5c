"""
Tests for the Contact model and the record normalizers.
"""

import pytest

from crm_sync.sync.contact import COMPARED_FIELDS, Contact, ContactOrigin
from crm_sync.sync.normalizer import (
    normalize_hubspot_record,
    normalize_records,
    normalize_salesforce_record,
)


class TestContact:
    """Tests for the Contact dataclass."""

    def test_defaults(self):
        contact = Contact(source_id="1", email="a@example.com")
        assert contact.name == ""
        assert contact.phone == ""
        assert contact.company == ""
        assert contact.origin is ContactOrigin.SALESFORCE

    def test_is_immutable(self):
        contact = Contact(source_id="1", email="a@example.com")
        with pytest.raises(AttributeError):
            contact.email = "b@example.com"

    def test_field_values_are_trimmed(self):
        contact = Contact("1", "a@example.com", name=" Ada ", phone="1 ", company="")
        assert contact.field_values() == {"name": "Ada", "phone": "1", "company": ""}

    def test_compared_fields_exclude_email(self):
        assert "email" not in COMPARED_FIELDS

    def test_to_payload(self):
        contact = Contact(
            source_id="51",
            email="ada@example.com",
            name="Ada Lovelace",
            phone="555",
            company="Acme",
            origin=ContactOrigin.HUBSPOT,
        )

        assert contact.to_payload() == {
            "sourceId": "51",
            "email": "ada@example.com",
            "name": "Ada Lovelace",
            "phone": "555",
            "company": "Acme",
            "origin": "hubspot",
        }

    def test_repr_contains_email(self):
        assert "ada@example.com" in repr(Contact("1", "ada@example.com"))


class TestNormalizeSalesforceRecord:
    """Tests for normalize_salesforce_record."""

    def test_full_record(self):
        record = {
            "attributes": {"type": "Contact"},
            "Id": "003xx000004TmiQ",
            "FirstName": "Ada",
            "LastName": "Lovelace",
            "Email": " ada@example.com ",
            "Phone": "+44 20 7946 0000",
            "Account": {"Name": "Analytical Engines"},
        }

        contact = normalize_salesforce_record(record)

        assert contact == Contact(
            source_id="003xx000004TmiQ",
            email="ada@example.com",
            name="Ada Lovelace",
            phone="+44 20 7946 0000",
            company="Analytical Engines",
            origin=ContactOrigin.SALESFORCE,
        )

    def test_null_account_and_phone(self):
        record = {"Id": "1", "LastName": "Hopper", "Email": "g@x", "Account": None}

        contact = normalize_salesforce_record(record)

        assert contact.name == "Hopper"
        assert contact.phone == ""
        assert contact.company == ""

    def test_missing_email_is_dropped(self):
        assert normalize_salesforce_record({"Id": "1", "FirstName": "A"}) is None

    def test_blank_email_is_dropped(self):
        assert normalize_salesforce_record({"Id": "1", "Email": "   "}) is None

    def test_email_case_is_preserved(self):
        contact = normalize_salesforce_record({"Id": "1", "Email": "Ada@Example.com"})
        assert contact.email == "Ada@Example.com"


class TestNormalizeHubSpotRecord:
    """Tests for normalize_hubspot_record."""

    def test_full_record(self):
        record = {
            "id": "51",
            "properties": {
                "firstname": "Grace",
                "lastname": "Hopper",
                "email": "grace@example.com",
                "phone": "555-0100",
                "company": "Navy",
            },
        }

        contact = normalize_hubspot_record(record)

        assert contact.source_id == "51"
        assert contact.name == "Grace Hopper"
        assert contact.company == "Navy"
        assert contact.origin is ContactOrigin.HUBSPOT

    def test_null_properties(self):
        record = {
            "id": "52",
            "properties": {"email": "x@example.com", "firstname": None},
        }

        contact = normalize_hubspot_record(record)

        assert contact.name == ""
        assert contact.phone == ""

    def test_missing_properties_is_dropped(self):
        assert normalize_hubspot_record({"id": "53"}) is None

    def test_numeric_id_becomes_string(self):
        contact = normalize_hubspot_record({"id": 54, "properties": {"email": "y@x"}})
        assert contact.source_id == "54"


class TestNormalizeRecords:
    """Tests for batch normalization."""

    def test_counts_dropped_records(self):
        records = [
            {"id": "1", "properties": {"email": "a@x"}},
            {"id": "2", "properties": {"email": ""}},
            {"id": "3", "properties": {}},
            {"id": "4", "properties": {"email": "b@x"}},
        ]

        contacts, dropped = normalize_records(records, normalize_hubspot_record)

        assert [c.source_id for c in contacts] == ["1", "4"]
        assert dropped == 2

    def test_empty_input(self):
        assert normalize_records([], normalize_salesforce_record) == ([], 0)
