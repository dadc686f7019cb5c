"""
Record normalizers mapping raw CRM payloads onto Contact.

Each normalizer is a pure function: it never performs I/O and returns None
(the "drop" sentinel) when a record has no usable email address.

Salesforce Contact record (from a SOQL query)::

    {
        'attributes': {'type': 'Contact', 'url': '...'},
        'Id': '003xx000004TmiQ',
        'FirstName': 'Ada',
        'LastName': 'Lovelace',
        'Email': 'ada@example.com',
        'Phone': '+44 20 7946 0000',
        'Account': {'Name': 'Analytical Engines'}
    }

HubSpot contact object (CRM v3)::

    {
        'id': '51',
        'properties': {
            'firstname': 'Ada',
            'lastname': 'Lovelace',
            'email': 'ada@example.com',
            'phone': '+44 20 7946 0000',
            'company': 'Analytical Engines'
        }
    }
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any, Optional

from crm_sync.sync.contact import Contact, ContactOrigin
from crm_sync.utils.normalization import clean_value, join_name

logger = logging.getLogger(__name__)

RecordNormalizer = Callable[[dict[str, Any]], Optional[Contact]]


def normalize_salesforce_record(record: dict[str, Any]) -> Optional[Contact]:
    """
    Normalize a Salesforce Contact record.

    Args:
        record: One entry of a SOQL query's ``records`` array

    Returns:
        Contact, or None if the record has no email
    """
    email = clean_value(record.get("Email"))
    if not email:
        return None

    # Account is a relationship field and may be null
    account = record.get("Account") or {}

    return Contact(
        source_id=clean_value(record.get("Id")),
        email=email,
        name=join_name(record.get("FirstName"), record.get("LastName")),
        phone=clean_value(record.get("Phone")),
        company=clean_value(account.get("Name")),
        origin=ContactOrigin.SALESFORCE,
    )


def normalize_hubspot_record(record: dict[str, Any]) -> Optional[Contact]:
    """
    Normalize a HubSpot contact object.

    Args:
        record: One entry of a CRM v3 ``results`` array

    Returns:
        Contact, or None if the record has no email
    """
    properties = record.get("properties") or {}

    email = clean_value(properties.get("email"))
    if not email:
        return None

    return Contact(
        source_id=clean_value(record.get("id")),
        email=email,
        name=join_name(properties.get("firstname"), properties.get("lastname")),
        phone=clean_value(properties.get("phone")),
        company=clean_value(properties.get("company")),
        origin=ContactOrigin.HUBSPOT,
    )


def normalize_records(
    records: Iterable[dict[str, Any]], normalizer: RecordNormalizer
) -> tuple[list[Contact], int]:
    """
    Normalize a batch of raw records, dropping those without an email.

    Args:
        records: Raw records from an API response
        normalizer: Per-record normalizer function

    Returns:
        Tuple of (normalized contacts, number of dropped records)
    """
    contacts: list[Contact] = []
    dropped = 0

    for record in records:
        contact = normalizer(record)
        if contact is None:
            dropped += 1
            record_id = record.get("Id") or record.get("id")
            logger.debug(f"Dropping record without email: {record_id}")
            continue
        contacts.append(contact)

    return contacts, dropped
