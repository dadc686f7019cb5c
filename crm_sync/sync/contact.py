"""
Contact data model for Salesforce/HubSpot reconciliation.

Provides the normalized Contact value shared by both CRM clients, the
reconciler and the sync engine.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ContactOrigin(str, Enum):
    """CRM a contact was read from."""

    SALESFORCE = "salesforce"  # primary / read side
    HUBSPOT = "hubspot"  # sink / write side


# Fields compared when two contacts share an email
COMPARED_FIELDS = ("name", "phone", "company")


@dataclass(frozen=True)
class Contact:
    """
    Normalized contact representation.

    Instances are produced by the normalizer and never mutated afterwards.

    Attributes:
        source_id: Opaque identifier in the originating CRM
            (Salesforce Id or HubSpot object id)
        email: Matching key, kept exactly as received apart from
            surrounding whitespace
        name: First and last name joined with a single space
        phone: Phone number, empty string when absent
        company: Company / account name, empty string when absent
        origin: Which CRM the contact came from

    Usage:
        contact = Contact(
            source_id="003xx000004TmiQ",
            email="ada@example.com",
            name="Ada Lovelace",
            phone="",
            company="Analytical Engines",
            origin=ContactOrigin.SALESFORCE,
        )
        contact.to_payload()
    """

    source_id: str
    email: str
    name: str = ""
    phone: str = ""
    company: str = ""
    origin: ContactOrigin = ContactOrigin.SALESFORCE

    def field_values(self) -> dict[str, str]:
        """Return the comparable fields, trimmed."""
        return {name: getattr(self, name).strip() for name in COMPARED_FIELDS}

    def to_payload(self) -> dict[str, Any]:
        """
        Render the contact in the caller-facing (camelCase) shape.

        Returns:
            Dictionary suitable for JSON serialization
        """
        return {
            "sourceId": self.source_id,
            "email": self.email,
            "name": self.name,
            "phone": self.phone,
            "company": self.company,
            "origin": self.origin.value,
        }

    def __repr__(self) -> str:
        """Return a readable string representation."""
        return (
            f"Contact(source_id={self.source_id!r}, email={self.email!r}, "
            f"name={self.name!r}, origin={self.origin.value})"
        )
