"""
Email-keyed reconciliation of two contact lists.

Classifies every contact from the primary list (A) and the sink list (B)
into one of three outcomes:

- OnlyInA: email present in A but not in B
- OnlyInB: email present in B but never probed from A
- Matched: email present in both, with the set of conflicting fields

Matching uses an index of B keyed by email, so reconciliation runs in
O(|A| + |B|). Emails are compared as exact strings: the normalizer has
already trimmed them and case is significant.
"""

import logging
from dataclasses import dataclass, field
from typing import Union

from crm_sync.sync.contact import COMPARED_FIELDS, Contact

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnlyInA:
    """Contact found only in the primary list."""

    contact: Contact


@dataclass(frozen=True)
class OnlyInB:
    """Contact found only in the sink list."""

    contact: Contact


@dataclass(frozen=True)
class Matched:
    """
    Pair of contacts sharing an email.

    Attributes:
        contact_a: Contact from the primary list
        contact_b: Contact from the sink list
        conflicts: Names of fields whose trimmed values differ
    """

    contact_a: Contact
    contact_b: Contact
    conflicts: frozenset[str] = frozenset()

    @property
    def has_conflicts(self) -> bool:
        """True if any compared field differs."""
        return bool(self.conflicts)


MatchResult = Union[OnlyInA, OnlyInB, Matched]


@dataclass
class ReconcileResult:
    """Outcome of reconciling two contact lists."""

    only_in_a: list[OnlyInA] = field(default_factory=list)
    only_in_b: list[OnlyInB] = field(default_factory=list)
    matched: list[Matched] = field(default_factory=list)

    @property
    def conflicts_count(self) -> int:
        """Number of matched pairs with at least one conflicting field."""
        return sum(1 for match in self.matched if match.has_conflicts)

    def results(self) -> list[MatchResult]:
        """All match results: matched and A-only in A order, then B-only."""
        ordered: list[MatchResult] = []
        ordered.extend(self.matched)
        ordered.extend(self.only_in_a)
        ordered.extend(self.only_in_b)
        return ordered

    def summary(self) -> str:
        """One-line human-readable summary."""
        return (
            f"{len(self.matched)} matched ({self.conflicts_count} with conflicts), "
            f"{len(self.only_in_a)} only in primary, "
            f"{len(self.only_in_b)} only in sink"
        )


def field_conflicts(contact_a: Contact, contact_b: Contact) -> frozenset[str]:
    """
    Compute the conflicting fields between two contacts.

    Compares name, phone and company after trimming, by exact string
    inequality. Email is the match key and is never reported.

    Args:
        contact_a: Contact from the primary list
        contact_b: Contact from the sink list

    Returns:
        Frozen set of differing field names (empty if none differ)
    """
    values_a = contact_a.field_values()
    values_b = contact_b.field_values()
    return frozenset(
        name for name in COMPARED_FIELDS if values_a[name] != values_b[name]
    )


def reconcile(list_a: list[Contact], list_b: list[Contact]) -> ReconcileResult:
    """
    Reconcile the primary list against the sink list.

    Args:
        list_a: Contacts from the primary (read) side
        list_b: Contacts from the sink (write) side

    Returns:
        ReconcileResult with every contact classified exactly once
    """
    result = ReconcileResult()

    # First occurrence of an email wins the index slot
    index: dict[str, int] = {}
    for position, contact in enumerate(list_b):
        index.setdefault(contact.email, position)

    probed: set[int] = set()
    for contact_a in list_a:
        position = index.get(contact_a.email)
        if position is None:
            result.only_in_a.append(OnlyInA(contact_a))
            continue

        probed.add(position)
        contact_b = list_b[position]
        conflicts = field_conflicts(contact_a, contact_b)
        result.matched.append(Matched(contact_a, contact_b, conflicts))

        if conflicts:
            logger.debug(
                f"Conflict on {contact_a.email}: {', '.join(sorted(conflicts))}"
            )

    # Complement of the probed slots, including duplicate B emails
    for position, contact_b in enumerate(list_b):
        if position not in probed:
            result.only_in_b.append(OnlyInB(contact_b))

    logger.info(f"Reconciled contacts: {result.summary()}")
    return result
