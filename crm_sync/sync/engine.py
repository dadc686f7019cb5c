"""
Sync engine for Salesforce to HubSpot contact synchronization.

Orchestrates one bounded, on-demand sync run: fetches both contact sets
concurrently, reconciles them by email, mirrors a bounded number of
Salesforce contacts into HubSpot and records the run in the run log.
"""

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from crm_sync.api.base import (
    MissingCredentialsError,
    SinkClient,
    SourceClient,
    SourceCredentials,
    UpstreamError,
)
from crm_sync.api.hubspot import HubSpotClient
from crm_sync.api.rate_limit import RateLimiter
from crm_sync.api.salesforce import SalesforceClient
from crm_sync.config.settings import SyncSettings
from crm_sync.storage.db import RunStatus, SyncDatabase, SyncRun
from crm_sync.sync.contact import Contact
from crm_sync.sync.reconciler import ReconcileResult, reconcile

logger = logging.getLogger(__name__)

PrimaryFactory = Callable[[SourceCredentials], SourceClient]
SinkFactory = Callable[[SourceCredentials], SinkClient]


class SyncTier(str, Enum):
    """Entitlement-driven sync policy."""

    FULL = "full"  # fetch both sides and write to the sink
    LIMITED = "limited"  # primary sample only, no writes

    @classmethod
    def from_entitlement(cls, has_full_access: bool) -> "SyncTier":
        """Map a caller's entitlement flag onto a tier."""
        return cls.FULL if has_full_access else cls.LIMITED


@dataclass
class SyncSummary:
    """
    Result of a sync run.

    Per-contact write failures are not listed individually; they show up
    as ``created + updated`` being lower than ``writes_attempted``.
    """

    tier: SyncTier
    contacts_found: int = 0
    sample_contacts: list[Contact] = field(default_factory=list)
    writes_attempted: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0
    conflicts: int = 0
    run_id: Optional[int] = None
    message: str = ""
    reconciliation: Optional[ReconcileResult] = None

    @property
    def contacts_processed(self) -> int:
        """Records actually written to the sink."""
        return self.created + self.updated

    def to_payload(self) -> dict[str, Any]:
        """
        Render the caller-facing result.

        Returns:
            Dictionary with contactsFound, sampleContacts, writesAttempted,
            created, updated, conflicts, runId and message
        """
        return {
            "contactsFound": self.contacts_found,
            "sampleContacts": [c.to_payload() for c in self.sample_contacts],
            "writesAttempted": self.writes_attempted,
            "created": self.created,
            "updated": self.updated,
            "conflicts": self.conflicts,
            "runId": self.run_id,
            "message": self.message,
        }

    def summary(self) -> str:
        """Generate a human-readable multi-line summary."""
        lines = [
            "Sync Summary:",
            f"  Tier: {self.tier.value}",
            f"  Salesforce contacts found: {self.contacts_found}",
        ]
        if self.tier is SyncTier.FULL:
            lines.extend(
                [
                    f"  Writes attempted: {self.writes_attempted}",
                    f"  Created in HubSpot: {self.created}",
                    f"  Updated in HubSpot: {self.updated}",
                ]
            )
            if self.failed:
                lines.append(f"  Failed writes: {self.failed}")
            lines.append(f"  Conflicts: {self.conflicts}")
        if self.run_id is not None:
            lines.append(f"  Run ID: {self.run_id}")
        lines.append("")
        lines.append(self.message)
        return "\n".join(lines)


class SyncEngine:
    """
    One-way Salesforce to HubSpot sync engine.

    Credentials are passed to run() explicitly; the engine holds no state
    between runs other than what it writes to the database.

    Usage:
        engine = SyncEngine(database=SyncDatabase('/path/to/sync.db'))

        summary = engine.run(
            user_id="alice",
            primary=SourceCredentials(sf_token, instance_url=sf_url),
            sink=SourceCredentials(hubspot_token),
            tier=SyncTier.FULL,
        )
        print(summary.summary())

        # Tests inject client factories returning doubles
        engine = SyncEngine(
            database=db,
            primary_factory=lambda creds: fake_salesforce,
            sink_factory=lambda creds: fake_hubspot,
        )
    """

    def __init__(
        self,
        database: Optional[SyncDatabase] = None,
        settings: Optional[SyncSettings] = None,
        primary_factory: Optional[PrimaryFactory] = None,
        sink_factory: Optional[SinkFactory] = None,
    ):
        """
        Initialize the sync engine.

        Args:
            database: Run log storage. Without one, runs are not recorded.
            settings: Sync policy and API settings (defaults if None)
            primary_factory: Builds the primary client from credentials
                (default: SalesforceClient)
            sink_factory: Builds the sink client from credentials
                (default: HubSpotClient with a RateLimiter)
        """
        self.database = database
        self.settings = settings or SyncSettings()
        self.primary_factory = primary_factory or self._build_salesforce_client
        self.sink_factory = sink_factory or self._build_hubspot_client

    def _build_salesforce_client(self, credentials: SourceCredentials) -> SourceClient:
        return SalesforceClient.from_credentials(
            credentials,
            api_version=self.settings.salesforce_api_version,
            timeout=self.settings.request_timeout,
        )

    def _build_hubspot_client(self, credentials: SourceCredentials) -> SinkClient:
        return HubSpotClient.from_credentials(
            credentials,
            base_url=self.settings.hubspot_base_url,
            rate_limiter=RateLimiter(self.settings.write_interval),
            timeout=self.settings.request_timeout,
        )

    def run(
        self,
        user_id: Optional[str],
        primary: Optional[SourceCredentials],
        sink: Optional[SourceCredentials] = None,
        tier: SyncTier = SyncTier.FULL,
    ) -> SyncSummary:
        """
        Perform one sync run.

        Args:
            user_id: User the run is recorded for (None skips the run log)
            primary: Salesforce credentials (required)
            sink: HubSpot credentials; without them a full-tier run is
                read-only. Ignored on the limited tier.
            tier: FULL or LIMITED policy

        Returns:
            SyncSummary describing what was found and written

        Raises:
            MissingCredentialsError: Before any network call or run record,
                if credentials are absent or incomplete
            UpstreamError: If a fetch fails (the run is recorded as ERROR)
        """
        if primary is None or not primary.access_token:
            raise MissingCredentialsError("Salesforce credentials are required")
        if tier is SyncTier.FULL and sink is not None and not sink.access_token:
            raise MissingCredentialsError("HubSpot access token is empty")

        primary_client = self.primary_factory(primary)
        sink_client = None
        if tier is SyncTier.FULL and sink is not None:
            try:
                sink_client = self.sink_factory(sink)
            except Exception:
                primary_client.close()
                raise

        summary = SyncSummary(tier=tier)
        if self.database is not None and user_id:
            summary.run_id = self.database.create_sync_run(user_id)

        logger.info(
            f"Starting {tier.value} sync for {user_id or 'anonymous caller'} "
            f"(run {summary.run_id}, sink={'yes' if sink_client else 'no'})"
        )

        try:
            if tier is SyncTier.LIMITED:
                self._run_limited(primary_client, summary)
            else:
                self._run_full(primary_client, sink_client, summary, user_id)
        except Exception as e:
            logger.error(f"Sync run {summary.run_id} failed: {e}")
            self._complete_run(summary, RunStatus.ERROR, error_message=str(e))
            raise
        finally:
            primary_client.close()
            if sink_client is not None:
                sink_client.close()

        self._complete_run(summary, RunStatus.SUCCESS)
        logger.info(f"Sync run {summary.run_id} complete: {summary.message}")
        return summary

    def _run_limited(self, primary_client: SourceClient, summary: SyncSummary) -> None:
        """Fetch the primary side only and keep a small sample."""
        contacts = primary_client.fetch_contacts(self.settings.full_fetch_limit)

        summary.contacts_found = len(contacts)
        summary.sample_contacts = contacts[: self.settings.sample_size]
        summary.message = (
            f"Limited sync: showing {len(summary.sample_contacts)} of "
            f"{summary.contacts_found} Salesforce contacts. No changes were written."
        )

    def _run_full(
        self,
        primary_client: SourceClient,
        sink_client: Optional[SinkClient],
        summary: SyncSummary,
        user_id: Optional[str],
    ) -> None:
        """Fetch both sides, reconcile and propagate a bounded batch."""
        primary_contacts, sink_contacts = self._fetch_all(primary_client, sink_client)

        summary.contacts_found = len(primary_contacts)
        summary.sample_contacts = primary_contacts[: self.settings.sample_size]

        if sink_client is None:
            summary.message = (
                f"Found {summary.contacts_found} Salesforce contacts. "
                "Connect HubSpot to sync them."
            )
            return

        result = reconcile(primary_contacts, sink_contacts)
        summary.reconciliation = result
        summary.conflicts = result.conflicts_count

        candidates = primary_contacts[: self.settings.write_limit]
        self._propagate(candidates, sink_client, summary, user_id)

        summary.message = (
            f"Synced {summary.contacts_processed} of {summary.writes_attempted} "
            f"contacts to HubSpot ({summary.created} created, "
            f"{summary.updated} updated, {summary.conflicts} conflicts)."
        )

    def _fetch_all(
        self, primary_client: SourceClient, sink_client: Optional[SinkClient]
    ) -> tuple[list[Contact], list[Contact]]:
        """
        Fetch the primary and sink contact sets concurrently.

        Both fetches are awaited; if either fails the error propagates.

        Returns:
            Tuple of (primary contacts, sink contacts)
        """
        limit = self.settings.full_fetch_limit

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="crm-fetch") as pool:
            primary_future = pool.submit(primary_client.fetch_contacts, limit)
            sink_future = (
                pool.submit(sink_client.fetch_contacts, limit) if sink_client else None
            )

            primary_contacts = primary_future.result()
            sink_contacts = sink_future.result() if sink_future else []

        return primary_contacts, sink_contacts

    def _propagate(
        self,
        candidates: list[Contact],
        sink_client: SinkClient,
        summary: SyncSummary,
        user_id: Optional[str],
    ) -> None:
        """
        Create or update each candidate in the sink, one at a time.

        A failed write is logged and skipped; it never aborts the batch.
        """
        logger.info(f"Propagating {len(candidates)} contacts to HubSpot")

        for contact in candidates:
            summary.writes_attempted += 1
            try:
                existing = sink_client.find_by_email(contact.email)
                if existing is not None:
                    external_id = existing.source_id
                    sink_client.update_contact(external_id, contact)
                    summary.updated += 1
                else:
                    external_id = sink_client.create_contact(contact)
                    summary.created += 1
            except UpstreamError as e:
                summary.failed += 1
                logger.warning(f"Skipping {contact.email}: {e}")
                continue

            self._persist_contact(user_id, contact, external_id)

    def _persist_contact(
        self, user_id: Optional[str], contact: Contact, external_id: str
    ) -> None:
        """Store the written contact when persistence is enabled."""
        if self.database is None or not user_id or not self.settings.persist_contacts:
            return
        self.database.upsert_contact(user_id, contact, external_id=external_id or None)

    def _complete_run(
        self,
        summary: SyncSummary,
        status: RunStatus,
        error_message: Optional[str] = None,
    ) -> None:
        """Record the terminal state of the run, if it is being logged."""
        if self.database is None or summary.run_id is None:
            return
        self.database.complete_sync_run(
            summary.run_id,
            status,
            contacts_processed=summary.contacts_processed,
            conflicts_count=summary.conflicts,
            error_message=error_message,
        )

    def get_history(self, user_id: str, limit: int = 10) -> list[SyncRun]:
        """
        Get the most recent runs for a user, newest first.

        Returns an empty list when no database is configured.
        """
        if self.database is None:
            return []
        return self.database.get_recent_sync_runs(user_id, limit=limit)

    def __repr__(self) -> str:
        """Return a readable string representation."""
        db_path = self.database.db_path if self.database else None
        return f"SyncEngine(database={db_path!r}, settings={self.settings!r})"
