"""
crm_sync.api - CRM API clients

Contains the generic REST client, the Salesforce and HubSpot wrappers and
the rate limiter pacing sink writes.
"""

from crm_sync.api.base import (
    CRMSyncError,
    MissingCredentialsError,
    SinkClient,
    SourceClient,
    SourceCredentials,
    UpstreamError,
)
from crm_sync.api.hubspot import HubSpotClient
from crm_sync.api.rate_limit import RateLimiter
from crm_sync.api.salesforce import SalesforceClient

__all__ = [
    "CRMSyncError",
    "HubSpotClient",
    "MissingCredentialsError",
    "RateLimiter",
    "SalesforceClient",
    "SinkClient",
    "SourceClient",
    "SourceCredentials",
    "UpstreamError",
]
