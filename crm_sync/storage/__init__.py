"""
crm_sync.storage - Persistent run log and synced contacts
"""

from crm_sync.storage.db import RunStatus, SyncDatabase, SyncRun

__all__ = ["RunStatus", "SyncDatabase", "SyncRun"]
