"""
crm_sync - Salesforce to HubSpot contact reconciliation

Pulls contacts from Salesforce and HubSpot, matches them by email, records
field conflicts, and mirrors Salesforce contacts into HubSpot.
"""

__version__ = "0.1.0"
