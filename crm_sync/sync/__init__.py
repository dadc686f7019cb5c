"""
crm_sync.sync - Reconciliation and sync engine

Contains the Contact model, record normalizers, the email reconciler and
the sync engine.
"""
