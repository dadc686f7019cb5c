"""
Entry point for running crm_sync as a module.

Usage:
    python -m crm_sync --help
    python -m crm_sync sync --user-id alice --tier full
    python -m crm_sync history --user-id alice
"""

from crm_sync.cli import cli

if __name__ == "__main__":
    cli()
