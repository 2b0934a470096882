"""
CLI runner module.

Provides commands:
- run: One processing pass (scheduled or --manual)
- status: Counters and statistics
- reprocess: Reset failed transactions
- mark-paid: Advance a submitted transaction to paid
- init-sensors / check-config / init-config: add-on setup helpers
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
