"""
Actual Budget ledger client.

Provides:
- Open/close a budget session on the Actual HTTP bridge
- List category groups, categories and accounts
- List transactions per account and date range
- Append idempotency tags to transaction notes

Errors are classified so callers can tell fatal (connection) failures from
skippable (not-found, validation) ones.
"""

from .client import (
    LedgerAccount,
    LedgerAPIError,
    LedgerCategory,
    LedgerCategoryGroup,
    LedgerClient,
    LedgerConnectionError,
    LedgerError,
    LedgerNotFoundError,
    LedgerTransaction,
    LedgerValidationError,
)

__all__ = [
    "LedgerClient",
    "LedgerError",
    "LedgerAPIError",
    "LedgerConnectionError",
    "LedgerNotFoundError",
    "LedgerValidationError",
    "LedgerAccount",
    "LedgerCategory",
    "LedgerCategoryGroup",
    "LedgerTransaction",
]
