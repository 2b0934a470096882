"""
Eligibility filter for HP transaction export.

A fetched transaction is eligible when it is:
- cleared (or reconciled) in Actual
- categorized under one of the HP category group's categories
- not already tagged with an export marker

The filter is pure: no I/O, input order is preserved.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from typing import TYPE_CHECKING

from .markers import has_export_marker

if TYPE_CHECKING:
    from actual_xano.ledger_client import LedgerTransaction


def is_eligible(transaction: LedgerTransaction, category_ids: Collection[str]) -> bool:
    """Return True if a single transaction qualifies for export."""
    if not transaction.cleared:
        return False
    if not transaction.category or transaction.category not in category_ids:
        return False
    return not has_export_marker(transaction.notes)


def filter_eligible(
    transactions: Iterable[LedgerTransaction],
    category_ids: Collection[str],
) -> list[LedgerTransaction]:
    """
    Select the transactions that qualify for export.

    Args:
        transactions: Candidate transactions, in fetch order
        category_ids: Category ids belonging to the HP category group

    Returns:
        Eligible transactions, in the same relative order
    """
    category_ids = frozenset(category_ids)
    return [t for t in transactions if is_eligible(t, category_ids)]
