"""
Test data builders for ledger and state fixtures.

This module provides:
- Category/group ids shared by the HP test budget
- make_transaction(): LedgerTransaction with HP defaults
- transaction_json(): the same transaction as the Actual bridge returns it
"""

from datetime import date

from actual_xano.ledger_client import LedgerTransaction

HP_GROUP_ID = "a85d9076-d269-4eb4-ab58-92d2f37997c6"
HP_CATEGORY_OFFICE = "cat-office"
HP_CATEGORY_TRAVEL = "cat-travel"
GROCERIES_CATEGORY = "cat-groceries"


def make_transaction(
    tx_id: str,
    amount: int = -4599,
    category: str | None = HP_CATEGORY_OFFICE,
    cleared: bool = True,
    notes: str | None = None,
    payee: str = "Office Depot",
    account: str = "acc-checking",
    day: date = date(2025, 3, 14),
) -> LedgerTransaction:
    """Build a ledger transaction with HP defaults."""
    return LedgerTransaction(
        id=tx_id,
        date=day,
        amount=amount,
        payee=payee,
        account=account,
        category=category,
        notes=notes,
        cleared=cleared,
    )


def transaction_json(
    tx_id: str,
    amount: int = -4599,
    category: str | None = HP_CATEGORY_OFFICE,
    cleared: bool = True,
    notes: str | None = None,
    account: str = "acc-checking",
    day: str = "2025-03-14",
) -> dict:
    """Transaction as returned by GET /transactions on the bridge."""
    return {
        "id": tx_id,
        "account": account,
        "date": day,
        "amount": amount,
        "payee": "payee-uuid-1",
        "payee_name": "Office Depot",
        "category": category,
        "notes": notes,
        "cleared": cleared,
        "reconciled": False,
        "imported_id": None,
    }
