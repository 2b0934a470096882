"""
Xano export payload builder.

Converts an Actual transaction (signed amount in cents) into the record
posted to Xano (absolute amount in major currency units).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from actual_xano.ledger_client import LedgerTransaction

MINOR_UNITS_PER_MAJOR = Decimal(100)


def minor_to_major(amount: int) -> Decimal:
    """Convert a signed minor-unit amount to an absolute major-unit Decimal.

    Examples:
        minor_to_major(-12345) → Decimal("123.45")
        minor_to_major(500) → Decimal("5.00")
    """
    value = abs(Decimal(amount)) / MINOR_UNITS_PER_MAJOR
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


@dataclass
class ExportPayload:
    """Normalized transaction record for the Xano /transactions endpoint."""

    actual_transaction_id: str
    payee: str
    amount: Decimal
    date: str  # YYYY-MM-DD
    category: str | None
    notes: str
    account: str | None

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        data = asdict(self)
        data["amount"] = float(self.amount)
        return data


def build_export_payload(transaction: LedgerTransaction) -> ExportPayload:
    """Build the Xano payload for a ledger transaction."""
    return ExportPayload(
        actual_transaction_id=transaction.id,
        payee=transaction.payee,
        amount=minor_to_major(transaction.amount),
        date=transaction.date.isoformat(),
        category=transaction.category,
        notes=transaction.notes or "",
        account=transaction.account,
    )
