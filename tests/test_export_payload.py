"""Tests for Xano payload construction."""

from datetime import date
from decimal import Decimal

import pytest
from fixtures import make_transaction

from actual_xano.schemas import build_export_payload, minor_to_major


class TestMinorToMajor:
    """Tests for cents → major unit conversion."""

    @pytest.mark.parametrize(
        "amount,expected",
        [
            (-12345, Decimal("123.45")),
            (12345, Decimal("123.45")),
            (-5, Decimal("0.05")),
            (0, Decimal("0.00")),
            (-100000, Decimal("1000.00")),
        ],
    )
    def test_absolute_major_units(self, amount, expected):
        assert minor_to_major(amount) == expected


class TestBuildExportPayload:
    """Tests for build_export_payload."""

    def test_fields(self):
        tx = make_transaction(
            "tx-1",
            amount=-4599,
            notes="Toner",
            account="acc-card",
            day=date(2025, 2, 3),
        )
        payload = build_export_payload(tx).to_dict()

        assert payload == {
            "actual_transaction_id": "tx-1",
            "payee": "Office Depot",
            "amount": 45.99,
            "date": "2025-02-03",
            "category": "cat-office",
            "notes": "Toner",
            "account": "acc-card",
        }

    def test_missing_notes_sent_as_empty_string(self):
        payload = build_export_payload(make_transaction("tx-1", notes=None))
        assert payload.notes == ""
