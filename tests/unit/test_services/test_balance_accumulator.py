"""
Unit tests for the balance accumulator.

Tests running balances, period totals and input validation.
"""

import pytest
from datetime import date
from decimal import Decimal

from tourbooks.core.exceptions import InvalidAmountError, ValidationError
from tourbooks.core.models import LedgerTransaction, TransactionKind
from tourbooks.services.balance_accumulator import accumulate


def _txn(amount, inflow, day=1):
    return LedgerTransaction(date=date(2024, 6, day), amount=Decimal(str(amount)), is_inflow=inflow)


class TestRunningBalance:
    """Tests for running balance computation."""

    def test_concrete_scenario(self):
        """Opening 1000 with +500, -200, +300."""
        snapshot = accumulate(
            Decimal("1000"),
            [_txn(500, True, 1), _txn(200, False, 2), _txn(300, True, 3)],
        )

        assert snapshot.running_balances == [Decimal("1500"), Decimal("1300"), Decimal("1600")]
        assert snapshot.total_inflow == Decimal("800")
        assert snapshot.total_outflow == Decimal("200")
        assert snapshot.closing_balance == Decimal("1600")

    def test_closing_matches_totals_and_last_line(self, bank_book):
        """closing = opening + inflow - outflow = last running balance."""
        opening = Decimal("25000")
        snapshot = accumulate(opening, bank_book)

        assert snapshot.closing_balance == opening + snapshot.total_inflow - snapshot.total_outflow
        assert snapshot.closing_balance == snapshot.lines[-1].running_balance

    def test_each_step_equals_signed_amount(self, bank_book):
        """Consecutive balances differ by exactly the signed amount."""
        opening = Decimal("100")
        snapshot = accumulate(opening, bank_book)

        previous = opening
        for line in snapshot.lines:
            txn = line.transaction
            expected = txn.amount if txn.is_inflow else -txn.amount
            assert line.running_balance - previous == expected
            previous = line.running_balance

    def test_empty_sequence(self):
        """No transactions: closing equals opening, no lines."""
        snapshot = accumulate(Decimal("750.50"), [])

        assert snapshot.lines == []
        assert snapshot.closing_balance == Decimal("750.50")
        assert snapshot.total_inflow == Decimal("0")
        assert snapshot.total_outflow == Decimal("0")

    def test_negative_balance_allowed(self):
        """An overdrawn account is not an error."""
        snapshot = accumulate(Decimal("100"), [_txn(300, False)])

        assert snapshot.closing_balance == Decimal("-200")

    def test_order_is_preserved(self):
        """Input order is kept even when dates are out of order."""
        late = _txn(100, True, 20)
        early = _txn(50, False, 5)

        snapshot = accumulate(Decimal("0"), [late, early])

        assert [line.transaction for line in snapshot.lines] == [late, early]
        assert snapshot.running_balances == [Decimal("100"), Decimal("50")]

    def test_accepts_mappings_and_plain_numbers(self):
        """Rows from a JSON payload work as transactions."""
        rows = [
            {"amount": 500, "is_inflow": True},
            {"amount": "199.99", "is_inflow": False},
        ]

        snapshot = accumulate(1000, rows)

        assert snapshot.closing_balance == Decimal("1300.01")
        assert snapshot.lines[1].transaction is rows[1]

    def test_transaction_kinds_drive_direction(self):
        """Receipts add and transfers out subtract."""
        snapshot = accumulate(Decimal("0"), [
            LedgerTransaction.of_kind(TransactionKind.RECEIPT, "2024-06-01", "1000"),
            LedgerTransaction.of_kind(TransactionKind.TRANSFER_OUT, "2024-06-02", "400"),
        ])

        assert snapshot.running_balances == [Decimal("1000"), Decimal("600")]


class TestValidation:
    """Tests for malformed input."""

    def test_nan_amount_rejected(self):
        with pytest.raises(InvalidAmountError):
            accumulate(Decimal("0"), [{"amount": float("nan"), "is_inflow": True}])

    def test_missing_amount_rejected(self):
        with pytest.raises(InvalidAmountError):
            accumulate(Decimal("0"), [{"is_inflow": True}])

    def test_non_numeric_amount_rejected(self):
        with pytest.raises(InvalidAmountError) as exc_info:
            accumulate(Decimal("0"), [{"amount": "abc", "is_inflow": False}])
        assert exc_info.value.code == "INVALID_AMOUNT"
        assert exc_info.value.field == "amount"

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidAmountError):
            accumulate(Decimal("0"), [{"amount": -5, "is_inflow": True}])

    def test_invalid_opening_balance_rejected(self):
        with pytest.raises(InvalidAmountError):
            accumulate(None, [])

    def test_missing_direction_rejected(self):
        with pytest.raises(ValidationError):
            accumulate(Decimal("0"), [{"amount": 10}])

    def test_invalid_amount_is_a_validation_error(self):
        """Callers can catch the generic validation error."""
        with pytest.raises(ValidationError):
            accumulate(Decimal("0"), [{"amount": float("inf"), "is_inflow": True}])


class TestSnapshotSerialization:
    """Tests for JSON rendering of a snapshot."""

    def test_to_dict(self):
        txn = LedgerTransaction.of_kind(
            TransactionKind.PAYMENT, date(2024, 6, 3), Decimal("200"),
            description="Cab vendor", reference="UTR123", id=7,
        )
        data = accumulate(Decimal("1000"), [txn]).to_dict()

        assert data["opening_balance"] == "1000"
        assert data["closing_balance"] == "800"
        assert data["transactions"] == [{
            "date": "2024-06-03",
            "type": "Payment",
            "description": "Cab vendor",
            "reference": "UTR123",
            "inflow": "0",
            "outflow": "200",
            "balance": "800",
            "id": 7,
        }]
