"""
Unit tests for core models.
"""

import pytest
from datetime import date
from decimal import Decimal

from tourbooks.core.exceptions import InvalidAmountError, ValidationError
from tourbooks.core.models import (
    Counterparty,
    FlowDirection,
    LedgerLine,
    LedgerSnapshot,
    LedgerTransaction,
    TdsContext,
    TdsResult,
    TdsRule,
    TdsSection,
    TdsTransactionType,
    TransactionKind,
)


class TestTransactionKind:
    """Tests for kind direction and parsing."""

    @pytest.mark.parametrize("kind", [
        TransactionKind.RECEIPT, TransactionKind.INCOME, TransactionKind.TRANSFER_IN,
    ])
    def test_inflow_kinds(self, kind):
        assert kind.is_inflow
        assert kind.direction is FlowDirection.INFLOW

    @pytest.mark.parametrize("kind", [
        TransactionKind.PAYMENT, TransactionKind.EXPENSE, TransactionKind.TRANSFER_OUT,
    ])
    def test_outflow_kinds(self, kind):
        assert not kind.is_inflow

    @pytest.mark.parametrize("text,expected", [
        ("Receipt", TransactionKind.RECEIPT),
        ("transfer in", TransactionKind.TRANSFER_IN),
        ("Transfer-Out", TransactionKind.TRANSFER_OUT),
        (" EXPENSE ", TransactionKind.EXPENSE),
    ])
    def test_parse(self, text, expected):
        assert TransactionKind.parse(text) is expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            TransactionKind.parse("refund")

    def test_label(self):
        assert TransactionKind.TRANSFER_IN.label == "Transfer In"


class TestLedgerTransaction:
    """Tests for LedgerTransaction coercion."""

    def test_coerces_inputs(self):
        txn = LedgerTransaction(date="2024-04-10", amount="1,500.25", is_inflow=True)

        assert txn.date == date(2024, 4, 10)
        assert txn.amount == Decimal("1500.25")
        assert txn.signed_amount == Decimal("1500.25")
        assert txn.outflow == Decimal("0")

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidAmountError):
            LedgerTransaction(date=date(2024, 4, 10), amount=Decimal("-1"), is_inflow=True)

    def test_of_kind_sets_direction_and_label(self):
        txn = LedgerTransaction.of_kind(TransactionKind.EXPENSE, date(2024, 4, 15), "2500")

        assert txn.is_inflow is False
        assert txn.signed_amount == Decimal("-2500")
        assert txn.description == "Expense"


class TestLedgerSnapshot:
    """Tests for snapshot serialization."""

    def test_to_dict(self):
        receipt = LedgerTransaction.of_kind(
            TransactionKind.RECEIPT, date(2024, 4, 10), Decimal("500"), reference="UTR1", id=7
        )
        snapshot = LedgerSnapshot(
            opening_balance=Decimal("100"),
            lines=[LedgerLine(receipt, Decimal("600"))],
            total_inflow=Decimal("500"),
            closing_balance=Decimal("600"),
            start_date=date(2024, 4, 1),
        )

        data = snapshot.to_dict()

        assert data["start_date"] == "2024-04-01"
        assert data["end_date"] is None
        assert data["opening_balance"] == "100"
        assert data["closing_balance"] == "600"
        assert data["transactions"] == [{
            "date": "2024-04-10",
            "type": "Receipt",
            "description": "Receipt",
            "reference": "UTR1",
            "inflow": "500",
            "outflow": "0",
            "balance": "600",
            "id": 7,
        }]
        assert snapshot.net_change == Decimal("500")


class TestTdsModels:
    """Tests for TDS inputs and results."""

    def test_pan_implies_has_pan(self):
        assert Counterparty(name="Snow Valley Resorts", pan="AAACS1234F").has_pan

    def test_section_rates_coerced(self):
        section = TdsSection(section_code="194J", rate_with_pan="10", rate_company=0)

        assert section.rate_with_pan == Decimal("10")
        assert section.rate_company == Decimal("0")
        assert section.rate_without_pan is None

    def test_section_effective_window(self):
        section = TdsSection(effective_from="2024-04-01", effective_to="2025-03-31")

        assert section.is_effective_on(date(2024, 4, 1))
        assert section.is_effective_on(date(2025, 3, 31))
        assert not section.is_effective_on(date(2025, 4, 1))

    def test_context_defaults(self):
        ctx = TdsContext(gross_amount="100", effective_date="2024-06-01", counterparty=None)

        assert ctx.transaction_type is TdsTransactionType.INCOME_TAX
        assert ctx.counterparty.has_pan is False

    def test_transaction_type_parsed_case_insensitively(self):
        ctx = TdsContext(gross_amount="100", effective_date="2024-06-01", transaction_type=" gst ")
        assert ctx.transaction_type is TdsTransactionType.GST

    def test_unknown_transaction_type_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            TdsContext(gross_amount="100", effective_date="2024-06-01", transaction_type="VAT")
        assert exc_info.value.field == "transaction_type"

    def test_result_to_dict(self):
        result = TdsResult(
            base_amount=Decimal("1000"), applied_rate=Decimal("2"),
            tds_amount=Decimal("20.00"), rule=TdsRule.SECTION_RATE_WITH_PAN,
        )

        assert result.to_dict() == {
            "base_amount": "1000",
            "applied_rate": "2",
            "tds_amount": "20.00",
            "rule": "SECTION_RATE_WITH_PAN",
        }
        assert TdsResult(base_amount=Decimal("1000")).to_dict()["rule"] is None
