"""
Unit tests for the cash-book / bank-book file loader.
"""

import pytest
from datetime import date
from decimal import Decimal

import pandas as pd

from tourbooks.core.exceptions import ValidationError
from tourbooks.core.models import TransactionKind
from tourbooks.parsers.book_file import load_book_transactions, map_columns


KIND_LAYOUT_CSV = """Date,Type,Amount,Description,Reference
10-04-2024,Receipt,50000,Advance for Kashmir package,UTR100
28-03-2024,Payment,12000,Hotel booking,
15-04-2024,expense,2500,,CHQ 000123
"""

FLOW_LAYOUT_CSV = """Txn Date,Narration,Credit,Debit
2024-04-10,Advance,50000,
2024-04-15,Office rent,,2500
"""


@pytest.fixture
def write_csv(tmp_path):
    def _write(content, name="book.csv"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path
    return _write


class TestColumnMapping:

    def test_aliases_case_insensitive(self):
        mapping = map_columns(["Value Date", "PARTICULARS", "Withdrawal", "Deposit", "UTR"])

        assert mapping == {
            "date": "Value Date",
            "description": "PARTICULARS",
            "outflow": "Withdrawal",
            "inflow": "Deposit",
            "reference": "UTR",
        }


class TestKindLayout:

    def test_load_in_file_order(self, write_csv):
        txns = load_book_transactions(write_csv(KIND_LAYOUT_CSV))

        assert [t.kind for t in txns] == [
            TransactionKind.RECEIPT, TransactionKind.PAYMENT, TransactionKind.EXPENSE,
        ]
        assert txns[0].date == date(2024, 4, 10)
        assert txns[0].amount == Decimal("50000")
        assert txns[0].reference == "UTR100"
        assert txns[1].is_inflow is False
        assert txns[1].reference is None

    def test_blank_description_uses_kind_label(self, write_csv):
        txns = load_book_transactions(write_csv(KIND_LAYOUT_CSV))
        assert txns[2].description == "Expense"

    def test_unknown_kind_reports_line(self, write_csv):
        path = write_csv("Date,Type,Amount\n2024-04-10,Receipt,10\n2024-04-11,Refund,5\n")

        with pytest.raises(ValidationError, match="line 3"):
            load_book_transactions(path)

    def test_bad_amount_reports_line(self, write_csv):
        path = write_csv("Date,Type,Amount\n2024-04-10,Receipt,ten\n")

        with pytest.raises(ValidationError, match="line 2"):
            load_book_transactions(path)


class TestFlowLayout:

    def test_inflow_outflow_columns(self, write_csv):
        txns = load_book_transactions(write_csv(FLOW_LAYOUT_CSV))

        assert [t.signed_amount for t in txns] == [Decimal("50000"), Decimal("-2500")]
        assert all(t.kind is None for t in txns)
        assert txns[1].description == "Office rent"

    def test_both_amounts_rejected(self, write_csv):
        path = write_csv("Date,Inflow,Outflow\n2024-04-10,100,50\n")

        with pytest.raises(ValidationError, match="both inflow and outflow"):
            load_book_transactions(path)

    def test_no_amount_rejected(self, write_csv):
        path = write_csv("Date,Inflow,Outflow\n2024-04-10,,\n")

        with pytest.raises(ValidationError):
            load_book_transactions(path)


class TestFileHandling:

    def test_excel_file(self, tmp_path):
        path = tmp_path / "cash-book.xlsx"
        pd.DataFrame({
            "Date": ["2024-05-02", "2024-05-20"],
            "Type": ["Income", "Transfer Out"],
            "Amount": ["1500", "10000"],
            "Description": ["Commission", "To petty cash"],
        }).to_excel(path, index=False)

        txns = load_book_transactions(path)

        assert [t.kind for t in txns] == [TransactionKind.INCOME, TransactionKind.TRANSFER_OUT]
        assert txns[1].amount == Decimal("10000")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError, match="nope.csv") as exc_info:
            load_book_transactions(tmp_path / "nope.csv")
        assert exc_info.value.field == "path"

    def test_empty_file(self, write_csv):
        with pytest.raises(ValidationError):
            load_book_transactions(write_csv(""))

    def test_legacy_xls_not_supported(self, write_csv):
        with pytest.raises(ValidationError, match="Unsupported"):
            load_book_transactions(write_csv(KIND_LAYOUT_CSV, name="book.xls"))

    def test_unsupported_suffix(self, write_csv):
        with pytest.raises(ValidationError):
            load_book_transactions(write_csv(KIND_LAYOUT_CSV, name="book.txt"))

    def test_missing_date_column(self, write_csv):
        with pytest.raises(ValidationError, match="no date column"):
            load_book_transactions(write_csv("Type,Amount\nReceipt,10\n"))

    def test_missing_amount_columns(self, write_csv):
        with pytest.raises(ValidationError, match="expected Type\\+Amount"):
            load_book_transactions(write_csv("Date,Description\n2024-04-10,Advance\n"))
