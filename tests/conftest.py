"""
Shared pytest fixtures for tourbooks tests.

Provides database connections, sample book transactions and TDS masters.
"""

import pytest
import sys
from pathlib import Path
from datetime import date
from decimal import Decimal

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tourbooks.core.database import DatabaseManager
from tourbooks.core.models import LedgerTransaction, TdsSection, TransactionKind


@pytest.fixture
def db_manager():
    """Provide a fresh DatabaseManager instance for each test."""
    # Reset singleton to ensure clean state
    DatabaseManager.reset_instance()
    manager = DatabaseManager()
    yield manager
    # Cleanup
    manager.close()
    DatabaseManager.reset_instance()


@pytest.fixture
def db_connection(db_manager):
    """Provide an initialized in-memory database connection."""
    conn = db_manager.init(":memory:")
    yield conn
    # Connection is closed by db_manager fixture


@pytest.fixture
def bank_book():
    """A quarter of bank-book activity, deliberately out of date order."""
    return [
        LedgerTransaction.of_kind(TransactionKind.RECEIPT, date(2024, 4, 10), Decimal("50000"),
                                  description="Advance for Kashmir package"),
        LedgerTransaction.of_kind(TransactionKind.PAYMENT, date(2024, 3, 28), Decimal("12000"),
                                  description="Hotel booking"),
        LedgerTransaction.of_kind(TransactionKind.EXPENSE, date(2024, 4, 15), Decimal("2500"),
                                  description="Office rent"),
        LedgerTransaction.of_kind(TransactionKind.INCOME, date(2024, 5, 2), Decimal("1500"),
                                  description="Commission"),
        LedgerTransaction.of_kind(TransactionKind.TRANSFER_OUT, date(2024, 5, 20), Decimal("10000"),
                                  description="To petty cash"),
        LedgerTransaction.of_kind(TransactionKind.TRANSFER_IN, date(2024, 7, 1), Decimal("4000"),
                                  description="From savings"),
    ]


@pytest.fixture
def section_194c():
    """TDS section 194C (contractors) with PAN-based rates."""
    return TdsSection(
        section_code="194C",
        rate_with_pan=Decimal("2"),
        rate_without_pan=Decimal("20"),
        rate_individual=Decimal("1"),
        rate_company=Decimal("2"),
        effective_from=date(2023, 4, 1),
    )
