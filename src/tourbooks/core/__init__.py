"""
Core module - Foundation components for tourbooks.

Provides:
- DatabaseManager: SQLite connection management and book schema
- Preferences: Display and TDS configuration
- Amount/date coercion with fail-fast validation
- Core models: LedgerTransaction, LedgerSnapshot, TdsContext, TdsResult, etc.
"""

from tourbooks.core.database import DatabaseManager, transaction
from tourbooks.core.preferences import Preferences, DisplayConfig, TdsConfig
from tourbooks.core.amounts import (
    parse_date,
    parse_optional_date,
    round_currency,
    to_decimal,
    to_optional_decimal,
)
from tourbooks.core.exceptions import (
    TourbooksError,
    ValidationError,
    InvalidAmountError,
    InvalidDateError,
    DatabaseError,
    AccountNotFoundError,
    TransactionNotFoundError,
    ConcurrentUpdateError,
    ChallanError,
)
from tourbooks.core.models import (
    FlowDirection,
    TransactionKind,
    AccountType,
    TdsTransactionType,
    TdsRule,
    LedgerTransaction,
    LedgerLine,
    LedgerSnapshot,
    LowerDeductionCertificate,
    Counterparty,
    TdsSection,
    TdsContext,
    TdsResult,
)

__all__ = [
    # Database & Configuration
    "DatabaseManager",
    "transaction",
    "Preferences",
    "DisplayConfig",
    "TdsConfig",
    # Amounts
    "parse_date",
    "parse_optional_date",
    "round_currency",
    "to_decimal",
    "to_optional_decimal",
    # Exceptions
    "TourbooksError",
    "ValidationError",
    "InvalidAmountError",
    "InvalidDateError",
    "DatabaseError",
    "AccountNotFoundError",
    "TransactionNotFoundError",
    "ConcurrentUpdateError",
    "ChallanError",
    # Core Models - Enums
    "FlowDirection",
    "TransactionKind",
    "AccountType",
    "TdsTransactionType",
    "TdsRule",
    # Core Models - Dataclasses
    "LedgerTransaction",
    "LedgerLine",
    "LedgerSnapshot",
    "LowerDeductionCertificate",
    "Counterparty",
    "TdsSection",
    "TdsContext",
    "TdsResult",
]
