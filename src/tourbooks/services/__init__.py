"""Services module for tourbooks business logic.

Provides services for:
- Balance Accumulator: Running balances and period totals
- Account Balance: Balance deltas, recalculation and period statements
- Balance Store: Persisted accounts with race-free balance updates
- TDS Resolver: Withholding rate selection and TDS amount
- TDS Challans: Grouping deposited TDS
"""

from .balance_accumulator import accumulate, signed_contribution
from .account_balance import (
    apply_transaction,
    balance_change,
    build_statement,
    period_opening_balance,
    recalculate_balance,
    sort_by_date,
)
from .balance_store import BalanceStore, BookAccount
from .tds_resolver import RATE_RULES, base_amount, resolve_rate, resolve_tds, select_section
from .tds_challan import (
    TdsChallan,
    TdsTransaction,
    attach_transactions,
    ensure_deletable,
    mark_deposited,
    summarize_challan,
)

__all__ = [
    # Ledger
    "accumulate",
    "signed_contribution",
    "apply_transaction",
    "balance_change",
    "build_statement",
    "period_opening_balance",
    "recalculate_balance",
    "sort_by_date",
    "BalanceStore",
    "BookAccount",
    # TDS
    "RATE_RULES",
    "base_amount",
    "resolve_rate",
    "resolve_tds",
    "select_section",
    "TdsChallan",
    "TdsTransaction",
    "attach_transactions",
    "ensure_deletable",
    "mark_deposited",
    "summarize_challan",
]
