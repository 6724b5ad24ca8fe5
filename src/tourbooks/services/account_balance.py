"""
Account balance operations for bank and cash books.

Provides:
1. The balance delta a transaction applies (or reverses) on an account
2. Full recalculation of a balance from its opening balance
3. Period opening balance (opening balance rolled forward to a start date)
4. Date-windowed statements built on the balance accumulator
"""

import logging
from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from tourbooks.core.amounts import ZERO, parse_date, parse_optional_date, to_decimal
from tourbooks.core.exceptions import InvalidAmountError, ValidationError
from tourbooks.core.models import LedgerSnapshot
from tourbooks.services.balance_accumulator import accumulate, signed_contribution

logger = logging.getLogger(__name__)


def balance_change(amount, is_inflow: bool, is_new_transaction: bool = True) -> Decimal:
    """
    Delta a transaction applies to an account's current balance.

    Recording adds inflows and subtracts outflows; removing a transaction
    reverses that effect.
    """
    amount = to_decimal(amount)
    if amount < ZERO:
        raise InvalidAmountError(amount, reason="amounts are stored non-negative")
    change = amount if is_inflow else -amount
    return change if is_new_transaction else -change


def apply_transaction(
    current_balance,
    amount,
    is_inflow: bool,
    is_new_transaction: bool = True,
) -> Decimal:
    """
    Return the account balance after recording (or removing) a transaction.

    Negative results are allowed; an account may be overdrawn.
    """
    old_balance = to_decimal(current_balance, "current_balance")
    change = balance_change(amount, is_inflow, is_new_transaction)
    new_balance = old_balance + change

    logger.debug(
        "%s %s of %s: balance %s -> %s",
        "Recording" if is_new_transaction else "Removing",
        "inflow" if is_inflow else "outflow",
        amount, old_balance, new_balance,
    )
    return new_balance


def recalculate_balance(opening_balance, transactions: Iterable[Any]) -> Decimal:
    """Rebuild a current balance from the opening balance and every transaction."""
    return accumulate(opening_balance, transactions).closing_balance


def _transaction_date(txn: Any) -> date:
    value = txn.get("date") if isinstance(txn, Mapping) else getattr(txn, "date", None)
    return parse_date(value, "date")


def period_opening_balance(opening_balance, transactions: Iterable[Any], start_date) -> Decimal:
    """
    Opening balance for a statement period.

    The account's stored opening balance rolled forward through every
    transaction dated strictly before start_date.
    """
    start = parse_date(start_date, "start_date")
    balance = to_decimal(opening_balance, "opening_balance")
    for txn in transactions:
        if _transaction_date(txn) < start:
            amount, is_inflow = signed_contribution(txn)
            balance += amount if is_inflow else -amount
    return balance


def sort_by_date(transactions: Iterable[Any]) -> List[Any]:
    """Stable ascending date sort; same-day entries keep their order."""
    return sorted(transactions, key=_transaction_date)


def build_statement(
    opening_balance,
    transactions: Iterable[Any],
    start_date=None,
    end_date=None,
) -> LedgerSnapshot:
    """
    Build a cash-book or bank-book statement for a date window.

    Args:
        opening_balance: The account's stored opening balance
        transactions: All transactions of the account, in any order
        start_date: First day of the window (inclusive), or None for all history
        end_date: Last day of the window (inclusive), or None for no limit

    Returns:
        LedgerSnapshot for the window, opening from the rolled-forward balance

    Raises:
        ValidationError: If start_date is after end_date
    """
    start: Optional[date] = parse_optional_date(start_date, "start_date")
    end: Optional[date] = parse_optional_date(end_date, "end_date")
    if start and end and start > end:
        raise ValidationError(f"start_date {start} is after end_date {end}", field="start_date")

    ordered = sort_by_date(transactions)

    opening = to_decimal(opening_balance, "opening_balance")
    if start is not None:
        opening = period_opening_balance(opening, ordered, start)

    window = [
        txn for txn in ordered
        if (start is None or _transaction_date(txn) >= start)
        and (end is None or _transaction_date(txn) <= end)
    ]

    snapshot = accumulate(opening, window)
    snapshot.start_date = start
    snapshot.end_date = end
    logger.info(
        "Statement %s..%s: %d transactions, opening %s, closing %s",
        start or "beginning", end or "today", len(window), opening, snapshot.closing_balance,
    )
    return snapshot
