"""
Balance accumulator for cash-book and bank-book statements.

Turns an opening balance and a date-ordered list of transactions into a
running-balance ledger with period totals. Sorting is the caller's job:
transactions are scanned in the order given, so same-day entries keep the
caller's order.
"""

import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Iterable, Tuple

from tourbooks.core.amounts import ZERO, to_decimal
from tourbooks.core.exceptions import InvalidAmountError, ValidationError
from tourbooks.core.models import LedgerLine, LedgerSnapshot

logger = logging.getLogger(__name__)


def signed_contribution(txn: Any) -> Tuple[Decimal, bool]:
    """
    Extract (amount, is_inflow) from a transaction.

    Accepts LedgerTransaction, any object with ``amount`` and ``is_inflow``
    attributes, or a mapping with those keys.

    Raises:
        InvalidAmountError: If the amount is missing, malformed or negative
        ValidationError: If the flow direction is missing
    """
    if isinstance(txn, Mapping):
        amount = txn.get("amount")
        is_inflow = txn.get("is_inflow")
    else:
        amount = getattr(txn, "amount", None)
        is_inflow = getattr(txn, "is_inflow", None)

    amount = to_decimal(amount, "amount")
    if amount < ZERO:
        raise InvalidAmountError(amount, reason="amounts are stored non-negative")
    if is_inflow is None:
        raise ValidationError("Transaction has no flow direction", field="is_inflow")
    return amount, bool(is_inflow)


def accumulate(opening_balance, transactions: Iterable[Any]) -> LedgerSnapshot:
    """
    Compute running balances and totals in a single pass.

    Args:
        opening_balance: Balance before the first transaction
        transactions: Transactions already sorted ascending by date

    Returns:
        LedgerSnapshot whose closing balance equals the last running balance,
        or the opening balance when there are no transactions

    Raises:
        InvalidAmountError: If the opening balance or any amount is malformed
    """
    opening = to_decimal(opening_balance, "opening_balance")

    balance = opening
    total_inflow = ZERO
    total_outflow = ZERO
    lines = []

    for txn in transactions:
        amount, is_inflow = signed_contribution(txn)
        if is_inflow:
            balance += amount
            total_inflow += amount
        else:
            balance -= amount
            total_outflow += amount
        lines.append(LedgerLine(transaction=txn, running_balance=balance))

    logger.debug(
        "Accumulated %d transactions: opening=%s in=%s out=%s closing=%s",
        len(lines), opening, total_inflow, total_outflow, balance,
    )

    return LedgerSnapshot(
        opening_balance=opening,
        lines=lines,
        total_inflow=total_inflow,
        total_outflow=total_outflow,
        closing_balance=balance,
    )
