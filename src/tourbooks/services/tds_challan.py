"""TDS challans - deposits of withheld tax with the tax authority.

A challan groups the TDS transactions whose withheld amounts were deposited
together. Transactions move from 'pending' to 'deposited' when attached to a
challan or when the challan is marked deposited.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from tourbooks.core.amounts import ZERO, parse_optional_date, to_optional_decimal
from tourbooks.core.exceptions import ChallanError

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_DEPOSITED = "deposited"


@dataclass
class TdsTransaction:
    """Withholding recorded on one payment or receipt."""
    id: Any
    tds_amount: Optional[Decimal] = None
    status: str = STATUS_PENDING
    challan_id: Optional[Any] = None
    section_code: str = ""

    def __post_init__(self):
        self.tds_amount = to_optional_decimal(self.tds_amount, "tds_amount")


@dataclass
class TdsChallan:
    """Challan (ITNS 281) deposit details."""
    id: Any
    bsr_code: Optional[str] = None
    challan_serial_no: Optional[str] = None
    deposit_date: Optional[date] = None
    payment_mode: Optional[str] = None
    bank_name: Optional[str] = None
    amount: Optional[Decimal] = None
    notes: Optional[str] = None
    transactions: List[TdsTransaction] = field(default_factory=list)

    def __post_init__(self):
        self.deposit_date = parse_optional_date(self.deposit_date, "deposit_date")
        self.amount = to_optional_decimal(self.amount, "amount")

    @property
    def total_tds(self) -> Decimal:
        """Sum of withheld amounts; transactions without an amount count as zero."""
        return sum((t.tds_amount or ZERO for t in self.transactions), ZERO)


def summarize_challan(challan: TdsChallan) -> Dict[str, Any]:
    """Challan details with transaction count and total TDS."""
    return {
        "id": challan.id,
        "bsr_code": challan.bsr_code,
        "challan_serial_no": challan.challan_serial_no,
        "deposit_date": challan.deposit_date.isoformat() if challan.deposit_date else None,
        "payment_mode": challan.payment_mode,
        "bank_name": challan.bank_name,
        "notes": challan.notes,
        "transactions": len(challan.transactions),
        "total_tds": challan.total_tds,
    }


def attach_transactions(challan: TdsChallan, transactions: Iterable[TdsTransaction]) -> TdsChallan:
    """
    Link transactions to a challan and mark them deposited.

    Raises:
        ChallanError: If no transactions are given or one belongs to another challan
    """
    transactions = list(transactions)
    if not transactions:
        raise ChallanError("transaction ids required", code="VALIDATION")

    for txn in transactions:
        if txn.challan_id is not None and txn.challan_id != challan.id:
            raise ChallanError(
                f"TDS transaction {txn.id} is already attached to challan {txn.challan_id}",
                code="CONFLICT",
            )

    attached = {t.id for t in challan.transactions}
    for txn in transactions:
        txn.challan_id = challan.id
        txn.status = STATUS_DEPOSITED
        if txn.id not in attached:
            challan.transactions.append(txn)
            attached.add(txn.id)

    logger.info(f"Attached {len(transactions)} TDS transactions to challan {challan.id}")
    return challan


def mark_deposited(challan: TdsChallan, deposit_date=None) -> TdsChallan:
    """Stamp the deposit date (default today) and mark every linked transaction deposited."""
    challan.deposit_date = parse_optional_date(deposit_date, "deposit_date") or date.today()
    for txn in challan.transactions:
        txn.status = STATUS_DEPOSITED
    return challan


def ensure_deletable(challan: TdsChallan) -> None:
    """
    Raises:
        ChallanError: If any linked transaction has been deposited
    """
    if any(t.status == STATUS_DEPOSITED for t in challan.transactions):
        raise ChallanError(
            "Cannot delete challan with deposited transactions", code="DEPENDENCY"
        )
