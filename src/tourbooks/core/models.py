"""
Core models for tourbooks - book transactions, ledgers and TDS inputs.

This module provides:
- TransactionKind: Receipt, payment, income, expense and transfer kinds
- LedgerTransaction: One ledger-affecting event against a bank or cash account
- LedgerLine / LedgerSnapshot: Computed running-balance statement
- TdsSection: TDS section master with candidate rates
- Counterparty / LowerDeductionCertificate: Who is being paid or paid by
- TdsContext / TdsResult: Input and output of TDS rate resolution

All monetary values use Decimal for precision.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from tourbooks.core.amounts import (
    ZERO,
    parse_date,
    parse_optional_date,
    to_decimal,
    to_optional_decimal,
)
from tourbooks.core.exceptions import InvalidAmountError, ValidationError


class FlowDirection(Enum):
    """Cash flow direction."""
    INFLOW = "INFLOW"
    OUTFLOW = "OUTFLOW"


class TransactionKind(Enum):
    """Kinds of book transactions recorded against bank and cash accounts."""
    RECEIPT = "RECEIPT"
    INCOME = "INCOME"
    TRANSFER_IN = "TRANSFER_IN"
    PAYMENT = "PAYMENT"
    EXPENSE = "EXPENSE"
    TRANSFER_OUT = "TRANSFER_OUT"

    @property
    def direction(self) -> FlowDirection:
        if self in _INFLOW_KINDS:
            return FlowDirection.INFLOW
        return FlowDirection.OUTFLOW

    @property
    def is_inflow(self) -> bool:
        return self.direction is FlowDirection.INFLOW

    @property
    def label(self) -> str:
        """Display label, e.g. 'Transfer In'."""
        return self.value.replace("_", " ").title()

    @classmethod
    def parse(cls, value: str) -> "TransactionKind":
        """Parse 'Receipt', 'transfer in', 'TRANSFER_OUT' and similar."""
        key = str(value).strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown transaction kind: {value!r}") from None


_INFLOW_KINDS = frozenset({
    TransactionKind.RECEIPT,
    TransactionKind.INCOME,
    TransactionKind.TRANSFER_IN,
})


class AccountType(Enum):
    """Book account types."""
    BANK = "BANK"
    CASH = "CASH"


class TdsTransactionType(Enum):
    """Which withholding regime a payment falls under."""
    INCOME_TAX = "INCOME_TAX"
    GST = "GST"

    @classmethod
    def parse(cls, value, field: str = "transaction_type") -> "TdsTransactionType":
        """Parse 'gst', 'Income_Tax' and similar."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValidationError(
                f"Unknown TDS transaction type: {value!r}", field=field
            ) from None


class TdsRule(Enum):
    """Rule that supplied the applied TDS rate."""
    MANUAL_OVERRIDE = "MANUAL_OVERRIDE"
    LOWER_DEDUCTION_CERTIFICATE = "LOWER_DEDUCTION_CERTIFICATE"
    SECTION_RATE_WITH_PAN = "SECTION_RATE_WITH_PAN"
    SECTION_RATE_WITHOUT_PAN = "SECTION_RATE_WITHOUT_PAN"
    SECTION_RATE_INDIVIDUAL = "SECTION_RATE_INDIVIDUAL"
    SECTION_RATE_COMPANY = "SECTION_RATE_COMPANY"


@dataclass
class LedgerTransaction:
    """
    One ledger-affecting event.

    Attributes:
        date: Transaction date
        amount: Transaction amount (never negative, use is_inflow for sign)
        is_inflow: True for receipts, incomes and incoming transfers
        kind: Optional transaction kind the flow direction came from
        description: Narration shown on the statement
        reference: Cheque number, UTR or other reference
        id: Identifier of the source row, if any
    """

    date: date
    amount: Decimal
    is_inflow: bool
    kind: Optional[TransactionKind] = None
    description: str = ""
    reference: Optional[str] = None
    id: Optional[Any] = None

    def __post_init__(self):
        self.date = parse_date(self.date)
        self.amount = to_decimal(self.amount)
        if self.amount < ZERO:
            raise InvalidAmountError(self.amount, reason="amounts are stored non-negative")

    @classmethod
    def of_kind(
        cls,
        kind: TransactionKind,
        txn_date,
        amount,
        description: str = "",
        reference: Optional[str] = None,
        id: Optional[Any] = None,
    ) -> "LedgerTransaction":
        """Build a transaction whose direction follows its kind."""
        return cls(
            date=txn_date,
            amount=amount,
            is_inflow=kind.is_inflow,
            kind=kind,
            description=description or kind.label,
            reference=reference,
            id=id,
        )

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.is_inflow else -self.amount

    @property
    def inflow(self) -> Decimal:
        return self.amount if self.is_inflow else ZERO

    @property
    def outflow(self) -> Decimal:
        return ZERO if self.is_inflow else self.amount


@dataclass
class LedgerLine:
    """A transaction paired with the account balance right after it."""
    transaction: Any
    running_balance: Decimal


@dataclass
class LedgerSnapshot:
    """
    Running-balance statement for a bank or cash book.

    Constructed fresh for every statement request and never persisted.
    """

    opening_balance: Decimal
    lines: List[LedgerLine] = field(default_factory=list)
    total_inflow: Decimal = ZERO
    total_outflow: Decimal = ZERO
    closing_balance: Decimal = ZERO
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def running_balances(self) -> List[Decimal]:
        return [line.running_balance for line in self.lines]

    @property
    def net_change(self) -> Decimal:
        return self.total_inflow - self.total_outflow

    def __len__(self) -> int:
        return len(self.lines)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation; amounts are rendered as strings."""
        rows = []
        for line in self.lines:
            txn = line.transaction
            row = {
                "date": _isoformat(_field(txn, "date")),
                "type": _kind_label(_field(txn, "kind")),
                "description": _field(txn, "description") or "",
                "reference": _field(txn, "reference"),
                "inflow": "0",
                "outflow": "0",
                "balance": str(line.running_balance),
            }
            amount = str(_field(txn, "amount"))
            if _field(txn, "is_inflow"):
                row["inflow"] = amount
            else:
                row["outflow"] = amount
            txn_id = _field(txn, "id")
            if txn_id is not None:
                row["id"] = txn_id
            rows.append(row)

        return {
            "start_date": _isoformat(self.start_date),
            "end_date": _isoformat(self.end_date),
            "opening_balance": str(self.opening_balance),
            "total_inflow": str(self.total_inflow),
            "total_outflow": str(self.total_outflow),
            "closing_balance": str(self.closing_balance),
            "transactions": rows,
        }


def _field(txn: Any, name: str) -> Any:
    if isinstance(txn, dict):
        return txn.get(name)
    return getattr(txn, name, None)


def _isoformat(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _kind_label(kind: Any) -> Optional[str]:
    if isinstance(kind, TransactionKind):
        return kind.label
    return kind


@dataclass
class LowerDeductionCertificate:
    """Certified reduced TDS rate for one counterparty, valid for a window."""

    rate: Decimal
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    certificate_number: Optional[str] = None

    def __post_init__(self):
        self.rate = to_decimal(self.rate, "certificate rate")
        self.valid_from = parse_optional_date(self.valid_from, "valid_from")
        self.valid_to = parse_optional_date(self.valid_to, "valid_to")

    def covers(self, on_date: date) -> bool:
        """True if on_date lies in [valid_from, valid_to]; a missing bound is open."""
        if self.valid_from is not None and on_date < self.valid_from:
            return False
        if self.valid_to is not None and on_date > self.valid_to:
            return False
        return True


@dataclass
class Counterparty:
    """Supplier or customer on the other side of a payment or receipt."""
    name: str = ""
    has_pan: bool = False
    pan: Optional[str] = None
    lower_deduction: Optional[LowerDeductionCertificate] = None

    def __post_init__(self):
        if self.pan:
            self.has_pan = True


@dataclass
class TdsSection:
    """
    TDS section master (e.g. 194C, 194J) with up to four candidate rates.

    Rates are percentages. An unset rate is None; 0 is a valid rate.
    """

    section_code: str = ""
    rate_with_pan: Optional[Decimal] = None
    rate_without_pan: Optional[Decimal] = None
    rate_individual: Optional[Decimal] = None
    rate_company: Optional[Decimal] = None
    is_income_tax_tds: bool = True
    is_gst_tds: bool = False
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    threshold_amount: Optional[Decimal] = None
    description: str = ""

    def __post_init__(self):
        self.rate_with_pan = to_optional_decimal(self.rate_with_pan, "rate_with_pan")
        self.rate_without_pan = to_optional_decimal(self.rate_without_pan, "rate_without_pan")
        self.rate_individual = to_optional_decimal(self.rate_individual, "rate_individual")
        self.rate_company = to_optional_decimal(self.rate_company, "rate_company")
        self.threshold_amount = to_optional_decimal(self.threshold_amount, "threshold_amount")
        self.effective_from = parse_optional_date(self.effective_from, "effective_from")
        self.effective_to = parse_optional_date(self.effective_to, "effective_to")

    def is_effective_on(self, on_date: date) -> bool:
        if self.effective_from is not None and on_date < self.effective_from:
            return False
        if self.effective_to is not None and on_date > self.effective_to:
            return False
        return True

    @property
    def default_transaction_type(self) -> TdsTransactionType:
        if self.is_gst_tds and not self.is_income_tax_tds:
            return TdsTransactionType.GST
        return TdsTransactionType.INCOME_TAX


def _non_negative(value: Optional[Decimal], field_name: str) -> Optional[Decimal]:
    if value is not None and value < ZERO:
        raise InvalidAmountError(value, field_name, reason="must not be negative")
    return value


@dataclass
class TdsContext:
    """Everything the TDS resolver needs to know about one payment or receipt."""

    gross_amount: Decimal
    effective_date: date
    transaction_type: Optional[TdsTransactionType] = None
    counterparty: Counterparty = field(default_factory=Counterparty)
    section: Optional[TdsSection] = None
    override_rate: Optional[Decimal] = None
    gst_amount: Optional[Decimal] = None
    gst_rate: Optional[Decimal] = None

    def __post_init__(self):
        self.gross_amount = to_decimal(self.gross_amount, "gross_amount")
        self.effective_date = parse_date(self.effective_date, "effective_date")
        self.override_rate = to_optional_decimal(self.override_rate, "override_rate")
        self.gst_amount = _non_negative(to_optional_decimal(self.gst_amount, "gst_amount"), "gst_amount")
        self.gst_rate = _non_negative(to_optional_decimal(self.gst_rate, "gst_rate"), "gst_rate")
        if self.transaction_type is not None:
            self.transaction_type = TdsTransactionType.parse(self.transaction_type)
        if self.transaction_type is None:
            if self.section is not None:
                self.transaction_type = self.section.default_transaction_type
            else:
                self.transaction_type = TdsTransactionType.INCOME_TAX
        if self.counterparty is None:
            self.counterparty = Counterparty()


@dataclass
class TdsResult:
    """
    Outcome of TDS resolution.

    applied_rate and tds_amount are None when no rule matched, which callers
    must treat as 'no withholding', distinct from a 0% rate.
    """

    base_amount: Decimal
    applied_rate: Optional[Decimal] = None
    tds_amount: Optional[Decimal] = None
    rule: Optional[TdsRule] = None

    @property
    def is_applicable(self) -> bool:
        return self.applied_rate is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_amount": str(self.base_amount),
            "applied_rate": None if self.applied_rate is None else str(self.applied_rate),
            "tds_amount": None if self.tds_amount is None else str(self.tds_amount),
            "rule": self.rule.value if self.rule else None,
        }
