"""
Cash-book and bank-book file loader.

Reads CSV or Excel exports of book transactions into LedgerTransaction
objects. Two layouts are recognised (column names are matched case
insensitively):

- kind + amount:    Date | Type | Amount | Description | Reference
- inflow/outflow:   Date | Description | Inflow | Outflow | Reference
"""

import logging
import zipfile
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from tourbooks.core.amounts import ZERO, to_decimal
from tourbooks.core.exceptions import TourbooksError, ValidationError
from tourbooks.core.models import LedgerTransaction, TransactionKind

logger = logging.getLogger(__name__)

# Expected column names (case insensitive matching)
EXPECTED_COLUMNS = {
    "date": ["date", "txn date", "transaction date", "value date"],
    "kind": ["type", "kind", "transaction type"],
    "amount": ["amount"],
    "inflow": ["inflow", "credit", "deposit", "cr"],
    "outflow": ["outflow", "debit", "withdrawal", "dr"],
    "description": ["description", "narration", "particulars"],
    "reference": ["reference", "ref no", "ref_no", "cheque no", "utr"],
}

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


def _read_frame(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path, dtype=str, skipinitialspace=True)
    if suffix in EXCEL_SUFFIXES:
        return pd.read_excel(path, dtype=str)
    raise ValidationError(f"Unsupported book file type: {path.suffix}", field="path")


def map_columns(columns) -> Dict[str, str]:
    """Map logical field names to the file's actual column names."""
    mapping = {}
    normalized = {str(c).strip().lower(): c for c in columns}
    for field_name, aliases in EXPECTED_COLUMNS.items():
        for alias in aliases:
            if alias in normalized:
                mapping[field_name] = normalized[alias]
                break
    return mapping


def _cell(row: pd.Series, column: Optional[str]):
    if column is None:
        return None
    value = row[column]
    if pd.isna(value):
        return None
    value = str(value).strip()
    return value or None


def _row_to_transaction(row: pd.Series, columns: Dict[str, str]) -> LedgerTransaction:
    txn_date = _cell(row, columns["date"])
    description = _cell(row, columns.get("description")) or ""
    reference = _cell(row, columns.get("reference"))

    if "kind" in columns and "amount" in columns:
        kind = TransactionKind.parse(_cell(row, columns["kind"]) or "")
        return LedgerTransaction.of_kind(
            kind,
            txn_date,
            _cell(row, columns["amount"]),
            description=description,
            reference=reference,
        )

    inflow = _cell(row, columns.get("inflow"))
    outflow = _cell(row, columns.get("outflow"))
    inflow = to_decimal(inflow, "inflow") if inflow is not None else ZERO
    outflow = to_decimal(outflow, "outflow") if outflow is not None else ZERO

    if inflow and outflow:
        raise ValidationError("Row has both inflow and outflow", field="amount")
    if not inflow and not outflow:
        raise ValidationError("Row has no inflow or outflow amount", field="amount")

    return LedgerTransaction(
        date=txn_date,
        amount=inflow or outflow,
        is_inflow=bool(inflow),
        description=description,
        reference=reference,
    )


def load_book_transactions(path) -> List[LedgerTransaction]:
    """
    Load book transactions from a CSV or Excel file, in file order.

    Args:
        path: Path to .csv, .xlsx or .xlsm file

    Returns:
        List of LedgerTransaction

    Raises:
        ValidationError: If the file layout is not recognised or a row is invalid
    """
    path = Path(path)
    try:
        df = _read_frame(path)
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        # pandas ParserError and EmptyDataError are ValueErrors
        raise ValidationError(f"{path.name}: {e}", field="path") from e

    columns = map_columns(df.columns)
    if "date" not in columns:
        raise ValidationError(f"{path.name}: no date column", field="date")
    has_kind_layout = "kind" in columns and "amount" in columns
    if not has_kind_layout and "inflow" not in columns and "outflow" not in columns:
        raise ValidationError(
            f"{path.name}: expected Type+Amount or Inflow/Outflow columns", field="amount"
        )

    transactions = []
    for idx, row in df.iterrows():
        # Header is line 1 of the file
        line_no = idx + 2
        try:
            transactions.append(_row_to_transaction(row, columns))
        except ValueError as e:
            raise ValidationError(f"{path.name} line {line_no}: {e}", field="kind") from e
        except TourbooksError as e:
            raise ValidationError(
                f"{path.name} line {line_no}: {e.message}", field=getattr(e, "field", None)
            ) from e

    logger.info(f"Loaded {len(transactions)} transactions from {path.name}")
    return transactions
