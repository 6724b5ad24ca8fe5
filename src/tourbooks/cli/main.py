#!/usr/bin/env python3
"""
tourbooks CLI - cash-book statements and TDS computation from the command line.

Usage:
    tourbooks statement bank-book.csv --opening 25000 --from 2024-04-01 --to 2024-06-30
    tourbooks statement cash-book.xlsx --opening 0 --json
    tourbooks tds --amount 10000 --date 2024-02-15 --rate-with-pan 2 --rate-without-pan 20
    tourbooks tds --amount 11800 --date 2024-02-15 --type GST --gst-amount 1800 --override 2
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from tourbooks.core.exceptions import TourbooksError
from tourbooks.core.models import (
    Counterparty,
    LedgerSnapshot,
    LowerDeductionCertificate,
    TdsContext,
    TdsSection,
    TdsTransactionType,
)
from tourbooks.core.preferences import Preferences
from tourbooks.parsers.book_file import load_book_transactions
from tourbooks.services.account_balance import build_statement
from tourbooks.services.tds_resolver import resolve_tds

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, debug: bool = False):
    """Configure logging."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


# ============================================================================
# Output
# ============================================================================

def format_statement(snapshot: LedgerSnapshot, prefs: Preferences) -> str:
    """Render a statement as a plain-text table."""
    fmt = prefs.display.format_currency
    lines = [
        f"{'Date':<12} {'Type':<13} {'Description':<32} {'Inflow':>14} {'Outflow':>14} {'Balance':>16}",
        "-" * 106,
        f"{'':<12} {'':<13} {'Opening Balance':<32} {'':>14} {'':>14} {fmt(snapshot.opening_balance):>16}",
    ]
    for line in snapshot.lines:
        txn = line.transaction
        kind = txn.kind.label if txn.kind else ("Inflow" if txn.is_inflow else "Outflow")
        lines.append(
            f"{prefs.display.format_date(txn.date):<12} {kind:<13} {txn.description[:32]:<32} "
            f"{fmt(txn.inflow) if txn.is_inflow else '':>14} "
            f"{'' if txn.is_inflow else fmt(txn.outflow):>14} "
            f"{fmt(line.running_balance):>16}"
        )
    lines.extend([
        "-" * 106,
        f"{'':<12} {'':<13} {'Totals':<32} {fmt(snapshot.total_inflow):>14} "
        f"{fmt(snapshot.total_outflow):>14} {'':>16}",
        f"{'':<12} {'':<13} {'Closing Balance':<32} {'':>14} {'':>14} "
        f"{fmt(snapshot.closing_balance):>16}",
    ])
    return "\n".join(lines)


# ============================================================================
# Command Handlers
# ============================================================================

def cmd_statement(args, prefs: Preferences) -> int:
    """Print a running-balance statement for a book file."""
    transactions = load_book_transactions(args.file)
    snapshot = build_statement(
        args.opening,
        transactions,
        start_date=args.start_date,
        end_date=args.end_date,
    )

    if args.json:
        print(json.dumps(snapshot.to_dict(), indent=2))
    else:
        print(format_statement(snapshot, prefs))
    return 0


def cmd_tds(args, prefs: Preferences) -> int:
    """Resolve the TDS rate and withheld amount for one payment."""
    section = None
    section_rates = (args.rate_with_pan, args.rate_without_pan, args.rate_individual, args.rate_company)
    if any(rate is not None for rate in section_rates):
        section = TdsSection(
            section_code=args.section or "",
            rate_with_pan=args.rate_with_pan,
            rate_without_pan=args.rate_without_pan,
            rate_individual=args.rate_individual,
            rate_company=args.rate_company,
        )

    certificate = None
    if args.ldc_rate is not None:
        certificate = LowerDeductionCertificate(
            rate=args.ldc_rate, valid_from=args.ldc_from, valid_to=args.ldc_to
        )

    ctx = TdsContext(
        gross_amount=args.amount,
        effective_date=args.date,
        transaction_type=args.type or prefs.tds.default_transaction_type,
        counterparty=Counterparty(has_pan=args.pan, lower_deduction=certificate),
        section=section,
        override_rate=args.override,
        gst_amount=args.gst_amount,
        gst_rate=args.gst_rate,
    )
    result = resolve_tds(ctx)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0

    fmt = prefs.display.format_currency
    print(f"Base amount:  {fmt(result.base_amount)}")
    if not result.is_applicable:
        print("No applicable TDS rate - no withholding")
        return 0
    print(f"Rate:         {result.applied_rate}% ({result.rule.value})")
    print(f"TDS amount:   {fmt(result.tds_amount)}")
    return 0


# ============================================================================
# Argument parsing
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tourbooks",
        description="Cash-book / bank-book statements and TDS computation",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")
    parser.add_argument("--config-dir", type=Path, help="Directory containing preferences.json")

    subparsers = parser.add_subparsers(dest="command", required=True)

    statement = subparsers.add_parser("statement", help="Running-balance statement for a book file")
    statement.add_argument("file", type=Path, help="CSV or Excel file of transactions")
    statement.add_argument("--opening", default="0", help="Account opening balance")
    statement.add_argument("--from", dest="start_date", help="Period start (inclusive)")
    statement.add_argument("--to", dest="end_date", help="Period end (inclusive)")
    statement.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    statement.set_defaults(handler=cmd_statement)

    tds = subparsers.add_parser("tds", help="Resolve TDS for a payment or receipt")
    tds.add_argument("--amount", required=True, help="Gross amount")
    tds.add_argument("--date", required=True, help="Transaction date")
    tds.add_argument("--type", type=str.upper, choices=[t.value for t in TdsTransactionType])
    tds.add_argument("--pan", action=argparse.BooleanOptionalAction, default=True,
                     help="Counterparty has a PAN on file")
    tds.add_argument("--section", help="Section code, e.g. 194C")
    tds.add_argument("--rate-with-pan")
    tds.add_argument("--rate-without-pan")
    tds.add_argument("--rate-individual")
    tds.add_argument("--rate-company")
    tds.add_argument("--override", help="Manual override rate")
    tds.add_argument("--ldc-rate", help="Lower-deduction certificate rate")
    tds.add_argument("--ldc-from", help="Certificate valid from")
    tds.add_argument("--ldc-to", help="Certificate valid to")
    tds.add_argument("--gst-amount", help="GST component of the gross amount")
    tds.add_argument("--gst-rate", help="Inclusive GST rate, used when --gst-amount is absent")
    tds.add_argument("--json", action="store_true", help="Print JSON")
    tds.set_defaults(handler=cmd_tds)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose, args.debug)

    try:
        prefs = Preferences.load(args.config_dir)
        return args.handler(args, prefs)
    except TourbooksError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
