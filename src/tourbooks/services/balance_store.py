"""
Balance Store - persists book transactions and account balances.

Every write that moves an account's current_balance runs inside a
BEGIN IMMEDIATE transaction and updates the balance with a compare-and-swap
on book_accounts.version, so two receipts recorded against the same account
can never overwrite each other's balance.
"""

import logging
import sqlite3
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from tourbooks.core.amounts import to_decimal
from tourbooks.core.database import transaction
from tourbooks.core.exceptions import (
    AccountNotFoundError,
    ConcurrentUpdateError,
    TransactionNotFoundError,
    ValidationError,
)
from tourbooks.core.models import AccountType, LedgerSnapshot, LedgerTransaction, TransactionKind
from tourbooks.services.account_balance import apply_transaction, build_statement, recalculate_balance

logger = logging.getLogger(__name__)


@dataclass
class BookAccount:
    """A bank or cash account as stored."""
    id: int
    name: str
    account_type: AccountType
    opening_balance: Decimal
    current_balance: Decimal
    version: int


class BalanceStore:
    """
    Store for book accounts and their transactions.

    Example:
        store = BalanceStore(conn)
        account_id = store.create_account("HDFC Current", AccountType.BANK, Decimal("1000"))

        txn = LedgerTransaction.of_kind(TransactionKind.RECEIPT, date(2024, 6, 1), Decimal("500"))
        store.record_transaction(account_id, txn)

        snapshot = store.statement(account_id, start_date=date(2024, 4, 1))
    """

    def __init__(self, db_connection: sqlite3.Connection):
        """
        Initialize with database connection.

        Args:
            db_connection: SQLite connection from DatabaseManager
        """
        self.conn = db_connection

    def create_account(
        self,
        name: str,
        account_type: AccountType = AccountType.BANK,
        opening_balance=Decimal("0"),
    ) -> int:
        """Create an account whose current balance starts at its opening balance."""
        opening = to_decimal(opening_balance, "opening_balance")
        with transaction(self.conn):
            cursor = self.conn.execute(
                """
                INSERT INTO book_accounts (name, account_type, opening_balance, current_balance)
                VALUES (?, ?, ?, ?)
                """,
                (name, AccountType(account_type).value, str(opening), str(opening)),
            )
        logger.info(f"Created {AccountType(account_type).value} account {name!r} ({cursor.lastrowid})")
        return cursor.lastrowid

    def get_account(self, account_id: int) -> BookAccount:
        """
        Fetch an account.

        Raises:
            AccountNotFoundError: If no such account exists
        """
        row = self.conn.execute(
            "SELECT * FROM book_accounts WHERE id = ?", (account_id,)
        ).fetchone()
        if not row:
            raise AccountNotFoundError(account_id)
        return BookAccount(
            id=row["id"],
            name=row["name"],
            account_type=AccountType(row["account_type"]),
            opening_balance=Decimal(row["opening_balance"]),
            current_balance=Decimal(row["current_balance"]),
            version=row["version"],
        )

    def _swap_balance(self, account: BookAccount, new_balance: Decimal) -> None:
        cursor = self.conn.execute(
            """
            UPDATE book_accounts
            SET current_balance = ?, version = version + 1, updated_at = CURRENT_TIMESTAMP
            WHERE id = ? AND version = ?
            """,
            (str(new_balance), account.id, account.version),
        )
        if cursor.rowcount != 1:
            raise ConcurrentUpdateError(account.id, account.version)

    def record_transaction(self, account_id: int, txn: LedgerTransaction) -> int:
        """
        Insert a transaction and apply it to the account balance atomically.

        Returns:
            ID of the inserted transaction row

        Raises:
            AccountNotFoundError: If the account does not exist
            ConcurrentUpdateError: If the balance changed during the update
            ValidationError: If the kind contradicts the flow direction
        """
        kind = txn.kind or (TransactionKind.RECEIPT if txn.is_inflow else TransactionKind.PAYMENT)
        if kind.is_inflow != txn.is_inflow:
            raise ValidationError(
                f"{kind.value} does not match the transaction's flow direction", field="kind"
            )

        with transaction(self.conn):
            account = self.get_account(account_id)
            cursor = self.conn.execute(
                """
                INSERT INTO book_transactions
                (account_id, txn_date, kind, amount, description, reference)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    account_id,
                    txn.date.isoformat(),
                    kind.value,
                    str(txn.amount),
                    txn.description,
                    txn.reference,
                ),
            )
            new_balance = apply_transaction(account.current_balance, txn.amount, txn.is_inflow)
            self._swap_balance(account, new_balance)

        txn.id = cursor.lastrowid
        return cursor.lastrowid

    def remove_transaction(self, transaction_id: int) -> Decimal:
        """
        Delete a transaction and reverse its effect on the account balance.

        Returns:
            The account's new current balance
        """
        with transaction(self.conn):
            row = self.conn.execute(
                "SELECT * FROM book_transactions WHERE id = ?", (transaction_id,)
            ).fetchone()
            if not row:
                raise TransactionNotFoundError(transaction_id)

            account = self.get_account(row["account_id"])
            kind = TransactionKind(row["kind"])
            new_balance = apply_transaction(
                account.current_balance,
                Decimal(row["amount"]),
                kind.is_inflow,
                is_new_transaction=False,
            )
            self.conn.execute("DELETE FROM book_transactions WHERE id = ?", (transaction_id,))
            self._swap_balance(account, new_balance)

        return new_balance

    def list_transactions(
        self,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[LedgerTransaction]:
        """Transactions of an account in date order (insertion order within a day)."""
        query = "SELECT * FROM book_transactions WHERE account_id = ?"
        params = [account_id]

        if start_date:
            query += " AND txn_date >= ?"
            params.append(start_date.isoformat())

        if end_date:
            query += " AND txn_date <= ?"
            params.append(end_date.isoformat())

        query += " ORDER BY txn_date, id"

        return [
            LedgerTransaction.of_kind(
                TransactionKind(row["kind"]),
                row["txn_date"],
                Decimal(row["amount"]),
                description=row["description"] or "",
                reference=row["reference"],
                id=row["id"],
            )
            for row in self.conn.execute(query, params).fetchall()
        ]

    def recalculate(self, account_id: int) -> Decimal:
        """
        Rebuild current_balance from the opening balance and all transactions.

        Returns:
            The recalculated balance
        """
        with transaction(self.conn):
            account = self.get_account(account_id)
            balance = recalculate_balance(account.opening_balance, self.list_transactions(account_id))
            if balance != account.current_balance:
                logger.warning(
                    f"Account {account_id} balance drifted: stored {account.current_balance}, "
                    f"recalculated {balance}"
                )
            self._swap_balance(account, balance)
        return balance

    def statement(self, account_id: int, start_date=None, end_date=None) -> LedgerSnapshot:
        """Running-balance statement for an account over a date window."""
        account = self.get_account(account_id)
        return build_statement(
            account.opening_balance,
            self.list_transactions(account_id),
            start_date=start_date,
            end_date=end_date,
        )
