"""SQLite implementations of repository interfaces."""

from __future__ import annotations

import contextlib
import sqlite3
import threading
from collections.abc import Iterable, Iterator
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from uuid import UUID, uuid4

from das_central.domain.funding import DebitReceipt, FundingAccount
from das_central.domain.guides import AccountTaxConfig, Guide
from das_central.domain.value_objects import GuideStatus, to_amount
from das_central.exceptions import (
    DuplicateGuideError,
    FundingAccountNotFoundError,
    GuideAlreadyPaidError,
    GuideNotFoundError,
    InsufficientFundsError,
)
from das_central.repositories.interfaces import (
    FundingAccountRepository,
    GuideRepository,
    TaxConfigRepository,
)


class SQLiteDatabase:
    """SQLite database connection manager."""

    def __init__(
        self, path: str | Path = ":memory:", check_same_thread: bool = True
    ) -> None:
        self._path = str(path)
        self._check_same_thread = check_same_thread
        self._connection: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    @property
    def path(self) -> str:
        return self._path

    def get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                self._path, check_same_thread=self._check_same_thread
            )
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    @contextlib.contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Hold the connection exclusively for a block of statements.

        The connection may be shared by API worker threads, so every
        repository call runs under this lock and commits or rolls back
        before releasing it.
        """
        with self._lock:
            yield self.get_connection()

    @contextlib.contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block under BEGIN IMMEDIATE, committing on success."""
        with self.connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.rollback()
                raise
            else:
                conn.commit()

    def initialize(self) -> None:
        """Create all database tables."""
        with self.connection() as conn:
            self._create_schema(conn)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            """
            -- Per-account DAS configuration
            CREATE TABLE IF NOT EXISTS tax_configs (
                account_id TEXT PRIMARY KEY,
                base_value TEXT NOT NULL,
                due_day INTEGER NOT NULL CHECK (due_day BETWEEN 1 AND 31),
                updated_at TEXT NOT NULL
            );

            -- Monthly guides, one per (account, year, month)
            CREATE TABLE IF NOT EXISTS guides (
                id TEXT PRIMARY KEY,
                account_id TEXT NOT NULL,
                year INTEGER NOT NULL,
                month INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
                base_value TEXT NOT NULL,
                due_date TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'PENDING',
                final_paid_value TEXT,
                paid_at TEXT,
                bank_account_id TEXT,
                payment_reference TEXT,
                created_at TEXT NOT NULL,
                UNIQUE(account_id, year, month)
            );
            CREATE INDEX IF NOT EXISTS idx_guides_account_year ON guides(account_id, year);

            -- Funding accounts guides are paid from
            CREATE TABLE IF NOT EXISTS funding_accounts (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                name TEXT NOT NULL,
                balance TEXT NOT NULL,
                is_default INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_funding_accounts_owner ON funding_accounts(owner_id);

            -- Debits applied to funding accounts
            CREATE TABLE IF NOT EXISTS funding_debits (
                id TEXT PRIMARY KEY,
                bank_account_id TEXT NOT NULL,
                amount TEXT NOT NULL,
                memo TEXT,
                created_at TEXT NOT NULL,
                FOREIGN KEY (bank_account_id) REFERENCES funding_accounts(id)
            );
            """
        )
        conn.commit()

    def table_counts(self) -> dict[str, int]:
        """Row counts of the main tables, for status reporting."""
        with self.connection() as conn:
            return {
                table: conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
                for table in ("tax_configs", "guides", "funding_accounts")
            }

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None


class SQLiteTaxConfigRepository(TaxConfigRepository):
    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def get(self, account_id: UUID) -> AccountTaxConfig | None:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM tax_configs WHERE account_id = ?", (str(account_id),)
            ).fetchone()
            if row is None:
                return None
            return AccountTaxConfig(
                account_id=UUID(row["account_id"]),
                base_value=Decimal(row["base_value"]),
                due_day=row["due_day"],
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )

    def set(self, config: AccountTaxConfig) -> None:
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO tax_configs (account_id, base_value, due_day, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(account_id) DO UPDATE SET
                    base_value = excluded.base_value,
                    due_day = excluded.due_day,
                    updated_at = excluded.updated_at
                """,
                (
                    str(config.account_id),
                    str(config.base_value),
                    config.due_day,
                    config.updated_at.isoformat(),
                ),
            )
            conn.commit()


class SQLiteGuideRepository(GuideRepository):
    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def create(self, guide: Guide) -> Guide:
        with self._db.connection() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO guides (id, account_id, year, month, base_value, due_date,
                                        status, final_paid_value, paid_at, bank_account_id,
                                        payment_reference, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        str(guide.id),
                        str(guide.account_id),
                        guide.year,
                        guide.month,
                        str(guide.base_value),
                        guide.due_date.isoformat(),
                        guide.status.value,
                        str(guide.final_paid_value)
                        if guide.final_paid_value is not None
                        else None,
                        guide.paid_at.isoformat() if guide.paid_at else None,
                        str(guide.bank_account_id) if guide.bank_account_id else None,
                        guide.payment_reference,
                        guide.created_at.isoformat(),
                    ),
                )
                conn.commit()
            except sqlite3.IntegrityError:
                conn.rollback()
                if self.find(guide.account_id, guide.year, guide.month) is not None:
                    raise DuplicateGuideError(guide.account_id, guide.year, guide.month)
                raise
            return guide

    def get(self, guide_id: UUID) -> Guide | None:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM guides WHERE id = ?", (str(guide_id),)
            ).fetchone()
            if row is None:
                return None
            return self._row_to_guide(row)

    def find(self, account_id: UUID, year: int, month: int) -> Guide | None:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM guides WHERE account_id = ? AND year = ? AND month = ?",
                (str(account_id), year, month),
            ).fetchone()
            if row is None:
                return None
            return self._row_to_guide(row)

    def list_by_year(self, account_id: UUID, year: int) -> Iterable[Guide]:
        with self._db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM guides WHERE account_id = ? AND year = ? ORDER BY month",
                (str(account_id), year),
            ).fetchall()
            return [self._row_to_guide(row) for row in rows]

    def list_by_account(self, account_id: UUID) -> Iterable[Guide]:
        with self._db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM guides WHERE account_id = ? ORDER BY year, month",
                (str(account_id),),
            ).fetchall()
            return [self._row_to_guide(row) for row in rows]

    def mark_paid(
        self,
        guide_id: UUID,
        final_amount: Decimal,
        paid_at: datetime,
        bank_account_id: UUID | None = None,
        reference: str | None = None,
    ) -> Guide:
        with self._db.connection() as conn:
            # Conditional on PENDING so a guide can only ever be paid once
            cursor = conn.execute(
                """
                UPDATE guides SET
                    status = ?,
                    final_paid_value = ?,
                    paid_at = ?,
                    bank_account_id = ?,
                    payment_reference = ?
                WHERE id = ? AND status = ?
                """,
                (
                    GuideStatus.PAID.value,
                    str(to_amount(final_amount)),
                    paid_at.isoformat(),
                    str(bank_account_id) if bank_account_id else None,
                    reference,
                    str(guide_id),
                    GuideStatus.PENDING.value,
                ),
            )
            conn.commit()
            guide = self.get(guide_id)
            if guide is None:
                raise GuideNotFoundError(guide_id)
            if cursor.rowcount == 0:
                raise GuideAlreadyPaidError(guide_id)
            return guide

    def _row_to_guide(self, row: sqlite3.Row) -> Guide:
        return Guide(
            account_id=UUID(row["account_id"]),
            year=row["year"],
            month=row["month"],
            base_value=Decimal(row["base_value"]),
            due_date=date.fromisoformat(row["due_date"]),
            id=UUID(row["id"]),
            status=GuideStatus(row["status"]),
            final_paid_value=Decimal(row["final_paid_value"])
            if row["final_paid_value"] is not None
            else None,
            paid_at=datetime.fromisoformat(row["paid_at"]) if row["paid_at"] else None,
            bank_account_id=UUID(row["bank_account_id"])
            if row["bank_account_id"]
            else None,
            payment_reference=row["payment_reference"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteFundingAccountRepository(FundingAccountRepository):
    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def add(self, account: FundingAccount) -> None:
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO funding_accounts (id, owner_id, name, balance, is_default, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    str(account.id),
                    str(account.owner_id),
                    account.name,
                    str(account.balance),
                    1 if account.is_default else 0,
                    account.created_at.isoformat(),
                ),
            )
            conn.commit()

    def get(self, account_id: UUID) -> FundingAccount | None:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM funding_accounts WHERE id = ?", (str(account_id),)
            ).fetchone()
            if row is None:
                return None
            return self._row_to_account(row)

    def list_by_owner(self, owner_id: UUID) -> Iterable[FundingAccount]:
        with self._db.connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM funding_accounts WHERE owner_id = ?
                ORDER BY is_default DESC, name
                """,
                (str(owner_id),),
            ).fetchall()
            return [self._row_to_account(row) for row in rows]

    def apply_debit(
        self, account_id: UUID, amount: Decimal, memo: str
    ) -> DebitReceipt:
        amount = to_amount(amount)
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT balance FROM funding_accounts WHERE id = ?",
                (str(account_id),),
            ).fetchone()
            if row is None:
                raise FundingAccountNotFoundError(account_id)
            balance = Decimal(row["balance"])
            if balance < amount:
                raise InsufficientFundsError(account_id, str(amount), str(balance))

            receipt = DebitReceipt(
                bank_account_id=account_id,
                amount=amount,
                reference=str(uuid4()),
                memo=memo,
            )
            conn.execute(
                "UPDATE funding_accounts SET balance = ? WHERE id = ?",
                (str(balance - amount), str(account_id)),
            )
            conn.execute(
                """
                INSERT INTO funding_debits (id, bank_account_id, amount, memo, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    receipt.reference,
                    str(account_id),
                    str(amount),
                    memo,
                    receipt.created_at.isoformat(),
                ),
            )
        return receipt

    def credit(self, account_id: UUID, amount: Decimal) -> FundingAccount:
        amount = to_amount(amount)
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT balance FROM funding_accounts WHERE id = ?",
                (str(account_id),),
            ).fetchone()
            if row is None:
                raise FundingAccountNotFoundError(account_id)
            conn.execute(
                "UPDATE funding_accounts SET balance = ? WHERE id = ?",
                (str(Decimal(row["balance"]) + amount), str(account_id)),
            )
        account = self.get(account_id)
        if account is None:
            raise FundingAccountNotFoundError(account_id)
        return account

    def _row_to_account(self, row: sqlite3.Row) -> FundingAccount:
        return FundingAccount(
            owner_id=UUID(row["owner_id"]),
            name=row["name"],
            balance=Decimal(row["balance"]),
            id=UUID(row["id"]),
            is_default=bool(row["is_default"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
