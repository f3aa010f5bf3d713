"""PostgreSQL implementations of repository interfaces."""

from __future__ import annotations

import contextlib
import threading
from collections.abc import Iterable, Iterator
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

import psycopg2
import psycopg2.errors
import psycopg2.extras

from das_central.domain.funding import DebitReceipt, FundingAccount
from das_central.domain.guides import AccountTaxConfig, Guide
from das_central.domain.value_objects import GuideStatus, to_amount
from das_central.exceptions import (
    DatabaseConnectionError,
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


class PostgresDatabase:
    """PostgreSQL database connection manager."""

    def __init__(self, connection_string: str) -> None:
        self._connection_string = connection_string
        self._connection: psycopg2.extensions.connection | None = None
        self._lock = threading.RLock()

    def get_connection(self) -> psycopg2.extensions.connection:
        """Get or create the database connection."""
        if self._connection is None or self._connection.closed:
            try:
                self._connection = psycopg2.connect(
                    self._connection_string,
                    cursor_factory=psycopg2.extras.RealDictCursor,
                )
            except psycopg2.OperationalError as e:
                raise DatabaseConnectionError(str(e).strip()) from e
        return self._connection

    @contextlib.contextmanager
    def connection(self) -> Iterator[psycopg2.extensions.connection]:
        """Hold the connection exclusively until the block commits or rolls back."""
        with self._lock:
            yield self.get_connection()

    def initialize(self) -> None:
        """Create all database tables."""
        with self.connection() as conn, conn.cursor() as cur:
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tax_configs (
                    account_id TEXT PRIMARY KEY,
                    base_value NUMERIC(14, 2) NOT NULL,
                    due_day INTEGER NOT NULL CHECK (due_day BETWEEN 1 AND 31),
                    updated_at TIMESTAMPTZ NOT NULL
                );

                CREATE TABLE IF NOT EXISTS guides (
                    id TEXT PRIMARY KEY,
                    account_id TEXT NOT NULL,
                    year INTEGER NOT NULL,
                    month INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
                    base_value NUMERIC(14, 2) NOT NULL,
                    due_date DATE NOT NULL,
                    status TEXT NOT NULL DEFAULT 'PENDING',
                    final_paid_value NUMERIC(14, 2),
                    paid_at TIMESTAMPTZ,
                    bank_account_id TEXT,
                    payment_reference TEXT,
                    created_at TIMESTAMPTZ NOT NULL,
                    UNIQUE(account_id, year, month)
                );
                CREATE INDEX IF NOT EXISTS idx_guides_account_year ON guides(account_id, year);

                CREATE TABLE IF NOT EXISTS funding_accounts (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    balance NUMERIC(14, 2) NOT NULL,
                    is_default BOOLEAN NOT NULL DEFAULT FALSE,
                    created_at TIMESTAMPTZ NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_funding_accounts_owner ON funding_accounts(owner_id);

                CREATE TABLE IF NOT EXISTS funding_debits (
                    id TEXT PRIMARY KEY,
                    bank_account_id TEXT NOT NULL REFERENCES funding_accounts(id),
                    amount NUMERIC(14, 2) NOT NULL,
                    memo TEXT,
                    created_at TIMESTAMPTZ NOT NULL
                );
                """
            )
            conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._connection is not None and not self._connection.closed:
                self._connection.close()
            self._connection = None


class PostgresTaxConfigRepository(TaxConfigRepository):
    def __init__(self, db: PostgresDatabase) -> None:
        self._db = db

    def get(self, account_id: UUID) -> AccountTaxConfig | None:
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT * FROM tax_configs WHERE account_id = %s", (str(account_id),)
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            return None
        return AccountTaxConfig(
            account_id=UUID(row["account_id"]),
            base_value=Decimal(row["base_value"]),
            due_day=row["due_day"],
            updated_at=row["updated_at"],
        )

    def set(self, config: AccountTaxConfig) -> None:
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO tax_configs (account_id, base_value, due_day, updated_at)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (account_id) DO UPDATE SET
                        base_value = EXCLUDED.base_value,
                        due_day = EXCLUDED.due_day,
                        updated_at = EXCLUDED.updated_at
                    """,
                    (
                        str(config.account_id),
                        config.base_value,
                        config.due_day,
                        config.updated_at,
                    ),
                )
            conn.commit()


class PostgresGuideRepository(GuideRepository):
    def __init__(self, db: PostgresDatabase) -> None:
        self._db = db

    def create(self, guide: Guide) -> Guide:
        with self._db.connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO guides (id, account_id, year, month, base_value, due_date,
                                            status, final_paid_value, paid_at, bank_account_id,
                                            payment_reference, created_at)
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                        """,
                        (
                            str(guide.id),
                            str(guide.account_id),
                            guide.year,
                            guide.month,
                            guide.base_value,
                            guide.due_date,
                            guide.status.value,
                            guide.final_paid_value,
                            guide.paid_at,
                            str(guide.bank_account_id) if guide.bank_account_id else None,
                            guide.payment_reference,
                            guide.created_at,
                        ),
                    )
                conn.commit()
            except psycopg2.errors.UniqueViolation:
                conn.rollback()
                raise DuplicateGuideError(guide.account_id, guide.year, guide.month)
        return guide

    def get(self, guide_id: UUID) -> Guide | None:
        return self._fetch_one("SELECT * FROM guides WHERE id = %s", (str(guide_id),))

    def find(self, account_id: UUID, year: int, month: int) -> Guide | None:
        return self._fetch_one(
            "SELECT * FROM guides WHERE account_id = %s AND year = %s AND month = %s",
            (str(account_id), year, month),
        )

    def list_by_year(self, account_id: UUID, year: int) -> Iterable[Guide]:
        return self._fetch_all(
            "SELECT * FROM guides WHERE account_id = %s AND year = %s ORDER BY month",
            (str(account_id), year),
        )

    def list_by_account(self, account_id: UUID) -> Iterable[Guide]:
        return self._fetch_all(
            "SELECT * FROM guides WHERE account_id = %s ORDER BY year, month",
            (str(account_id),),
        )

    def mark_paid(
        self,
        guide_id: UUID,
        final_amount: Decimal,
        paid_at: datetime,
        bank_account_id: UUID | None = None,
        reference: str | None = None,
    ) -> Guide:
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE guides SET
                        status = %s,
                        final_paid_value = %s,
                        paid_at = %s,
                        bank_account_id = %s,
                        payment_reference = %s
                    WHERE id = %s AND status = %s
                    """,
                    (
                        GuideStatus.PAID.value,
                        to_amount(final_amount),
                        paid_at,
                        str(bank_account_id) if bank_account_id else None,
                        reference,
                        str(guide_id),
                        GuideStatus.PENDING.value,
                    ),
                )
                updated = cur.rowcount
            conn.commit()
        guide = self.get(guide_id)
        if guide is None:
            raise GuideNotFoundError(guide_id)
        if updated == 0:
            raise GuideAlreadyPaidError(guide_id)
        return guide

    def _fetch_one(self, query: str, params: tuple[Any, ...]) -> Guide | None:
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                row = cur.fetchone()
            conn.commit()
        if row is None:
            return None
        return self._row_to_guide(row)

    def _fetch_all(self, query: str, params: tuple[Any, ...]) -> list[Guide]:
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
            conn.commit()
        return [self._row_to_guide(row) for row in rows]

    def _row_to_guide(self, row: dict[str, Any]) -> Guide:
        due_date = row["due_date"]
        if isinstance(due_date, str):
            due_date = date.fromisoformat(due_date)
        return Guide(
            account_id=UUID(row["account_id"]),
            year=row["year"],
            month=row["month"],
            base_value=Decimal(row["base_value"]),
            due_date=due_date,
            id=UUID(row["id"]),
            status=GuideStatus(row["status"]),
            final_paid_value=Decimal(row["final_paid_value"])
            if row["final_paid_value"] is not None
            else None,
            paid_at=row["paid_at"],
            bank_account_id=UUID(row["bank_account_id"])
            if row["bank_account_id"]
            else None,
            payment_reference=row["payment_reference"],
            created_at=row["created_at"],
        )


class PostgresFundingAccountRepository(FundingAccountRepository):
    def __init__(self, db: PostgresDatabase) -> None:
        self._db = db

    def add(self, account: FundingAccount) -> None:
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO funding_accounts (id, owner_id, name, balance, is_default, created_at)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    """,
                    (
                        str(account.id),
                        str(account.owner_id),
                        account.name,
                        account.balance,
                        account.is_default,
                        account.created_at,
                    ),
                )
            conn.commit()

    def get(self, account_id: UUID) -> FundingAccount | None:
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT * FROM funding_accounts WHERE id = %s", (str(account_id),)
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            return None
        return self._row_to_account(row)

    def list_by_owner(self, owner_id: UUID) -> Iterable[FundingAccount]:
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT * FROM funding_accounts WHERE owner_id = %s
                    ORDER BY is_default DESC, name
                    """,
                    (str(owner_id),),
                )
                rows = cur.fetchall()
            conn.commit()
        return [self._row_to_account(row) for row in rows]

    def apply_debit(
        self, account_id: UUID, amount: Decimal, memo: str
    ) -> DebitReceipt:
        amount = to_amount(amount)
        with self._db.connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(
                        "SELECT balance FROM funding_accounts WHERE id = %s FOR UPDATE",
                        (str(account_id),),
                    )
                    row = cur.fetchone()
                    if row is None:
                        raise FundingAccountNotFoundError(account_id)
                    balance = Decimal(row["balance"])
                    if balance < amount:
                        raise InsufficientFundsError(
                            account_id, str(amount), str(balance)
                        )

                    receipt = DebitReceipt(
                        bank_account_id=account_id,
                        amount=amount,
                        reference=str(uuid4()),
                        memo=memo,
                    )
                    cur.execute(
                        "UPDATE funding_accounts SET balance = balance - %s WHERE id = %s",
                        (amount, str(account_id)),
                    )
                    cur.execute(
                        """
                        INSERT INTO funding_debits (id, bank_account_id, amount, memo, created_at)
                        VALUES (%s, %s, %s, %s, %s)
                        """,
                        (
                            receipt.reference,
                            str(account_id),
                            amount,
                            memo,
                            receipt.created_at,
                        ),
                    )
            except BaseException:
                conn.rollback()
                raise
            conn.commit()
        return receipt

    def credit(self, account_id: UUID, amount: Decimal) -> FundingAccount:
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "UPDATE funding_accounts SET balance = balance + %s WHERE id = %s",
                    (to_amount(amount), str(account_id)),
                )
                updated = cur.rowcount
            conn.commit()
        if updated == 0:
            raise FundingAccountNotFoundError(account_id)
        account = self.get(account_id)
        if account is None:
            raise FundingAccountNotFoundError(account_id)
        return account

    def _row_to_account(self, row: dict[str, Any]) -> FundingAccount:
        return FundingAccount(
            owner_id=UUID(row["owner_id"]),
            name=row["name"],
            balance=Decimal(row["balance"]),
            id=UUID(row["id"]),
            is_default=bool(row["is_default"]),
            created_at=row["created_at"],
        )
