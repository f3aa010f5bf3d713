from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from das_central.domain.funding import FundingAccount
from das_central.domain.guides import Guide
from das_central.repositories.sqlite import (
    SQLiteDatabase,
    SQLiteFundingAccountRepository,
    SQLiteGuideRepository,
    SQLiteTaxConfigRepository,
)
from das_central.services.bank_ledger import FundingAccountLedger
from das_central.services.das import DasService
from das_central.services.materializer import GuideMaterializer
from das_central.services.payments import PaymentCoordinator
from das_central.services.summary import SummaryAggregator

FIXED_NOW = datetime(2024, 6, 25, 12, 0, tzinfo=UTC)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture
def db() -> SQLiteDatabase:
    database = SQLiteDatabase(":memory:", check_same_thread=False)
    database.initialize()
    return database


@pytest.fixture
def config_repo(db: SQLiteDatabase) -> SQLiteTaxConfigRepository:
    return SQLiteTaxConfigRepository(db)


@pytest.fixture
def guide_repo(db: SQLiteDatabase) -> SQLiteGuideRepository:
    return SQLiteGuideRepository(db)


@pytest.fixture
def funding_repo(db: SQLiteDatabase) -> SQLiteFundingAccountRepository:
    return SQLiteFundingAccountRepository(db)


@pytest.fixture
def ledger(funding_repo: SQLiteFundingAccountRepository) -> FundingAccountLedger:
    return FundingAccountLedger(funding_repo)


@pytest.fixture
def account_id() -> UUID:
    return uuid4()


@pytest.fixture
def materializer(
    config_repo: SQLiteTaxConfigRepository, guide_repo: SQLiteGuideRepository
) -> GuideMaterializer:
    return GuideMaterializer(config_repo, guide_repo)


@pytest.fixture
def coordinator(
    guide_repo: SQLiteGuideRepository, ledger: FundingAccountLedger
) -> PaymentCoordinator:
    return PaymentCoordinator(guide_repo, ledger, clock=fixed_clock)


@pytest.fixture
def aggregator(guide_repo: SQLiteGuideRepository) -> SummaryAggregator:
    return SummaryAggregator(guide_repo)


@pytest.fixture
def service(
    config_repo: SQLiteTaxConfigRepository,
    guide_repo: SQLiteGuideRepository,
    funding_repo: SQLiteFundingAccountRepository,
    ledger: FundingAccountLedger,
) -> DasService:
    return DasService(config_repo, guide_repo, funding_repo, ledger, clock=fixed_clock)


@pytest.fixture
def configured_account(service: DasService, account_id: UUID) -> UUID:
    """Account configured with base value 75.60 due on day 20."""
    service.set_config(account_id, Decimal("75.60"), 20)
    return account_id


@pytest.fixture
def funding_account(funding_repo: SQLiteFundingAccountRepository) -> FundingAccount:
    account = FundingAccount(
        owner_id=uuid4(),
        name="Conta PJ",
        balance=Decimal("1000.00"),
        is_default=True,
    )
    funding_repo.add(account)
    return account


@pytest.fixture
def make_guide():
    def _make(
        account_id: UUID,
        year: int = 2024,
        month: int = 6,
        base_value: str = "75.60",
        due_date: date | None = None,
    ) -> Guide:
        return Guide(
            account_id=account_id,
            year=year,
            month=month,
            base_value=Decimal(base_value),
            due_date=due_date or date(year + month // 12, month % 12 + 1, 20),
        )

    return _make


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW
