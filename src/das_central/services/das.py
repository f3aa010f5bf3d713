"""DAS Central service: the operations exposed to the API and CLI.

Every call takes an explicit ``account_id``; there is no ambient "current
account".
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import UUID

from das_central.domain.funding import FundingAccount
from das_central.domain.guides import (
    DEFAULT_DUE_DAY,
    AccountTaxConfig,
    DisplayGuide,
    Guide,
)
from das_central.domain.value_objects import DisplayStatus, to_amount
from das_central.exceptions import InvalidAmountError, TaxConfigNotFoundError
from das_central.logging_config import get_logger
from das_central.repositories.interfaces import (
    FundingAccountRepository,
    GuideRepository,
    TaxConfigRepository,
)
from das_central.services.interfaces import (
    BankLedger,
    BatchPaymentResult,
    DasSummary,
    DueAlert,
)
from das_central.services.materializer import GuideMaterializer
from das_central.services.payments import GuideSelection, PaymentCoordinator
from das_central.services.status import PLACEHOLDER_VALUE, year_view
from das_central.services.summary import SummaryAggregator

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class YearView:
    account_id: UUID
    year: int
    rows: list[DisplayGuide]
    configured: bool

    @property
    def total_paid(self) -> Decimal:
        return sum(
            (r.final_value for r in self.rows if r.display_status == DisplayStatus.PAID),
            Decimal("0.00"),
        )

    @property
    def paid_count(self) -> int:
        return sum(1 for r in self.rows if r.display_status == DisplayStatus.PAID)

    @property
    def overdue_count(self) -> int:
        return sum(1 for r in self.rows if r.display_status == DisplayStatus.OVERDUE)

    @property
    def payable(self) -> list[DisplayGuide]:
        return [r for r in self.rows if r.payable]


class DasService:
    def __init__(
        self,
        config_repo: TaxConfigRepository,
        guide_repo: GuideRepository,
        funding_repo: FundingAccountRepository,
        ledger: BankLedger,
        default_due_day: int = DEFAULT_DUE_DAY,
        alert_window_days: int = 7,
        locale: str = "pt",
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._config_repo = config_repo
        self._guide_repo = guide_repo
        self._funding_repo = funding_repo
        self._default_due_day = default_due_day
        self._alert_window_days = alert_window_days
        self._locale = locale
        self._clock = clock
        self.materializer = GuideMaterializer(config_repo, guide_repo)
        self.coordinator = PaymentCoordinator(guide_repo, ledger, clock=clock)
        self.aggregator = SummaryAggregator(guide_repo, locale=locale)

    def today(self) -> date:
        return self._clock().date()

    def _today(self, today: date | None) -> date:
        return today or self.today()

    # Configuration

    def get_config(self, account_id: UUID) -> AccountTaxConfig | None:
        return self._config_repo.get(account_id)

    def require_config(self, account_id: UUID) -> AccountTaxConfig:
        config = self._config_repo.get(account_id)
        if config is None:
            raise TaxConfigNotFoundError(account_id)
        return config

    def set_config(
        self,
        account_id: UUID,
        base_value: Decimal | str,
        due_day: int | None = None,
    ) -> AccountTaxConfig:
        """Create or replace the account's configuration.

        Already-materialized guides keep the values they were created with.
        """
        config = AccountTaxConfig(
            account_id=account_id,
            base_value=base_value,
            due_day=self._default_due_day if due_day is None else due_day,
            updated_at=self._clock(),
        )
        self._config_repo.set(config)
        logger.info(
            "tax_config_set",
            account_id=str(account_id),
            base_value=str(config.base_value),
            due_day=config.due_day,
        )
        return config

    # Guides

    def ensure_year(self, account_id: UUID, year: int) -> list[Guide]:
        return self.materializer.ensure_year(account_id, year)

    def ensure_current(self, account_id: UUID, today: date | None = None) -> list[Guide]:
        return self.materializer.ensure_current(account_id, self._today(today))

    def year_view(
        self,
        account_id: UUID,
        year: int,
        today: date | None = None,
        materialize: bool = True,
    ) -> YearView:
        if materialize:
            self.materializer.ensure_year(account_id, year)

        config = self._config_repo.get(account_id)
        rows = year_view(
            year,
            self._guide_repo.list_by_year(account_id, year),
            self._today(today),
            due_day=config.due_day if config else self._default_due_day,
            default_value=PLACEHOLDER_VALUE,
            locale=self._locale,
        )
        return YearView(
            account_id=account_id, year=year, rows=rows, configured=config is not None
        )

    def selection(self, view: YearView) -> GuideSelection:
        return GuideSelection(view.rows)

    # Payments

    def pay(
        self,
        account_id: UUID,
        guide_id: UUID | str,
        bank_account_id: UUID,
        final_amount: Decimal | str,
    ) -> Guide:
        return self.coordinator.pay(
            guide_id, bank_account_id, final_amount, account_id=account_id
        )

    def pay_batch(
        self,
        account_id: UUID,
        guide_ids: Sequence[UUID | str],
        bank_account_id: UUID,
    ) -> BatchPaymentResult:
        return self.coordinator.pay_batch(
            guide_ids, bank_account_id, account_id=account_id
        )

    # Reporting

    def summarize(self, account_id: UUID, today: date | None = None) -> DasSummary:
        return self.aggregator.summarize(account_id, self._today(today))

    def due_alert(
        self,
        account_id: UUID,
        today: date | None = None,
        window_days: int | None = None,
    ) -> DueAlert | None:
        window = self._alert_window_days if window_days is None else window_days
        return self.aggregator.due_alert(account_id, self._today(today), window)

    # Funding accounts

    def add_funding_account(
        self,
        owner_id: UUID,
        name: str,
        balance: Decimal | str = Decimal("0.00"),
        is_default: bool = False,
    ) -> FundingAccount:
        account = FundingAccount(
            owner_id=owner_id,
            name=name,
            balance=balance,
            is_default=is_default,
        )
        self._funding_repo.add(account)
        return account

    def list_funding_accounts(self, owner_id: UUID) -> list[FundingAccount]:
        return list(self._funding_repo.list_by_owner(owner_id))

    def deposit(self, bank_account_id: UUID, amount: Decimal | str) -> FundingAccount:
        try:
            value = to_amount(amount)
        except ValueError:
            raise InvalidAmountError(str(amount), "not a number")
        if value <= 0:
            raise InvalidAmountError(str(value), "deposit must be positive")
        account = self._funding_repo.credit(bank_account_id, value)
        logger.info(
            "funding_account_credited",
            bank_account_id=str(bank_account_id),
            amount=str(value),
            balance=str(account.balance),
        )
        return account
