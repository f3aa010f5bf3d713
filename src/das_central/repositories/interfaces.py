from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from das_central.domain.funding import DebitReceipt, FundingAccount
from das_central.domain.guides import AccountTaxConfig, Guide


class TaxConfigRepository(ABC):
    @abstractmethod
    def get(self, account_id: UUID) -> AccountTaxConfig | None:
        pass

    @abstractmethod
    def set(self, config: AccountTaxConfig) -> None:
        """Insert or replace the configuration for ``config.account_id``."""
        pass


class GuideRepository(ABC):
    """Guide store.

    Implementations must enforce uniqueness of (account_id, year, month) and
    signal a violation with DuplicateGuideError.
    """

    @abstractmethod
    def create(self, guide: Guide) -> Guide:
        pass

    @abstractmethod
    def get(self, guide_id: UUID) -> Guide | None:
        pass

    @abstractmethod
    def find(self, account_id: UUID, year: int, month: int) -> Guide | None:
        pass

    @abstractmethod
    def list_by_year(self, account_id: UUID, year: int) -> Iterable[Guide]:
        pass

    @abstractmethod
    def list_by_account(self, account_id: UUID) -> Iterable[Guide]:
        pass

    @abstractmethod
    def mark_paid(
        self,
        guide_id: UUID,
        final_amount: Decimal,
        paid_at: datetime,
        bank_account_id: UUID | None = None,
        reference: str | None = None,
    ) -> Guide:
        """Transition a PENDING guide to PAID.

        Raises GuideNotFoundError for unknown ids and GuideAlreadyPaidError
        when the stored guide is already PAID.
        """
        pass


class FundingAccountRepository(ABC):
    @abstractmethod
    def add(self, account: FundingAccount) -> None:
        pass

    @abstractmethod
    def get(self, account_id: UUID) -> FundingAccount | None:
        pass

    @abstractmethod
    def list_by_owner(self, owner_id: UUID) -> Iterable[FundingAccount]:
        pass

    @abstractmethod
    def apply_debit(
        self, account_id: UUID, amount: Decimal, memo: str
    ) -> DebitReceipt:
        """Atomically check the balance, decrement it and record the debit.

        Raises FundingAccountNotFoundError or InsufficientFundsError and
        leaves the balance untouched in both cases.
        """
        pass

    @abstractmethod
    def credit(self, account_id: UUID, amount: Decimal) -> FundingAccount:
        pass
