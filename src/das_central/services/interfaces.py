from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from das_central.domain.funding import DebitReceipt
from das_central.domain.guides import Guide
from das_central.exceptions import DasCentralError


class BankLedger(ABC):
    """Moves money out of a funding account."""

    @abstractmethod
    def debit(self, bank_account_id: UUID, amount: Decimal, memo: str) -> DebitReceipt:
        """Debit ``amount`` from the funding account.

        Raises:
            InsufficientFundsError: If the balance cannot cover the amount.
            FundingAccountNotFoundError: If the account does not exist.
        """
        pass

    @abstractmethod
    def reverse(self, receipt: DebitReceipt) -> None:
        """Return a debit's amount to its funding account."""
        pass


@dataclass(frozen=True)
class SkippedGuide:
    guide_id: str
    reason: str


@dataclass
class BatchPaymentResult:
    """Outcome of a sequential batch payment.

    ``paid`` is always a prefix of the attempted guides in submission order.
    When ``failed_at`` is set, ``error`` holds the ledger failure and
    ``not_attempted`` lists the ids that were never reached.
    """

    paid: list[Guide] = field(default_factory=list)
    skipped: list[SkippedGuide] = field(default_factory=list)
    failed_at: str | None = None
    error: DasCentralError | None = None
    not_attempted: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.failed_at is None

    @property
    def paid_ids(self) -> list[str]:
        return [str(g.id) for g in self.paid]

    @property
    def total_paid(self) -> Decimal:
        return sum(
            (g.final_paid_value or Decimal("0") for g in self.paid),
            Decimal("0.00"),
        )


@dataclass
class YearSummary:
    year: int
    total_paid: Decimal = Decimal("0.00")
    total_pending: Decimal = Decimal("0.00")
    paid_count: int = 0
    pending_count: int = 0


@dataclass(frozen=True)
class NextDue:
    guide_id: UUID
    year: int
    month: int
    month_name: str
    due_date: date
    value: Decimal


@dataclass
class DasSummary:
    account_id: UUID
    total_paid: Decimal = Decimal("0.00")
    total_pending: Decimal = Decimal("0.00")
    paid_count: int = 0
    pending_count: int = 0
    overdue_count: int = 0
    next_due: NextDue | None = None
    by_year: dict[int, YearSummary] = field(default_factory=dict)


@dataclass(frozen=True)
class DueAlert:
    """Dashboard alert: overdue guides, or the next due date inside the window."""

    overdue_count: int
    next_due: NextDue | None
    days_until_due: int | None

    @property
    def is_overdue(self) -> bool:
        return self.overdue_count > 0
