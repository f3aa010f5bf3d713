"""Funding accounts that DAS guides are paid from."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from das_central.domain.value_objects import to_amount


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class FundingAccount:
    owner_id: UUID
    name: str
    balance: Decimal = Decimal("0.00")
    id: UUID = field(default_factory=uuid4)
    is_default: bool = False
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        self.balance = to_amount(self.balance)


@dataclass(frozen=True)
class DebitReceipt:
    """Outcome of a successful debit against a funding account."""

    bank_account_id: UUID
    amount: Decimal
    reference: str
    memo: str = ""
    success: bool = True
    created_at: datetime = field(default_factory=_utc_now)


__all__ = [
    "DebitReceipt",
    "FundingAccount",
]
