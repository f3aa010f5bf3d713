"""DAS guide domain models.

A guide is one month's statutory payment obligation. Guides are paid in
arrears: the guide for a reference month falls due on the configured day of
the following month.
"""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from dateutil.relativedelta import relativedelta  # type: ignore[import-untyped]

from das_central.domain.value_objects import DisplayStatus, GuideStatus, to_amount
from das_central.exceptions import InvalidTaxConfigError

DEFAULT_DUE_DAY = 20
PLACEHOLDER_PREFIX = "placeholder:"

MONTH_NAMES: dict[str, tuple[str, ...]] = {
    "pt": (
        "Janeiro",
        "Fevereiro",
        "Março",
        "Abril",
        "Maio",
        "Junho",
        "Julho",
        "Agosto",
        "Setembro",
        "Outubro",
        "Novembro",
        "Dezembro",
    ),
    "en": (
        "January",
        "February",
        "March",
        "April",
        "May",
        "June",
        "July",
        "August",
        "September",
        "October",
        "November",
        "December",
    ),
}


def _utc_now() -> datetime:
    return datetime.now(UTC)


def month_name(month: int, locale: str = "pt") -> str:
    names = MONTH_NAMES.get(locale, MONTH_NAMES["pt"])
    return names[month - 1]


def validate_period(year: int, month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    if not 1 <= year <= 9998:
        raise ValueError(f"Year out of range: {year}")


def compute_due_date(year: int, month: int, due_day: int) -> date:
    """Return the due date of the guide for ``year``/``month``.

    The ``due_day``-th of the following month, clamped to that month's last
    day (due day 31 for January's guide gives February 28 or 29).
    """
    validate_period(year, month)
    return date(year, month, 1) + relativedelta(months=1, day=due_day)


def placeholder_id(year: int, month: int) -> str:
    return f"{PLACEHOLDER_PREFIX}{year}-{month:02d}"


def is_placeholder_id(guide_id: UUID | str) -> bool:
    return isinstance(guide_id, str) and guide_id.startswith(PLACEHOLDER_PREFIX)


@dataclass
class AccountTaxConfig:
    """Per-account DAS configuration: the monthly base value and due day."""

    account_id: UUID
    base_value: Decimal
    due_day: int = DEFAULT_DUE_DAY
    updated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        try:
            self.base_value = to_amount(self.base_value)
        except ValueError:
            raise InvalidTaxConfigError(
                "base_value", str(self.base_value), "not a number"
            )
        if self.base_value <= 0:
            raise InvalidTaxConfigError(
                "base_value", str(self.base_value), "must be greater than zero"
            )
        if not isinstance(self.due_day, int) or not 1 <= self.due_day <= 31:
            raise InvalidTaxConfigError(
                "due_day", str(self.due_day), "must be between 1 and 31"
            )

    def due_date_for(self, year: int, month: int) -> date:
        return compute_due_date(year, month, self.due_day)


@dataclass
class Guide:
    """Persisted guide for one (account, year, month)."""

    account_id: UUID
    year: int
    month: int
    base_value: Decimal
    due_date: date
    id: UUID = field(default_factory=uuid4)
    status: GuideStatus = GuideStatus.PENDING
    final_paid_value: Decimal | None = None
    paid_at: datetime | None = None
    bank_account_id: UUID | None = None
    payment_reference: str | None = None
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        validate_period(self.year, self.month)
        self.base_value = to_amount(self.base_value)

    @property
    def is_paid(self) -> bool:
        return self.status == GuideStatus.PAID

    @property
    def period(self) -> tuple[int, int]:
        return (self.year, self.month)


@dataclass(frozen=True)
class DisplayGuide:
    """Derived, never-persisted view of one month in a year table."""

    year: int
    month: int
    month_name: str
    guide: Guide | None
    display_status: DisplayStatus
    payable: bool
    due_date: date
    final_value: Decimal

    @property
    def is_placeholder(self) -> bool:
        return self.guide is None

    @property
    def guide_id(self) -> str:
        if self.guide is None:
            return placeholder_id(self.year, self.month)
        return str(self.guide.id)

    @property
    def paid_at(self) -> datetime | None:
        return self.guide.paid_at if self.guide is not None else None


__all__ = [
    "AccountTaxConfig",
    "DEFAULT_DUE_DAY",
    "DisplayGuide",
    "Guide",
    "MONTH_NAMES",
    "PLACEHOLDER_PREFIX",
    "compute_due_date",
    "is_placeholder_id",
    "month_name",
    "placeholder_id",
    "validate_period",
]
