"""Display status derivation for DAS guides.

Everything here is pure: no store access, no clock reads. Callers pass
``today`` explicitly so a year table can be rendered (and tested) for any
date.

A guide is live from the first day of its reference month until the end of
the month it falls due in (the following month). Rules, first match wins:

    guide is PAID                          -> PAID         not payable
    live window already closed             -> PAID_VISUAL  not payable
    live and today > due date              -> OVERDUE      payable
    live and today <= due date             -> PENDING      payable
    reference month still in the future    -> UPCOMING     not payable

Placeholders (months with no persisted guide) follow the same rules but are
never payable.
"""

from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal

from das_central.domain.guides import (
    DEFAULT_DUE_DAY,
    DisplayGuide,
    Guide,
    compute_due_date,
    month_name,
    validate_period,
)
from das_central.domain.value_objects import DisplayStatus, to_amount

PLACEHOLDER_VALUE = Decimal("0.00")


def _month_index(year: int, month: int) -> int:
    return year * 12 + (month - 1)


def months_behind(year: int, month: int, today: date) -> int:
    """How many months the reference month lies before today's month.

    Negative for future months.
    """
    return _month_index(today.year, today.month) - _month_index(year, month)


def derive(
    year: int,
    month: int,
    guide: Guide | None,
    today: date,
    due_day: int = DEFAULT_DUE_DAY,
    default_value: Decimal = PLACEHOLDER_VALUE,
    locale: str = "pt",
) -> DisplayGuide:
    validate_period(year, month)

    if guide is not None:
        due_date = guide.due_date
        final_value = (
            guide.final_paid_value
            if guide.is_paid and guide.final_paid_value is not None
            else guide.base_value
        )
    else:
        due_date = compute_due_date(year, month, due_day)
        final_value = to_amount(default_value)

    behind = months_behind(year, month, today)

    if guide is not None and guide.is_paid:
        status, payable = DisplayStatus.PAID, False
    elif behind > 1:
        status, payable = DisplayStatus.PAID_VISUAL, False
    elif behind >= 0:
        overdue = today > due_date
        status = DisplayStatus.OVERDUE if overdue else DisplayStatus.PENDING
        payable = guide is not None
    else:
        status, payable = DisplayStatus.UPCOMING, False

    return DisplayGuide(
        year=year,
        month=month,
        month_name=month_name(month, locale),
        guide=guide,
        display_status=status,
        payable=payable,
        due_date=due_date,
        final_value=final_value,
    )


def year_view(
    year: int,
    guides: Iterable[Guide] | Mapping[int, Guide],
    today: date,
    due_day: int = DEFAULT_DUE_DAY,
    default_value: Decimal = PLACEHOLDER_VALUE,
    locale: str = "pt",
) -> list[DisplayGuide]:
    """Render all twelve months of ``year``.

    Guides from other years are ignored.
    """
    if isinstance(guides, Mapping):
        by_month = dict(guides)
    else:
        by_month = {g.month: g for g in guides if g.year == year}

    return [
        derive(
            year,
            month,
            by_month.get(month),
            today,
            due_day=due_day,
            default_value=default_value,
            locale=locale,
        )
        for month in range(1, 13)
    ]


def payable_guides(view: Iterable[DisplayGuide]) -> list[DisplayGuide]:
    return [row for row in view if row.payable]
