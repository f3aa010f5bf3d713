"""Tests for display status derivation."""

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from das_central.domain.value_objects import DisplayStatus, GuideStatus
from das_central.services.status import derive, months_behind, payable_guides, year_view

STATUS_RANK = {
    DisplayStatus.UPCOMING: 0,
    DisplayStatus.PENDING: 1,
    DisplayStatus.OVERDUE: 2,
    DisplayStatus.PAID_VISUAL: 3,
}


class TestMonthsBehind:
    def test_same_month(self):
        assert months_behind(2024, 6, date(2024, 6, 1)) == 0

    def test_across_year_boundary(self):
        assert months_behind(2023, 12, date(2024, 1, 15)) == 1

    def test_future_is_negative(self):
        assert months_behind(2024, 8, date(2024, 6, 30)) == -2


class TestDerive:
    def test_current_month_before_due_is_pending(self, make_guide):
        guide = make_guide(uuid4(), 2024, 6)

        row = derive(2024, 6, guide, date(2024, 6, 25))

        assert row.due_date == date(2024, 7, 20)
        assert row.display_status == DisplayStatus.PENDING
        assert row.payable
        assert row.final_value == Decimal("75.60")
        assert row.month_name == "Junho"

    def test_previous_month_still_pending_until_due_date(self, make_guide):
        guide = make_guide(uuid4(), 2024, 6)

        row = derive(2024, 6, guide, date(2024, 7, 20))

        assert row.display_status == DisplayStatus.PENDING
        assert row.payable

    def test_previous_month_past_due_is_overdue(self, make_guide):
        guide = make_guide(uuid4(), 2024, 6)

        row = derive(2024, 6, guide, date(2024, 7, 25))

        assert row.display_status == DisplayStatus.OVERDUE
        assert row.payable

    def test_closed_window_shows_paid_visual(self, make_guide):
        guide = make_guide(uuid4(), 2024, 3)

        row = derive(2024, 3, guide, date(2024, 6, 25))

        assert row.display_status == DisplayStatus.PAID_VISUAL
        assert not row.payable
        assert row.final_value == Decimal("75.60")

    def test_future_month_is_upcoming(self, make_guide):
        guide = make_guide(uuid4(), 2024, 9)

        row = derive(2024, 9, guide, date(2024, 6, 25))

        assert row.display_status == DisplayStatus.UPCOMING
        assert not row.payable

    def test_paid_guide_is_paid_at_any_date(self, make_guide):
        guide = make_guide(uuid4(), 2024, 6)
        guide.status = GuideStatus.PAID
        guide.final_paid_value = Decimal("80.00")
        guide.paid_at = datetime(2024, 7, 1, tzinfo=UTC)

        for today in (date(2024, 6, 1), date(2024, 7, 25), date(2030, 1, 1)):
            row = derive(2024, 6, guide, today)
            assert row.display_status == DisplayStatus.PAID
            assert not row.payable
            assert row.final_value == Decimal("80.00")

    def test_placeholder_is_never_payable(self):
        row = derive(2024, 6, None, date(2024, 6, 25))

        assert row.is_placeholder
        assert row.guide_id == "placeholder:2024-06"
        assert row.display_status == DisplayStatus.PENDING
        assert not row.payable
        assert row.final_value == Decimal("0.00")

    def test_placeholder_uses_supplied_due_day_and_value(self):
        row = derive(
            2024, 1, None, date(2024, 3, 1), due_day=31, default_value=Decimal("50")
        )

        assert row.due_date == date(2024, 2, 29)
        assert row.final_value == Decimal("50.00")
        assert row.display_status == DisplayStatus.PAID_VISUAL

    def test_placeholder_overdue_is_not_payable(self):
        row = derive(2024, 5, None, date(2024, 6, 25))

        assert row.display_status == DisplayStatus.OVERDUE
        assert not row.payable

    def test_english_month_names(self, make_guide):
        row = derive(2024, 6, make_guide(uuid4()), date(2024, 6, 25), locale="en")

        assert row.month_name == "June"

    def test_rejects_invalid_month(self):
        with pytest.raises(ValueError):
            derive(2024, 13, None, date(2024, 6, 25))


class TestStatusMonotonicity:
    def test_unpaid_guide_only_moves_forward(self, make_guide):
        guide = make_guide(uuid4(), 2024, 6)
        day = date(2024, 4, 1)
        last_rank = -1

        while day <= date(2024, 10, 31):
            rank = STATUS_RANK[derive(2024, 6, guide, day).display_status]
            assert rank >= last_rank, f"status went backwards on {day}"
            last_rank = rank
            day += timedelta(days=1)

    def test_payable_exactly_in_live_window(self, make_guide):
        guide = make_guide(uuid4(), 2024, 6)
        day = date(2024, 4, 1)

        while day <= date(2024, 10, 31):
            row = derive(2024, 6, guide, day)
            live = date(2024, 6, 1) <= day <= date(2024, 7, 31)
            assert row.payable is live, f"payable mismatch on {day}"
            day += timedelta(days=1)


class TestYearView:
    def test_renders_twelve_months(self, make_guide):
        account_id = uuid4()
        guides = [make_guide(account_id, 2024, m) for m in (5, 6, 7)]

        view = year_view(2024, guides, date(2024, 6, 25))

        assert [row.month for row in view] == list(range(1, 13))
        assert [row.is_placeholder for row in view].count(False) == 3
        assert view[0].display_status == DisplayStatus.PAID_VISUAL
        assert view[4].display_status == DisplayStatus.OVERDUE
        assert view[5].display_status == DisplayStatus.PENDING
        assert view[6].display_status == DisplayStatus.UPCOMING

    def test_ignores_guides_from_other_years(self, make_guide):
        account_id = uuid4()
        guides = [make_guide(account_id, 2023, 6), make_guide(account_id, 2024, 6)]

        view = year_view(2024, guides, date(2024, 6, 25))

        assert view[5].guide is guides[1]

    def test_accepts_month_mapping(self, make_guide):
        guide = make_guide(uuid4(), 2024, 6)

        view = year_view(2024, {6: guide}, date(2024, 6, 25))

        assert view[5].guide is guide
        assert view[4].is_placeholder

    def test_payable_guides(self, make_guide):
        account_id = uuid4()
        guides = [make_guide(account_id, 2024, m) for m in range(1, 13)]

        payable = payable_guides(year_view(2024, guides, date(2024, 6, 25)))

        assert [row.month for row in payable] == [5, 6]
