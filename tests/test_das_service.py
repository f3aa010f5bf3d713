"""Tests for the DasService facade, including the end-to-end scenarios."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from das_central.domain.value_objects import DisplayStatus, GuideStatus
from das_central.exceptions import (
    FundingAccountNotFoundError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidTaxConfigError,
    TaxConfigNotFoundError,
)


class TestConfiguration:
    def test_set_and_get(self, service, account_id, fixed_now):
        config = service.set_config(account_id, "75.60", 20)

        stored = service.get_config(account_id)
        assert stored.base_value == Decimal("75.60")
        assert stored.due_day == 20
        assert stored.updated_at == fixed_now
        assert config.account_id == account_id

    def test_due_day_defaults(self, service, account_id):
        config = service.set_config(account_id, Decimal("75.60"))

        assert config.due_day == 20

    def test_replacing_config(self, service, account_id):
        service.set_config(account_id, Decimal("75.60"), 20)
        service.set_config(account_id, Decimal("90.00"), 10)

        stored = service.get_config(account_id)
        assert stored.base_value == Decimal("90.00")
        assert stored.due_day == 10

    def test_invalid_config_is_not_stored(self, service, account_id):
        with pytest.raises(InvalidTaxConfigError):
            service.set_config(account_id, Decimal("0"), 20)

        assert service.get_config(account_id) is None

    def test_require_config_raises_when_missing(self, service, account_id):
        with pytest.raises(TaxConfigNotFoundError):
            service.require_config(account_id)


class TestYearView:
    def test_materializes_before_rendering(self, service, configured_account):
        view = service.year_view(configured_account, 2024, today=date(2024, 6, 25))

        assert view.configured
        assert not any(row.is_placeholder for row in view.rows)
        assert [row.month for row in view.payable] == [5, 6]

    def test_unconfigured_account_shows_placeholders(self, service, account_id):
        view = service.year_view(account_id, 2024, today=date(2024, 6, 25))

        assert not view.configured
        assert all(row.is_placeholder for row in view.rows)
        assert view.payable == []

    def test_placeholders_display_zero_for_configured_account(
        self, service, configured_account
    ):
        view = service.year_view(
            configured_account, 2025, today=date(2024, 6, 25), materialize=False
        )

        assert view.configured
        assert all(row.is_placeholder for row in view.rows)
        assert {row.final_value for row in view.rows} == {Decimal("0.00")}
        assert service.selection(view).total == Decimal("0.00")

    def test_uses_clock_when_today_is_omitted(self, service, configured_account):
        view = service.year_view(configured_account, 2024)

        assert view.rows[5].display_status == DisplayStatus.PENDING
        assert view.rows[4].display_status == DisplayStatus.OVERDUE

    def test_year_totals(self, service, configured_account, funding_account):
        view = service.year_view(configured_account, 2024, today=date(2024, 6, 25))
        service.pay(configured_account, view.rows[5].guide_id, funding_account.id, "80.00")

        view = service.year_view(configured_account, 2024, today=date(2024, 6, 25))

        assert view.paid_count == 1
        assert view.total_paid == Decimal("80.00")
        assert view.overdue_count == 1


class TestScenarios:
    def test_june_pending_then_overdue(self, service, configured_account):
        june = service.year_view(configured_account, 2024, today=date(2024, 6, 25)).rows[5]

        assert june.due_date == date(2024, 7, 20)
        assert june.display_status == DisplayStatus.PENDING

        june = service.year_view(configured_account, 2024, today=date(2024, 7, 25)).rows[5]
        assert june.display_status == DisplayStatus.OVERDUE

    def test_paying_march_with_interest(self, service, configured_account, funding_account):
        view = service.year_view(configured_account, 2024, today=date(2024, 6, 25))

        paid = service.pay(
            configured_account, view.rows[2].guide_id, funding_account.id, Decimal("80.00")
        )

        assert paid.final_paid_value == Decimal("80.00")
        assert service.summarize(configured_account).total_paid == Decimal("80.00")

    def test_batch_stops_on_insufficient_funds(self, service, configured_account):
        account = service.add_funding_account(uuid4(), "Caixa", Decimal("100.00"))
        view = service.year_view(configured_account, 2024, today=date(2024, 6, 25))
        ids = [view.rows[m].guide_id for m in (0, 1, 2)]

        result = service.pay_batch(configured_account, ids, account.id)

        assert result.paid_ids == [ids[0]]
        assert result.failed_at == ids[1]
        assert isinstance(result.error, InsufficientFundsError)
        view = service.year_view(configured_account, 2024, today=date(2024, 6, 25))
        assert [view.rows[m].guide.status for m in (0, 1, 2)] == [
            GuideStatus.PAID,
            GuideStatus.PENDING,
            GuideStatus.PENDING,
        ]

    def test_batch_from_selection(self, service, configured_account, funding_account):
        view = service.year_view(configured_account, 2024, today=date(2024, 6, 25))
        selection = service.selection(view)
        selection.select_all()

        result = service.pay_batch(configured_account, selection.guide_ids, funding_account.id)

        assert result.succeeded
        assert [g.month for g in result.paid] == [5, 6]


class TestFundingAccounts:
    def test_add_and_list(self, service):
        owner = uuid4()
        service.add_funding_account(owner, "Reserva", Decimal("50.00"))
        service.add_funding_account(owner, "Conta PJ", Decimal("10.00"), is_default=True)

        accounts = service.list_funding_accounts(owner)

        assert [a.name for a in accounts] == ["Conta PJ", "Reserva"]
        assert service.list_funding_accounts(uuid4()) == []

    def test_deposit(self, service, funding_account):
        account = service.deposit(funding_account.id, "25.50")

        assert account.balance == Decimal("1025.50")

    @pytest.mark.parametrize("amount", ["0", "-1", "abc"])
    def test_deposit_rejects_invalid_amount(self, service, funding_account, amount):
        with pytest.raises(InvalidAmountError):
            service.deposit(funding_account.id, amount)

    def test_deposit_to_missing_account(self, service):
        with pytest.raises(FundingAccountNotFoundError):
            service.deposit(uuid4(), "10.00")


class TestDueAlert:
    def test_uses_configured_window(self, service, configured_account):
        service.ensure_year(configured_account, 2024)

        alert = service.due_alert(configured_account)

        assert alert is not None
        assert alert.overdue_count == 1
