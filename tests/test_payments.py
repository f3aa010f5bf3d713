"""Tests for guide selection and payment settlement."""

import logging
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from das_central.domain.funding import DebitReceipt, FundingAccount
from das_central.domain.value_objects import GuideStatus
from das_central.exceptions import (
    FundingAccountNotFoundError,
    GuideAlreadyPaidError,
    GuideNotFoundError,
    InsufficientFundsError,
    InvalidAmountError,
)
from das_central.services.payments import GuideSelection, PaymentCoordinator
from das_central.services.status import year_view


@pytest.fixture
def june_guide(service, configured_account, guide_repo):
    service.ensure_year(configured_account, 2024)
    return guide_repo.find(configured_account, 2024, 6)


class TestGuideSelection:
    @pytest.fixture
    def view(self, service, configured_account):
        return service.year_view(configured_account, 2024, today=date(2024, 6, 25)).rows

    def test_toggle_selects_and_deselects_payable_guide(self, view):
        selection = GuideSelection(view)
        june = view[5]

        assert selection.toggle(june.guide_id) is True
        assert june.guide_id in selection
        assert selection.toggle(june.guide_id) is False
        assert len(selection) == 0

    def test_toggle_never_selects_unpayable(self, view):
        selection = GuideSelection(view)

        assert selection.toggle(view[0].guide_id) is False  # PAID_VISUAL
        assert selection.toggle(view[8].guide_id) is False  # UPCOMING
        assert selection.toggle("placeholder:2024-06") is False
        assert selection.toggle(str(uuid4())) is False
        assert len(selection) == 0

    def test_select_all_picks_exactly_payable_in_month_order(self, view):
        selection = GuideSelection(view)

        selection.select_all()

        assert [row.month for row in selection.selected] == [5, 6]

    def test_total_sums_final_values(self, view):
        selection = GuideSelection(view)
        selection.select_all()

        assert selection.total == Decimal("151.20")

    def test_guide_ids_keep_selection_order(self, view):
        selection = GuideSelection(view)
        selection.toggle(view[5].guide_id)
        selection.toggle(view[4].guide_id)

        assert selection.guide_ids == [view[5].guide_id, view[4].guide_id]

    def test_clear(self, view):
        selection = GuideSelection(view)
        selection.select_all()

        selection.clear()

        assert selection.selected == []
        assert selection.total == Decimal("0.00")

    def test_placeholder_rows_are_never_selected(self):
        view = year_view(2024, [], date(2024, 6, 25))
        selection = GuideSelection(view)

        selection.select_all()

        assert len(selection) == 0


class TestPay:
    def test_pays_for_user_entered_amount(
        self, coordinator, june_guide, funding_account, funding_repo, guide_repo, fixed_now
    ):
        paid = coordinator.pay(june_guide.id, funding_account.id, Decimal("80.00"))

        assert paid.status == GuideStatus.PAID
        assert paid.final_paid_value == Decimal("80.00")
        assert paid.base_value == Decimal("75.60")
        assert paid.paid_at == fixed_now
        assert paid.bank_account_id == funding_account.id
        assert paid.payment_reference
        assert guide_repo.get(june_guide.id).is_paid
        assert funding_repo.get(funding_account.id).balance == Decimal("920.00")

    def test_accepts_string_ids_and_amounts(self, coordinator, june_guide, funding_account):
        paid = coordinator.pay(str(june_guide.id), funding_account.id, "75.6")

        assert paid.final_paid_value == Decimal("75.60")

    def test_placeholder_is_not_found(self, coordinator, funding_account):
        with pytest.raises(GuideNotFoundError):
            coordinator.pay("placeholder:2024-06", funding_account.id, Decimal("75.60"))

    def test_unknown_guide_is_not_found(self, coordinator, funding_account):
        with pytest.raises(GuideNotFoundError):
            coordinator.pay(uuid4(), funding_account.id, Decimal("75.60"))

    def test_malformed_id_is_not_found(self, coordinator, funding_account):
        with pytest.raises(GuideNotFoundError):
            coordinator.pay("not-a-uuid", funding_account.id, Decimal("75.60"))

    def test_other_accounts_guide_is_not_found(self, coordinator, june_guide, funding_account):
        with pytest.raises(GuideNotFoundError):
            coordinator.pay(
                june_guide.id, funding_account.id, Decimal("75.60"), account_id=uuid4()
            )

    def test_already_paid_raises(self, coordinator, june_guide, funding_account, funding_repo):
        coordinator.pay(june_guide.id, funding_account.id, Decimal("75.60"))

        with pytest.raises(GuideAlreadyPaidError):
            coordinator.pay(june_guide.id, funding_account.id, Decimal("75.60"))

        assert funding_repo.get(funding_account.id).balance == Decimal("924.40")

    @pytest.mark.parametrize("amount", ["0", "-10.00", "abc"])
    def test_invalid_amount_raises(self, coordinator, june_guide, funding_account, amount):
        with pytest.raises(InvalidAmountError):
            coordinator.pay(june_guide.id, funding_account.id, amount)

    def test_insufficient_funds_leaves_guide_pending(
        self, coordinator, june_guide, funding_account, guide_repo, funding_repo
    ):
        with pytest.raises(InsufficientFundsError):
            coordinator.pay(june_guide.id, funding_account.id, Decimal("5000.00"))

        assert guide_repo.get(june_guide.id).status == GuideStatus.PENDING
        assert funding_repo.get(funding_account.id).balance == Decimal("1000.00")

    def test_missing_funding_account_leaves_guide_pending(
        self, coordinator, june_guide, guide_repo
    ):
        with pytest.raises(FundingAccountNotFoundError):
            coordinator.pay(june_guide.id, uuid4(), Decimal("75.60"))

        assert guide_repo.get(june_guide.id).status == GuideStatus.PENDING

    def test_logs_payment(self, coordinator, june_guide, funding_account, caplog, capsys):
        with caplog.at_level(logging.INFO):
            coordinator.pay(june_guide.id, funding_account.id, Decimal("75.60"))

        output = capsys.readouterr().out + caplog.text
        assert "guide_paid" in output


class TestPayBatch:
    @pytest.fixture
    def three_guides(self, service, configured_account, guide_repo):
        service.ensure_year(configured_account, 2024)
        return [guide_repo.find(configured_account, 2024, m) for m in (4, 5, 6)]

    def test_pays_each_guide_at_base_value(
        self, coordinator, three_guides, funding_account, funding_repo
    ):
        result = coordinator.pay_batch([g.id for g in three_guides], funding_account.id)

        assert result.succeeded
        assert result.paid_ids == [str(g.id) for g in three_guides]
        assert all(g.final_paid_value == Decimal("75.60") for g in result.paid)
        assert result.total_paid == Decimal("226.80")
        assert funding_repo.get(funding_account.id).balance == Decimal("773.20")

    def test_stops_at_first_ledger_failure(
        self, coordinator, three_guides, funding_repo, guide_repo
    ):
        # Covers exactly one guide
        account = FundingAccount(owner_id=uuid4(), name="Caixa", balance=Decimal("100.00"))
        funding_repo.add(account)
        first, second, third = three_guides

        result = coordinator.pay_batch([g.id for g in three_guides], account.id)

        assert not result.succeeded
        assert result.paid_ids == [str(first.id)]
        assert result.failed_at == str(second.id)
        assert isinstance(result.error, InsufficientFundsError)
        assert result.not_attempted == [str(third.id)]
        assert guide_repo.get(first.id).status == GuideStatus.PAID
        assert guide_repo.get(second.id).status == GuideStatus.PENDING
        assert guide_repo.get(third.id).status == GuideStatus.PENDING
        assert funding_repo.get(account.id).balance == Decimal("24.40")

    def test_skips_placeholders_unknown_and_paid(
        self, coordinator, three_guides, funding_account
    ):
        first, second, _ = three_guides
        coordinator.pay(first.id, funding_account.id, Decimal("75.60"))
        unknown = str(uuid4())

        result = coordinator.pay_batch(
            ["placeholder:2024-01", first.id, unknown, second.id, second.id],
            funding_account.id,
        )

        assert result.succeeded
        assert result.paid_ids == [str(second.id)]
        assert [(s.guide_id, s.reason) for s in result.skipped] == [
            ("placeholder:2024-01", "placeholder"),
            (str(first.id), "already_paid"),
            (unknown, "not_found"),
            (str(second.id), "already_paid"),
        ]

    def test_skips_other_accounts_guides(self, coordinator, three_guides, funding_account):
        result = coordinator.pay_batch(
            [three_guides[0].id], funding_account.id, account_id=uuid4()
        )

        assert result.paid == []
        assert result.skipped[0].reason == "not_found"

    def test_empty_batch(self, coordinator, funding_account):
        result = coordinator.pay_batch([], funding_account.id)

        assert result.succeeded
        assert result.paid == []
        assert result.total_paid == Decimal("0.00")

    def test_missing_funding_account_stops_immediately(self, coordinator, three_guides):
        result = coordinator.pay_batch([g.id for g in three_guides], uuid4())

        assert result.paid == []
        assert result.failed_at == str(three_guides[0].id)
        assert isinstance(result.error, FundingAccountNotFoundError)
        assert len(result.not_attempted) == 2

    def test_logs_stop(self, coordinator, three_guides, funding_repo, caplog, capsys):
        account = FundingAccount(owner_id=uuid4(), name="Vazia", balance=Decimal("0.00"))
        funding_repo.add(account)

        with caplog.at_level(logging.INFO):
            coordinator.pay_batch([g.id for g in three_guides], account.id)

        output = capsys.readouterr().out + caplog.text
        assert "batch_payment_stopped" in output


class TestConcurrentPayment:
    def test_lost_race_reverses_the_debit(
        self, guide_repo, funding_repo, ledger, june_guide, funding_account, fixed_now
    ):
        class RacingGuideRepo:
            """Another tab pays the guide right after the coordinator reads it."""

            def __init__(self, inner):
                self._inner = inner

            def get(self, guide_id):
                stale = self._inner.get(guide_id)
                receipt = ledger.debit(funding_account.id, Decimal("75.60"), "DAS 06/2024")
                self._inner.mark_paid(
                    guide_id, Decimal("75.60"), fixed_now, reference=receipt.reference
                )
                return stale

            def mark_paid(self, *args, **kwargs):
                return self._inner.mark_paid(*args, **kwargs)

        coordinator = PaymentCoordinator(
            RacingGuideRepo(guide_repo), ledger, clock=lambda: fixed_now
        )

        with pytest.raises(GuideAlreadyPaidError):
            coordinator.pay(june_guide.id, funding_account.id, Decimal("75.60"))

        assert funding_repo.get(funding_account.id).balance == Decimal("924.40")
        assert guide_repo.get(june_guide.id).final_paid_value == Decimal("75.60")

    def test_lost_race_is_logged(
        self, guide_repo, ledger, june_guide, funding_account, fixed_now, caplog, capsys
    ):
        class StaleGuideRepo:
            def __init__(self, inner):
                self._inner = inner

            def get(self, guide_id):
                stale = self._inner.get(guide_id)
                self._inner.mark_paid(guide_id, Decimal("75.60"), fixed_now)
                return stale

            def mark_paid(self, *args, **kwargs):
                return self._inner.mark_paid(*args, **kwargs)

        coordinator = PaymentCoordinator(
            StaleGuideRepo(guide_repo), ledger, clock=lambda: fixed_now
        )

        with caplog.at_level(logging.INFO):
            with pytest.raises(GuideAlreadyPaidError):
                coordinator.pay(june_guide.id, funding_account.id, Decimal("75.60"))

        output = capsys.readouterr().out + caplog.text
        assert "guide_paid_concurrently" in output
        assert "debit_reversed" in output


class TestLedgerReverse:
    def test_reverse_returns_the_amount(self, ledger, funding_repo, funding_account):
        receipt = ledger.debit(funding_account.id, Decimal("75.60"), "DAS 06/2024")

        ledger.reverse(receipt)

        assert funding_repo.get(funding_account.id).balance == Decimal("1000.00")

    def test_reverse_to_missing_account_raises(self, ledger):
        receipt = DebitReceipt(
            bank_account_id=uuid4(), amount=Decimal("75.60"), reference="ref-1"
        )

        with pytest.raises(FundingAccountNotFoundError):
            ledger.reverse(receipt)
