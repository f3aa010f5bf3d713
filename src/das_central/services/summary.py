"""Year and lifetime roll-ups over persisted guides."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from das_central.domain.value_objects import DisplayStatus
from das_central.repositories.interfaces import GuideRepository
from das_central.services.interfaces import DasSummary, DueAlert, NextDue, YearSummary
from das_central.services.status import derive


class SummaryAggregator:
    """Reports ledger-backed facts only.

    Placeholder months never contribute, and nothing is cached: every call
    re-reads the guide store, so a summary taken right after a payment
    reflects it.
    """

    def __init__(self, guide_repo: GuideRepository, locale: str = "pt") -> None:
        self._guide_repo = guide_repo
        self._locale = locale

    def summarize(self, account_id: UUID, today: date | None = None) -> DasSummary:
        today = today or date.today()
        summary = DasSummary(account_id=account_id)

        for guide in self._guide_repo.list_by_account(account_id):
            year = summary.by_year.setdefault(guide.year, YearSummary(year=guide.year))

            if guide.is_paid:
                amount = guide.final_paid_value or Decimal("0.00")
                summary.total_paid += amount
                summary.paid_count += 1
                year.total_paid += amount
                year.paid_count += 1
                continue

            summary.total_pending += guide.base_value
            summary.pending_count += 1
            year.total_pending += guide.base_value
            year.pending_count += 1

            row = derive(guide.year, guide.month, guide, today, locale=self._locale)
            if row.display_status == DisplayStatus.OVERDUE:
                summary.overdue_count += 1
            elif row.payable and (
                summary.next_due is None or guide.due_date < summary.next_due.due_date
            ):
                summary.next_due = NextDue(
                    guide_id=guide.id,
                    year=guide.year,
                    month=guide.month,
                    month_name=row.month_name,
                    due_date=guide.due_date,
                    value=guide.base_value,
                )

        summary.by_year = dict(sorted(summary.by_year.items()))
        return summary

    def summarize_year(
        self, account_id: UUID, year: int, today: date | None = None
    ) -> YearSummary:
        summary = self.summarize(account_id, today)
        return summary.by_year.get(year, YearSummary(year=year))

    def due_alert(
        self, account_id: UUID, today: date | None = None, window_days: int = 7
    ) -> DueAlert | None:
        """Alert when guides are overdue or the next one is due within the window."""
        today = today or date.today()
        summary = self.summarize(account_id, today)

        days_until_due = None
        if summary.next_due is not None:
            days_until_due = (summary.next_due.due_date - today).days

        due_soon = days_until_due is not None and days_until_due <= window_days
        if summary.overdue_count == 0 and not due_soon:
            return None

        return DueAlert(
            overdue_count=summary.overdue_count,
            next_due=summary.next_due,
            days_until_due=days_until_due,
        )
