"""Guide selection and payment settlement."""

from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

from das_central.domain.guides import DisplayGuide, Guide, is_placeholder_id
from das_central.domain.value_objects import to_amount
from das_central.exceptions import (
    DasCentralError,
    GuideAlreadyPaidError,
    GuideNotFoundError,
    InvalidAmountError,
)
from das_central.logging_config import LogContext, get_logger
from das_central.repositories.interfaces import GuideRepository
from das_central.services.interfaces import (
    BankLedger,
    BatchPaymentResult,
    SkippedGuide,
)

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class GuideSelection:
    """User selection over one rendered year.

    Only payable rows can be selected. Selection order is preserved because
    batch payment settles guides in that order.
    """

    def __init__(self, view: Iterable[DisplayGuide]) -> None:
        self._rows: dict[str, DisplayGuide] = {}
        for row in view:
            self._rows[row.guide_id] = row
        self._selected: list[str] = []

    def toggle(self, guide_id: UUID | str) -> bool:
        """Flip selection of one guide. Returns whether it is now selected."""
        key = str(guide_id)
        if key in self._selected:
            self._selected.remove(key)
            return False
        row = self._rows.get(key)
        if row is None or not row.payable:
            return False
        self._selected.append(key)
        return True

    def select_all(self) -> None:
        self._selected = [key for key, row in self._rows.items() if row.payable]

    def clear(self) -> None:
        self._selected = []

    @property
    def selected(self) -> list[DisplayGuide]:
        return [self._rows[key] for key in self._selected]

    @property
    def guide_ids(self) -> list[str]:
        return list(self._selected)

    @property
    def total(self) -> Decimal:
        return sum((row.final_value for row in self.selected), Decimal("0.00"))

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, guide_id: object) -> bool:
        return str(guide_id) in self._selected


class PaymentCoordinator:
    """Settles guides against a funding account through the BankLedger.

    A guide only moves to PAID after the ledger confirms the debit. Batch
    payments run strictly one guide at a time and stop at the first ledger
    failure, leaving the already-settled prefix PAID.
    """

    def __init__(
        self,
        guide_repo: GuideRepository,
        ledger: BankLedger,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._guide_repo = guide_repo
        self._ledger = ledger
        self._clock = clock

    def pay(
        self,
        guide_id: UUID | str,
        bank_account_id: UUID,
        final_amount: Decimal | int | float | str,
        account_id: UUID | None = None,
    ) -> Guide:
        """Pay one guide for a user-entered amount.

        ``final_amount`` may exceed the base value when the payer adds
        interest or a fine by hand.

        Raises:
            GuideNotFoundError: Unknown id, placeholder, or another account's guide.
            GuideAlreadyPaidError: The guide is already PAID.
            InvalidAmountError: The amount is not a positive number.
            InsufficientFundsError, FundingAccountNotFoundError: From the ledger.
        """
        guide = self._resolve(guide_id, account_id)
        if guide.is_paid:
            raise GuideAlreadyPaidError(guide.id)

        try:
            amount = to_amount(final_amount)
        except ValueError:
            raise InvalidAmountError(str(final_amount), "not a number")
        if amount <= 0:
            raise InvalidAmountError(str(amount), "must be greater than zero")

        return self._settle(guide, bank_account_id, amount)

    def pay_batch(
        self,
        guide_ids: Sequence[UUID | str],
        bank_account_id: UUID,
        account_id: UUID | None = None,
    ) -> BatchPaymentResult:
        """Pay several guides, each for its own base value, in the given order.

        Placeholders, unknown ids and already-paid guides are skipped and
        reported. The first ledger failure stops the batch; nothing is
        rolled back and nothing is retried.
        """
        result = BatchPaymentResult()

        with LogContext(bank_account_id=str(bank_account_id), batch_size=len(guide_ids)):
            for index, raw_id in enumerate(guide_ids):
                try:
                    guide = self._resolve(raw_id, account_id)
                except GuideNotFoundError:
                    reason = "placeholder" if is_placeholder_id(raw_id) else "not_found"
                    result.skipped.append(SkippedGuide(str(raw_id), reason))
                    continue

                if guide.is_paid:
                    result.skipped.append(SkippedGuide(str(guide.id), "already_paid"))
                    continue

                try:
                    paid = self._settle(guide, bank_account_id, guide.base_value)
                except DasCentralError as e:
                    result.failed_at = str(guide.id)
                    result.error = e
                    result.not_attempted = [str(x) for x in guide_ids[index + 1 :]]
                    logger.warning(
                        "batch_payment_stopped",
                        failed_at=result.failed_at,
                        paid=len(result.paid),
                        error_code=e.error_code,
                    )
                    return result

                result.paid.append(paid)

            logger.info(
                "batch_payment_completed",
                paid=len(result.paid),
                skipped=len(result.skipped),
                total=str(result.total_paid),
            )
        return result

    def _resolve(self, guide_id: UUID | str, account_id: UUID | None) -> Guide:
        if is_placeholder_id(guide_id):
            raise GuideNotFoundError(guide_id)
        if isinstance(guide_id, UUID):
            key = guide_id
        else:
            try:
                key = UUID(str(guide_id))
            except ValueError:
                raise GuideNotFoundError(guide_id)

        guide = self._guide_repo.get(key)
        if guide is None:
            raise GuideNotFoundError(guide_id)
        if account_id is not None and guide.account_id != account_id:
            raise GuideNotFoundError(guide_id)
        return guide

    def _settle(self, guide: Guide, bank_account_id: UUID, amount: Decimal) -> Guide:
        memo = f"DAS {guide.month:02d}/{guide.year}"
        try:
            receipt = self._ledger.debit(bank_account_id, amount, memo)
        except DasCentralError as e:
            logger.warning(
                "guide_payment_failed",
                guide_id=str(guide.id),
                amount=str(amount),
                error_code=e.error_code,
            )
            raise

        try:
            paid = self._guide_repo.mark_paid(
                guide.id,
                amount,
                self._clock(),
                bank_account_id=bank_account_id,
                reference=receipt.reference,
            )
        except GuideAlreadyPaidError:
            # Another request settled the guide between our read and the debit.
            logger.error(
                "guide_paid_concurrently",
                guide_id=str(guide.id),
                reference=receipt.reference,
            )
            self._ledger.reverse(receipt)
            raise

        logger.info(
            "guide_paid",
            guide_id=str(guide.id),
            year=guide.year,
            month=guide.month,
            amount=str(amount),
            reference=receipt.reference,
        )
        return paid
