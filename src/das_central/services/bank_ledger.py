"""BankLedger backed by the funding account store."""

from decimal import Decimal
from uuid import UUID

from das_central.domain.funding import DebitReceipt
from das_central.domain.value_objects import to_amount
from das_central.exceptions import FundingAccountError, InvalidAmountError
from das_central.logging_config import get_logger
from das_central.repositories.interfaces import FundingAccountRepository
from das_central.services.interfaces import BankLedger

logger = get_logger(__name__)


class FundingAccountLedger(BankLedger):
    def __init__(self, funding_repo: FundingAccountRepository) -> None:
        self._funding_repo = funding_repo

    def debit(self, bank_account_id: UUID, amount: Decimal, memo: str) -> DebitReceipt:
        amount = to_amount(amount)
        if amount <= 0:
            raise InvalidAmountError(str(amount), "debit must be positive")

        try:
            receipt = self._funding_repo.apply_debit(bank_account_id, amount, memo)
        except FundingAccountError as e:
            logger.warning(
                "debit_rejected",
                bank_account_id=str(bank_account_id),
                amount=str(amount),
                error_code=e.error_code,
            )
            raise

        logger.info(
            "debit_applied",
            bank_account_id=str(bank_account_id),
            amount=str(amount),
            reference=receipt.reference,
        )
        return receipt

    def reverse(self, receipt: DebitReceipt) -> None:
        self._funding_repo.credit(receipt.bank_account_id, receipt.amount)
        logger.warning(
            "debit_reversed",
            bank_account_id=str(receipt.bank_account_id),
            amount=str(receipt.amount),
            reference=receipt.reference,
        )
