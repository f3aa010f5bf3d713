"""Domain exception hierarchy for DAS Central.

All domain-specific exceptions inherit from DasCentralError, so callers can
catch every application error with one base class while the API layer still
maps each type to its own status code.
"""

from typing import Any
from uuid import UUID


class DasCentralError(Exception):
    """Base exception for all DAS Central errors.

    Includes an error_code for API responses and extra context.
    """

    error_code: str = "DAS_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Tax Configuration Errors
# =============================================================================


class TaxConfigError(DasCentralError):
    """Base exception for tax configuration errors."""

    error_code = "TAX_CONFIG_ERROR"
    status_code = 400


class InvalidTaxConfigError(TaxConfigError):
    """Raised when a base value or due day is out of range."""

    error_code = "INVALID_TAX_CONFIG"
    status_code = 422

    def __init__(self, field: str, value: str, reason: str) -> None:
        super().__init__(
            f"Invalid {field} '{value}': {reason}",
            context={"field": field, "value": value, "reason": reason},
        )


class TaxConfigNotFoundError(TaxConfigError):
    """Raised when an operation requires a configuration that does not exist."""

    error_code = "TAX_CONFIG_NOT_FOUND"
    status_code = 404

    def __init__(self, account_id: UUID | str) -> None:
        super().__init__(
            f"No DAS configuration for account: {account_id}",
            context={"account_id": str(account_id)},
        )


# =============================================================================
# Guide Errors
# =============================================================================


class GuideError(DasCentralError):
    """Base exception for guide-related errors."""

    error_code = "GUIDE_ERROR"
    status_code = 400


class GuideNotFoundError(GuideError):
    """Raised for unknown guide ids and unmaterialized placeholders."""

    error_code = "GUIDE_NOT_FOUND"
    status_code = 404

    def __init__(self, guide_id: UUID | str) -> None:
        super().__init__(
            f"Guide not found: {guide_id}",
            context={"guide_id": str(guide_id)},
        )


class GuideAlreadyPaidError(GuideError):
    """Raised when payment is attempted on a guide that is already PAID."""

    error_code = "GUIDE_ALREADY_PAID"
    status_code = 409

    def __init__(self, guide_id: UUID | str) -> None:
        super().__init__(
            f"Guide is already paid: {guide_id}",
            context={"guide_id": str(guide_id)},
        )


class DuplicateGuideError(GuideError):
    """Raised by a guide store when (account, year, month) already exists."""

    error_code = "DUPLICATE_GUIDE"
    status_code = 409

    def __init__(self, account_id: UUID | str, year: int, month: int) -> None:
        super().__init__(
            f"Guide already exists for {year}-{month:02d}",
            context={"account_id": str(account_id), "year": year, "month": month},
        )


# =============================================================================
# Funding Account Errors
# =============================================================================


class FundingAccountError(DasCentralError):
    """Base exception for funding account and ledger errors."""

    error_code = "FUNDING_ACCOUNT_ERROR"
    status_code = 400


class FundingAccountNotFoundError(FundingAccountError):
    """Raised when a funding account cannot be found."""

    error_code = "FUNDING_ACCOUNT_NOT_FOUND"
    status_code = 404

    def __init__(self, account_id: UUID | str) -> None:
        super().__init__(
            f"Funding account not found: {account_id}",
            context={"bank_account_id": str(account_id)},
        )


class InsufficientFundsError(FundingAccountError):
    """Raised when a funding account cannot cover a debit."""

    error_code = "INSUFFICIENT_FUNDS"
    status_code = 402

    def __init__(
        self, account_id: UUID | str, required: str, available: str
    ) -> None:
        super().__init__(
            f"Insufficient funds: required {required}, available {available}",
            context={
                "bank_account_id": str(account_id),
                "required": required,
                "available": available,
            },
        )


# =============================================================================
# Database Errors
# =============================================================================


class DatabaseError(DasCentralError):
    """Base exception for database-related errors."""

    error_code = "DATABASE_ERROR"
    status_code = 500


class DatabaseConnectionError(DatabaseError):
    """Raised when database connection fails."""

    error_code = "DATABASE_CONNECTION_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(f"Database connection failed: {message}")


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(DasCentralError):
    """Base exception for validation errors."""

    error_code = "VALIDATION_ERROR"
    status_code = 422


class InvalidAmountError(ValidationError):
    """Raised when an invalid monetary amount is provided."""

    error_code = "INVALID_AMOUNT"

    def __init__(self, amount: str, reason: str) -> None:
        super().__init__(
            f"Invalid amount '{amount}': {reason}",
            context={"amount": amount, "reason": reason},
        )
