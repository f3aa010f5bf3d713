"""Pydantic v2 schemas for API request/response models.

Monetary values are serialized as strings to keep their two decimal places.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# Tax configuration
class TaxConfigUpdate(BaseModel):
    """Schema for setting an account's DAS configuration."""

    base_value: Decimal
    due_day: int | None = None


class TaxConfigResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account_id: UUID
    base_value: str
    due_day: int
    updated_at: datetime


# Guides
class EnsureRequest(BaseModel):
    """Schema for materializing a year. Defaults to the current year."""

    year: int | None = Field(default=None, ge=1, le=9998)


class GuideResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    account_id: UUID
    year: int
    month: int
    status: str
    base_value: str
    due_date: date
    final_paid_value: str | None = None
    paid_at: datetime | None = None
    bank_account_id: UUID | None = None
    payment_reference: str | None = None


class EnsureResponse(BaseModel):
    account_id: UUID
    year: int
    created: list[GuideResponse]


class DisplayGuideResponse(BaseModel):
    """One row of the 12-month table."""

    guide_id: str
    year: int
    month: int
    month_name: str
    display_status: str
    payable: bool
    is_placeholder: bool
    due_date: date
    final_value: str
    paid_at: datetime | None = None


class YearViewResponse(BaseModel):
    account_id: UUID
    year: int
    configured: bool
    total_paid: str
    paid_count: int
    overdue_count: int
    guides: list[DisplayGuideResponse]


# Payments
class PayRequest(BaseModel):
    bank_account_id: UUID
    final_amount: Decimal


class BatchPayRequest(BaseModel):
    guide_ids: list[str] = Field(..., min_length=1)
    bank_account_id: UUID


class SkippedGuideResponse(BaseModel):
    guide_id: str
    reason: str


class BatchPayResponse(BaseModel):
    """Outcome of a batch. A stopped batch still returns 200 with ``failed_at`` set."""

    succeeded: bool
    paid: list[GuideResponse]
    skipped: list[SkippedGuideResponse]
    failed_at: str | None = None
    error: dict[str, Any] | None = None
    not_attempted: list[str] = Field(default_factory=list)
    total_paid: str


# Summary
class NextDueResponse(BaseModel):
    guide_id: UUID
    year: int
    month: int
    month_name: str
    due_date: date
    value: str


class YearSummaryResponse(BaseModel):
    year: int
    total_paid: str
    total_pending: str
    paid_count: int
    pending_count: int


class SummaryResponse(BaseModel):
    account_id: UUID
    total_paid: str
    total_pending: str
    paid_count: int
    pending_count: int
    overdue_count: int
    next_due: NextDueResponse | None = None
    by_year: list[YearSummaryResponse]


class DueAlertResponse(BaseModel):
    active: bool
    overdue_count: int = 0
    next_due: NextDueResponse | None = None
    days_until_due: int | None = None


# Funding accounts
class FundingAccountCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    owner_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    balance: Decimal = Decimal("0.00")
    is_default: bool = False


class FundingAccountResponse(BaseModel):
    id: UUID
    owner_id: UUID
    name: str
    balance: str
    is_default: bool
    created_at: datetime


# Health
class HealthResponse(BaseModel):
    status: str
    version: str
