"""API route definitions."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status

from das_central import __version__
from das_central.api.schemas import (
    BatchPayRequest,
    BatchPayResponse,
    DisplayGuideResponse,
    DueAlertResponse,
    EnsureRequest,
    EnsureResponse,
    FundingAccountCreate,
    FundingAccountResponse,
    GuideResponse,
    HealthResponse,
    NextDueResponse,
    PayRequest,
    SkippedGuideResponse,
    SummaryResponse,
    TaxConfigResponse,
    TaxConfigUpdate,
    YearSummaryResponse,
    YearViewResponse,
)
from das_central.container import get_das_service
from das_central.domain.funding import FundingAccount
from das_central.domain.guides import AccountTaxConfig, DisplayGuide, Guide
from das_central.services.das import DasService
from das_central.services.interfaces import NextDue

health_router = APIRouter(tags=["health"])
das_router = APIRouter(prefix="/das", tags=["das"])
funding_router = APIRouter(prefix="/funding-accounts", tags=["funding-accounts"])

ServiceDep = Annotated[DasService, Depends(get_das_service)]
YearPath = Annotated[int, Path(ge=1, le=9998)]
AsOfQuery = Annotated[
    date | None, Query(description="Evaluate statuses as of this date")
]


# Helper functions
def _config_to_response(config: AccountTaxConfig) -> TaxConfigResponse:
    return TaxConfigResponse(
        account_id=config.account_id,
        base_value=str(config.base_value),
        due_day=config.due_day,
        updated_at=config.updated_at,
    )


def _guide_to_response(guide: Guide) -> GuideResponse:
    return GuideResponse(
        id=guide.id,
        account_id=guide.account_id,
        year=guide.year,
        month=guide.month,
        status=guide.status.value,
        base_value=str(guide.base_value),
        due_date=guide.due_date,
        final_paid_value=(
            str(guide.final_paid_value) if guide.final_paid_value is not None else None
        ),
        paid_at=guide.paid_at,
        bank_account_id=guide.bank_account_id,
        payment_reference=guide.payment_reference,
    )


def _row_to_response(row: DisplayGuide) -> DisplayGuideResponse:
    return DisplayGuideResponse(
        guide_id=row.guide_id,
        year=row.year,
        month=row.month,
        month_name=row.month_name,
        display_status=row.display_status.value,
        payable=row.payable,
        is_placeholder=row.is_placeholder,
        due_date=row.due_date,
        final_value=str(row.final_value),
        paid_at=row.paid_at,
    )


def _next_due_to_response(next_due: NextDue | None) -> NextDueResponse | None:
    if next_due is None:
        return None
    return NextDueResponse(
        guide_id=next_due.guide_id,
        year=next_due.year,
        month=next_due.month,
        month_name=next_due.month_name,
        due_date=next_due.due_date,
        value=str(next_due.value),
    )


def _funding_to_response(account: FundingAccount) -> FundingAccountResponse:
    return FundingAccountResponse(
        id=account.id,
        owner_id=account.owner_id,
        name=account.name,
        balance=str(account.balance),
        is_default=account.is_default,
        created_at=account.created_at,
    )


# Health endpoint
@health_router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    return HealthResponse(status="healthy", version=__version__)


# Configuration endpoints
@das_router.put("/{account_id}/config", response_model=TaxConfigResponse)
def set_config(
    account_id: UUID,
    payload: TaxConfigUpdate,
    service: ServiceDep,
) -> TaxConfigResponse:
    """Create or replace the account's base value and due day."""
    config = service.set_config(account_id, payload.base_value, payload.due_day)
    return _config_to_response(config)


@das_router.get("/{account_id}/config", response_model=TaxConfigResponse)
def get_config(account_id: UUID, service: ServiceDep) -> TaxConfigResponse:
    return _config_to_response(service.require_config(account_id))


# Guide endpoints
@das_router.post("/{account_id}/ensure", response_model=EnsureResponse)
def ensure_guides(
    account_id: UUID,
    service: ServiceDep,
    payload: EnsureRequest | None = None,
) -> EnsureResponse:
    """Materialize the missing guides of a year.

    Without configuration this succeeds with nothing created.
    """
    year = payload.year if payload and payload.year else service.today().year
    created = service.ensure_year(account_id, year)
    return EnsureResponse(
        account_id=account_id,
        year=year,
        created=[_guide_to_response(g) for g in created],
    )


@das_router.get("/{account_id}/guides/{year}", response_model=YearViewResponse)
def get_year_view(
    account_id: UUID,
    year: YearPath,
    service: ServiceDep,
    as_of: AsOfQuery = None,
) -> YearViewResponse:
    """Twelve-month table for ``year``, materializing missing guides first."""
    view = service.year_view(account_id, year, today=as_of)
    return YearViewResponse(
        account_id=account_id,
        year=year,
        configured=view.configured,
        total_paid=str(view.total_paid),
        paid_count=view.paid_count,
        overdue_count=view.overdue_count,
        guides=[_row_to_response(row) for row in view.rows],
    )


# Payment endpoints
@das_router.post("/{account_id}/guides/{guide_id}/pay", response_model=GuideResponse)
def pay_guide(
    account_id: UUID,
    guide_id: str,
    payload: PayRequest,
    service: ServiceDep,
) -> GuideResponse:
    guide = service.pay(
        account_id, guide_id, payload.bank_account_id, payload.final_amount
    )
    return _guide_to_response(guide)


@das_router.post("/{account_id}/pay-batch", response_model=BatchPayResponse)
def pay_batch(
    account_id: UUID,
    payload: BatchPayRequest,
    service: ServiceDep,
) -> BatchPayResponse:
    """Pay guides in order, each for its base value, stopping at the first failure."""
    result = service.pay_batch(account_id, payload.guide_ids, payload.bank_account_id)
    return BatchPayResponse(
        succeeded=result.succeeded,
        paid=[_guide_to_response(g) for g in result.paid],
        skipped=[
            SkippedGuideResponse(guide_id=s.guide_id, reason=s.reason)
            for s in result.skipped
        ],
        failed_at=result.failed_at,
        error=result.error.to_dict() if result.error is not None else None,
        not_attempted=result.not_attempted,
        total_paid=str(result.total_paid),
    )


# Reporting endpoints
@das_router.get("/{account_id}/summary", response_model=SummaryResponse)
def get_summary(
    account_id: UUID,
    service: ServiceDep,
    as_of: AsOfQuery = None,
) -> SummaryResponse:
    summary = service.summarize(account_id, today=as_of)
    return SummaryResponse(
        account_id=account_id,
        total_paid=str(summary.total_paid),
        total_pending=str(summary.total_pending),
        paid_count=summary.paid_count,
        pending_count=summary.pending_count,
        overdue_count=summary.overdue_count,
        next_due=_next_due_to_response(summary.next_due),
        by_year=[
            YearSummaryResponse(
                year=y.year,
                total_paid=str(y.total_paid),
                total_pending=str(y.total_pending),
                paid_count=y.paid_count,
                pending_count=y.pending_count,
            )
            for y in summary.by_year.values()
        ],
    )


@das_router.get("/{account_id}/alert", response_model=DueAlertResponse)
def get_due_alert(
    account_id: UUID,
    service: ServiceDep,
    as_of: AsOfQuery = None,
    window_days: Annotated[int | None, Query(ge=0)] = None,
) -> DueAlertResponse:
    alert = service.due_alert(account_id, today=as_of, window_days=window_days)
    if alert is None:
        return DueAlertResponse(active=False)
    return DueAlertResponse(
        active=True,
        overdue_count=alert.overdue_count,
        next_due=_next_due_to_response(alert.next_due),
        days_until_due=alert.days_until_due,
    )


# Funding account endpoints
@funding_router.post(
    "",
    response_model=FundingAccountResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_funding_account(
    payload: FundingAccountCreate,
    service: ServiceDep,
) -> FundingAccountResponse:
    account = service.add_funding_account(
        payload.owner_id, payload.name, payload.balance, payload.is_default
    )
    return _funding_to_response(account)


@funding_router.get("", response_model=list[FundingAccountResponse])
def list_funding_accounts(
    owner_id: UUID,
    service: ServiceDep,
) -> list[FundingAccountResponse]:
    return [_funding_to_response(a) for a in service.list_funding_accounts(owner_id)]
