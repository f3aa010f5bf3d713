from das_central.domain.funding import DebitReceipt, FundingAccount
from das_central.domain.guides import (
    DEFAULT_DUE_DAY,
    AccountTaxConfig,
    DisplayGuide,
    Guide,
    compute_due_date,
    is_placeholder_id,
    month_name,
    placeholder_id,
)
from das_central.domain.value_objects import DisplayStatus, GuideStatus, to_amount

__all__ = [
    "AccountTaxConfig",
    "DEFAULT_DUE_DAY",
    "DebitReceipt",
    "DisplayGuide",
    "DisplayStatus",
    "FundingAccount",
    "Guide",
    "GuideStatus",
    "compute_due_date",
    "is_placeholder_id",
    "month_name",
    "placeholder_id",
    "to_amount",
]
