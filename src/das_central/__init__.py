from das_central.domain.funding import DebitReceipt, FundingAccount
from das_central.domain.guides import AccountTaxConfig, DisplayGuide, Guide
from das_central.domain.value_objects import DisplayStatus, GuideStatus

__all__ = [
    "AccountTaxConfig",
    "DebitReceipt",
    "DisplayGuide",
    "DisplayStatus",
    "FundingAccount",
    "Guide",
    "GuideStatus",
]

__version__ = "0.1.0"
