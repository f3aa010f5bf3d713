from das_central.services.bank_ledger import FundingAccountLedger
from das_central.services.das import DasService, YearView
from das_central.services.interfaces import (
    BankLedger,
    BatchPaymentResult,
    DasSummary,
    DueAlert,
    NextDue,
    SkippedGuide,
    YearSummary,
)
from das_central.services.materializer import GuideMaterializer
from das_central.services.payments import GuideSelection, PaymentCoordinator
from das_central.services.status import derive, payable_guides, year_view
from das_central.services.summary import SummaryAggregator

__all__ = [
    "BankLedger",
    "BatchPaymentResult",
    "DasService",
    "DasSummary",
    "DueAlert",
    "FundingAccountLedger",
    "GuideMaterializer",
    "GuideSelection",
    "NextDue",
    "PaymentCoordinator",
    "SkippedGuide",
    "SummaryAggregator",
    "YearSummary",
    "YearView",
    "derive",
    "payable_guides",
    "year_view",
]
