from das_central.repositories.interfaces import (
    FundingAccountRepository,
    GuideRepository,
    TaxConfigRepository,
)
from das_central.repositories.sqlite import (
    SQLiteDatabase,
    SQLiteFundingAccountRepository,
    SQLiteGuideRepository,
    SQLiteTaxConfigRepository,
)

__all__ = [
    "FundingAccountRepository",
    "GuideRepository",
    "TaxConfigRepository",
    "SQLiteDatabase",
    "SQLiteFundingAccountRepository",
    "SQLiteGuideRepository",
    "SQLiteTaxConfigRepository",
]
