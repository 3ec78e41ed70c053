from .models import (
    SaleEntry,
    LineItem,
    Invoice,
    ExpenseType,
    OtherExpense,
    Seller,
    CatalogItem,
    LedgerSnapshot,
    MonthSeries,
    AlignedSeries,
    ExpenseCategory,
    CategoryKind,
    PLRow,
    PLTable,
)
from .errors import ValidationError, NotFoundError, ReferentialIntegrityError, SyncUnavailableError

__all__ = [
    "SaleEntry",
    "LineItem",
    "Invoice",
    "ExpenseType",
    "OtherExpense",
    "Seller",
    "CatalogItem",
    "LedgerSnapshot",
    "MonthSeries",
    "AlignedSeries",
    "ExpenseCategory",
    "CategoryKind",
    "PLRow",
    "PLTable",
    "ValidationError",
    "NotFoundError",
    "ReferentialIntegrityError",
    "SyncUnavailableError",
]
