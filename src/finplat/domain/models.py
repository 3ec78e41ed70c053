from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

# Raw values as captured or imported. The analytics layer coerces them.
Amount = Union[Decimal, int, float, str, None]

ZERO = Decimal("0")

INVOICE_EXPENSES_LABEL = "Invoice Expenses"
UNMATCHED_EXPENSE_LABEL = "Other"

SALE_TYPES = ("fiscal", "non-fiscal")
PAYMENT_METHODS = ("none", "cash", "card", "bank")


@dataclass(frozen=True)
class Seller:
    id: str
    name: str
    description: str = ""


@dataclass(frozen=True)
class CatalogItem:
    id: str
    name: str
    default_price: Amount = None


@dataclass(frozen=True)
class SaleEntry:
    id: str
    date: str
    type: str
    description: str
    amount: Amount
    created_at: str = ""


@dataclass(frozen=True)
class LineItem:
    quantity: Amount = 1
    unit_price: Amount = ZERO
    item_id: Optional[str] = None
    description: str = ""


@dataclass(frozen=True)
class Invoice:
    id: str
    seller_id: Optional[str]
    invoice_number: str
    documented_date: str
    invoice_date: str
    type: str
    items: tuple[LineItem, ...] = ()
    payment_method: str = "none"
    payment_date: str = ""


@dataclass(frozen=True)
class ExpenseType:
    id: str
    name: str


@dataclass(frozen=True)
class OtherExpense:
    id: str
    date: str
    type_id: Optional[str]
    description: str
    amount: Amount
    payment_method: str = "none"
    payment_date: str = ""
    created_at: str = ""


@dataclass(frozen=True)
class LedgerSnapshot:
    """Read-only view of every ledger collection at one point in time."""

    sales: tuple[SaleEntry, ...] = ()
    invoices: tuple[Invoice, ...] = ()
    expenses: tuple[OtherExpense, ...] = ()
    expense_types: tuple[ExpenseType, ...] = ()
    sellers: tuple[Seller, ...] = ()
    items: tuple[CatalogItem, ...] = ()


@dataclass(frozen=True)
class MonthSeries:
    labels: tuple[str, ...] = ()
    values: tuple[Decimal, ...] = ()

    def __post_init__(self) -> None:
        if len(self.labels) != len(self.values):
            raise ValueError("labels and values must have the same length")

    def value_at(self, label: str) -> Decimal:
        for lbl, value in zip(self.labels, self.values):
            if lbl == label:
                return value
        return ZERO

    @property
    def total(self) -> Decimal:
        return sum(self.values, ZERO)


@dataclass(frozen=True)
class AlignedSeries:
    labels: tuple[str, ...]
    values: tuple[tuple[Decimal, ...], ...]


class CategoryKind(Enum):
    KNOWN = "known"
    INVOICE_EXPENSE = "invoice_expense"
    UNMATCHED = "unmatched"


@dataclass(frozen=True)
class ExpenseCategory:
    kind: CategoryKind
    type_id: Optional[str] = None
    name: str = field(default="", compare=False)

    @classmethod
    def known(cls, type_id: str, name: str) -> "ExpenseCategory":
        return cls(CategoryKind.KNOWN, type_id, name)

    @property
    def label(self) -> str:
        if self.kind is CategoryKind.INVOICE_EXPENSE:
            return INVOICE_EXPENSES_LABEL
        if self.kind is CategoryKind.UNMATCHED:
            return UNMATCHED_EXPENSE_LABEL
        return self.name


INVOICE_EXPENSES = ExpenseCategory(CategoryKind.INVOICE_EXPENSE)
UNMATCHED_EXPENSES = ExpenseCategory(CategoryKind.UNMATCHED)


class PLRow(Enum):
    SALES = "Sales"
    COGS = "COGS"


@dataclass(frozen=True)
class PLTable:
    year: int
    months: tuple[str, ...]
    sales: tuple[Decimal, ...]
    cogs: tuple[Decimal, ...]
    gross_profit: tuple[Decimal, ...]
    expense_rows: dict[ExpenseCategory, tuple[Decimal, ...]]
    operating_expense_total: tuple[Decimal, ...]
    ebit: tuple[Decimal, ...]
    net_earnings: tuple[Decimal, ...]

    @property
    def totals(self) -> dict[str, Decimal]:
        return {
            "sales": sum(self.sales, ZERO),
            "cogs": sum(self.cogs, ZERO),
            "gross_profit": sum(self.gross_profit, ZERO),
            "operating_expense_total": sum(self.operating_expense_total, ZERO),
            "ebit": sum(self.ebit, ZERO),
            "net_earnings": sum(self.net_earnings, ZERO),
        }

    @property
    def expense_totals(self) -> dict[ExpenseCategory, Decimal]:
        return {cat: sum(row, ZERO) for cat, row in self.expense_rows.items()}
