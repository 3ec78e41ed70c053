"""
Profit & Loss statement for one calendar year.

Rows:
  Sales                     sales entries, any type
  COGS                      invoices whose type is "product"
  Gross Profit              Sales - COGS
  expense rows              "Invoice Expenses" (non-product invoices) first,
                            then one row per expense type in catalog order,
                            then "Other" for expenses with an unknown type
  Total Operating Expenses  column sum of the expense rows
  EBIT / Net Earnings       Gross Profit - Total Operating Expenses

Every cell can be traced back to its records with supporting_records().
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Union

from finplat.analytics.coercion import to_amount
from finplat.analytics.invoices import invoice_total, is_product_invoice
from finplat.analytics.months import months_of_year, parse_date
from finplat.domain.errors import ValidationError
from finplat.domain.models import (
    INVOICE_EXPENSES,
    UNMATCHED_EXPENSES,
    ZERO,
    CategoryKind,
    ExpenseCategory,
    ExpenseType,
    Invoice,
    LedgerSnapshot,
    OtherExpense,
    PLRow,
    PLTable,
    SaleEntry,
)

RowKey = Union[PLRow, ExpenseCategory]


def _month_index(value: object, year: int) -> Optional[int]:
    day = parse_date(value)
    if day is None or day.year != year:
        return None
    return day.month - 1


def _zeros() -> list[Decimal]:
    return [ZERO] * 12


def expense_category_for(expense: OtherExpense, names_by_id: Mapping[str, str]) -> ExpenseCategory:
    type_id = expense.type_id
    if type_id is not None and type_id in names_by_id:
        return ExpenseCategory.known(type_id, names_by_id[type_id])
    return UNMATCHED_EXPENSES


def calculate_pl(
    year: int,
    sales: Iterable[SaleEntry],
    invoices: Iterable[Invoice],
    expenses: Iterable[OtherExpense],
    expense_types: Iterable[ExpenseType],
) -> PLTable:
    year = int(year)

    sales_row = _zeros()
    for entry in sales:
        idx = _month_index(entry.date, year)
        if idx is not None:
            sales_row[idx] += to_amount(entry.amount)

    cogs_row = _zeros()
    invoice_expense_row: Optional[list[Decimal]] = None
    for invoice in invoices:
        idx = _month_index(invoice.invoice_date, year)
        if idx is None:
            continue
        total = invoice_total(invoice.items)
        if is_product_invoice(invoice):
            cogs_row[idx] += total
        else:
            if invoice_expense_row is None:
                invoice_expense_row = _zeros()
            invoice_expense_row[idx] += total

    expense_rows: dict[ExpenseCategory, list[Decimal]] = {}
    if invoice_expense_row is not None:
        expense_rows[INVOICE_EXPENSES] = invoice_expense_row

    names_by_id: dict[str, str] = {}
    for expense_type in expense_types:
        names_by_id.setdefault(expense_type.id, expense_type.name)
        expense_rows.setdefault(ExpenseCategory.known(expense_type.id, names_by_id[expense_type.id]), _zeros())

    for expense in expenses:
        idx = _month_index(expense.date, year)
        if idx is None:
            continue
        category = expense_category_for(expense, names_by_id)
        expense_rows.setdefault(category, _zeros())[idx] += to_amount(expense.amount)

    gross_profit = [s - c for s, c in zip(sales_row, cogs_row)]
    operating_total = [sum((row[m] for row in expense_rows.values()), ZERO) for m in range(12)]
    ebit = [g - o for g, o in zip(gross_profit, operating_total)]

    return PLTable(
        year=year,
        months=tuple(months_of_year(year)),
        sales=tuple(sales_row),
        cogs=tuple(cogs_row),
        gross_profit=tuple(gross_profit),
        expense_rows={cat: tuple(row) for cat, row in expense_rows.items()},
        operating_expense_total=tuple(operating_total),
        ebit=tuple(ebit),
        net_earnings=tuple(ebit),
    )


def calculate_pl_for(snapshot: LedgerSnapshot, year: int) -> PLTable:
    return calculate_pl(year, snapshot.sales, snapshot.invoices, snapshot.expenses, snapshot.expense_types)


def find_row(table: PLTable, label: str) -> Optional[RowKey]:
    """
    Resolve a display label to the row key used by supporting_records().

    Expense type names are free text, so one label can name several rows
    (a type called "Other" next to the unmatched row). That raises
    ValidationError; pass the row key itself in that case.
    """
    matches: list[RowKey] = [row for row in PLRow if row.value == label]
    matches += [category for category in table.expense_rows if category.label == label]
    if len(matches) > 1:
        raise ValidationError(f"P&L row label {label!r} is ambiguous; select the row by key.")
    return matches[0] if matches else None


def supporting_records(snapshot: LedgerSnapshot, year: int, month: int, row: RowKey) -> list:
    """Records that make up one P&L cell; month is 1-12."""
    year = int(year)
    month = int(month)
    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12. Received: {month}")

    def in_cell(value: object) -> bool:
        day: Optional[date] = parse_date(value)
        return day is not None and day.year == year and day.month == month

    if row is PLRow.SALES:
        return [e for e in snapshot.sales if in_cell(e.date)]
    if row is PLRow.COGS:
        return [inv for inv in snapshot.invoices if in_cell(inv.invoice_date) and is_product_invoice(inv)]
    if not isinstance(row, ExpenseCategory):
        raise ValidationError(f"Unknown P&L row: {row!r}")
    if row.kind is CategoryKind.INVOICE_EXPENSE:
        return [inv for inv in snapshot.invoices if in_cell(inv.invoice_date) and not is_product_invoice(inv)]

    names_by_id = {t.id: t.name for t in snapshot.expense_types}
    return [
        exp
        for exp in snapshot.expenses
        if in_cell(exp.date) and expense_category_for(exp, names_by_id) == row
    ]
