from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Iterable, Sequence

from finplat.analytics.coercion import to_amount
from finplat.analytics.invoices import invoice_total
from finplat.analytics.months import date_sort_key
from finplat.domain.models import (
    ZERO,
    AlignedSeries,
    ExpenseType,
    Invoice,
    OtherExpense,
    PLTable,
    SaleEntry,
    Seller,
)

CENT = Decimal("0.01")

OPERATING_EXPENSES_HEADER = "Operating Expenses"


def format_amount(value: object) -> str:
    # computed totals may exceed the input bound and are kept as they are
    number = value if isinstance(value, Decimal) and value.is_finite() else to_amount(value)
    with localcontext() as ctx:
        # sums of large amounts can need more digits than the default precision
        ctx.prec = max(ctx.prec, number.adjusted() + 3)
        rounded = number.quantize(CENT, rounding=ROUND_HALF_UP)
    if rounded == 0:
        rounded = abs(rounded)
    return f"{rounded:.2f}"


def _row(label: str, values: Sequence[Decimal]) -> list[str]:
    return [label, *(format_amount(v) for v in values), format_amount(sum(values, ZERO))]


def pl_header(table: PLTable) -> list[str]:
    return ["", *table.months, "Total"]


def pl_to_rows(table: PLTable) -> list[list[str]]:
    rows = [
        _row("Sales", table.sales),
        _row("COGS", table.cogs),
        _row("Gross Profit", table.gross_profit),
        [OPERATING_EXPENSES_HEADER, *([""] * 13)],
    ]
    rows.extend(_row(category.label, values) for category, values in table.expense_rows.items())
    rows.append(_row("Total Operating Expenses", table.operating_expense_total))
    rows.append(_row("EBIT", table.ebit))
    rows.append(_row("Net Earnings", table.net_earnings))
    return rows


def series_to_rows(aligned: AlignedSeries, names: Sequence[str]) -> list[list[str]]:
    if len(names) != len(aligned.values):
        raise ValueError("one name per aligned series is required")
    rows = [["Month", *names]]
    for k, label in enumerate(aligned.labels):
        rows.append([label, *(format_amount(values[k]) for values in aligned.values)])
    return rows


def sales_ledger_rows(sales: Iterable[SaleEntry]) -> list[list[str]]:
    rows = [["Date", "Type", "Z Report nr.", "Amount"]]
    for e in sorted(sales, key=lambda s: date_sort_key(s.date)):
        type_display = "Fiscal" if e.type == "fiscal" else "Non-Fiscal"
        rows.append([e.date, type_display, e.description, format_amount(to_amount(e.amount))])
    return rows


def invoice_rows(invoices: Iterable[Invoice], sellers: Iterable[Seller] = ()) -> list[list[str]]:
    seller_names = {s.id: s.name for s in sellers}
    rows = [["Seller", "Invoice #", "Documented Date", "Invoice Date", "Type", "Payment", "Total"]]
    for inv in sorted(invoices, key=lambda i: date_sort_key(i.invoice_date)):
        rows.append([
            seller_names.get(inv.seller_id or "", ""),
            inv.invoice_number,
            inv.documented_date,
            inv.invoice_date,
            inv.type,
            inv.payment_method,
            format_amount(invoice_total(inv.items)),
        ])
    return rows


def other_expense_rows(expenses: Iterable[OtherExpense], expense_types: Iterable[ExpenseType] = ()) -> list[list[str]]:
    type_names = {t.id: t.name for t in expense_types}
    rows = [["Date", "Type", "Description", "Created", "Payment", "Amount"]]
    for e in sorted(expenses, key=lambda x: date_sort_key(x.date)):
        rows.append([
            e.date,
            type_names.get(e.type_id or "", ""),
            e.description,
            e.created_at,
            e.payment_method,
            format_amount(to_amount(e.amount)),
        ])
    return rows
