from __future__ import annotations

from decimal import Decimal
from typing import Callable, Hashable, Iterable, Optional, TypeVar

from finplat.analytics.coercion import to_amount
from finplat.analytics.invoices import invoice_total
from finplat.analytics.months import check_bounds, in_range, month_key, parse_date
from finplat.domain.models import ZERO, Invoice, MonthSeries, OtherExpense, SaleEntry

R = TypeVar("R")

ALL_RECORDS = "all"
FISCAL = "fiscal"
NON_FISCAL = "non-fiscal"


def series_from_cells(cells: dict[str, Decimal]) -> MonthSeries:
    labels = sorted(cells)
    return MonthSeries(labels=tuple(labels), values=tuple(cells[label] for label in labels))


def aggregate_by_month(
    records: Iterable[R],
    date_of: Callable[[R], object],
    value_of: Callable[[R], object],
    category_of: Optional[Callable[[R], Hashable]] = None,
    from_date: object = None,
    to_date: object = None,
) -> dict[Hashable, MonthSeries]:
    """
    Sum value_of(record) per (category, month key).

    Bounds are inclusive calendar dates. Records whose date cannot be read are
    kept in the "Unknown" bucket when the range is open and dropped when a
    bound is given.
    """
    start, end = check_bounds(from_date, to_date)
    buckets: dict[Hashable, dict[str, Decimal]] = {}

    for record in records:
        raw_date = date_of(record)
        if not in_range(parse_date(raw_date), start, end):
            continue
        key = month_key(raw_date)
        category = category_of(record) if category_of else ALL_RECORDS
        cells = buckets.setdefault(category, {})
        cells[key] = cells.get(key, ZERO) + to_amount(value_of(record))

    return {category: series_from_cells(cells) for category, cells in buckets.items()}


def sale_category(entry: SaleEntry) -> str:
    return FISCAL if entry.type == FISCAL else NON_FISCAL


def sales_by_type(sales: Iterable[SaleEntry], from_date: object = None, to_date: object = None) -> dict[str, MonthSeries]:
    grouped = aggregate_by_month(
        sales,
        date_of=lambda e: e.date,
        value_of=lambda e: e.amount,
        category_of=sale_category,
        from_date=from_date,
        to_date=to_date,
    )
    return {
        FISCAL: grouped.get(FISCAL, MonthSeries()),
        NON_FISCAL: grouped.get(NON_FISCAL, MonthSeries()),
    }


def purchases_by_month(invoices: Iterable[Invoice], from_date: object = None, to_date: object = None) -> MonthSeries:
    grouped = aggregate_by_month(
        invoices,
        date_of=lambda inv: inv.invoice_date,
        value_of=lambda inv: invoice_total(inv.items),
        from_date=from_date,
        to_date=to_date,
    )
    return grouped.get(ALL_RECORDS, MonthSeries())


def expenses_by_month(expenses: Iterable[OtherExpense], from_date: object = None, to_date: object = None) -> MonthSeries:
    grouped = aggregate_by_month(
        expenses,
        date_of=lambda exp: exp.date,
        value_of=lambda exp: exp.amount,
        from_date=from_date,
        to_date=to_date,
    )
    return grouped.get(ALL_RECORDS, MonthSeries())


def payment_method_counts(
    invoices: Iterable[Invoice],
    expenses: Iterable[OtherExpense],
    from_date: object = None,
    to_date: object = None,
) -> dict[str, MonthSeries]:
    """Occurrences per payment method, bucketed by invoice date / expense date."""
    records: list[tuple[object, str]] = [(inv.invoice_date, inv.payment_method) for inv in invoices]
    records.extend((exp.date, exp.payment_method) for exp in expenses)
    return aggregate_by_month(
        records,
        date_of=lambda r: r[0],
        value_of=lambda _r: 1,
        category_of=lambda r: (r[1] or "none").lower(),
        from_date=from_date,
        to_date=to_date,
    )
