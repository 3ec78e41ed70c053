from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from finplat.analytics.alignment import align_series
from finplat.analytics.timeseries import (
    FISCAL,
    NON_FISCAL,
    expenses_by_month,
    purchases_by_month,
    sales_by_type,
)
from finplat.domain.models import AlignedSeries, LedgerSnapshot


@dataclass(frozen=True)
class DashboardSummary:
    fiscal_sales: Decimal
    non_fiscal_sales: Decimal
    total_sales: Decimal
    total_purchases: Decimal
    total_other_expenses: Decimal
    total_expenses: Decimal
    net_result: Decimal


@dataclass(frozen=True)
class DashboardCharts:
    sales: AlignedSeries      # [fiscal, non-fiscal]
    expenses: AlignedSeries   # [purchases, other expenses]


def dashboard_summary(snapshot: LedgerSnapshot, from_date: object = None, to_date: object = None) -> DashboardSummary:
    by_type = sales_by_type(snapshot.sales, from_date, to_date)
    fiscal = by_type[FISCAL].total
    non_fiscal = by_type[NON_FISCAL].total
    purchases = purchases_by_month(snapshot.invoices, from_date, to_date).total
    other = expenses_by_month(snapshot.expenses, from_date, to_date).total

    total_sales = fiscal + non_fiscal
    total_expenses = purchases + other
    return DashboardSummary(
        fiscal_sales=fiscal,
        non_fiscal_sales=non_fiscal,
        total_sales=total_sales,
        total_purchases=purchases,
        total_other_expenses=other,
        total_expenses=total_expenses,
        net_result=total_sales - total_expenses,
    )


def dashboard_charts(snapshot: LedgerSnapshot, from_date: object = None, to_date: object = None) -> DashboardCharts:
    by_type = sales_by_type(snapshot.sales, from_date, to_date)
    purchases = purchases_by_month(snapshot.invoices, from_date, to_date)
    other = expenses_by_month(snapshot.expenses, from_date, to_date)
    return DashboardCharts(
        sales=align_series([by_type[FISCAL], by_type[NON_FISCAL]]),
        expenses=align_series([purchases, other]),
    )
