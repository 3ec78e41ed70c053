from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from finplat.analytics.dashboard import DashboardCharts, DashboardSummary, dashboard_charts, dashboard_summary
from finplat.analytics.diagnostics import DataQualityReport, audit_snapshot
from finplat.analytics.months import current_month_bounds
from finplat.analytics.profit_loss import RowKey, calculate_pl_for, find_row, supporting_records
from finplat.analytics.timeseries import payment_method_counts
from finplat.domain.errors import NotFoundError
from finplat.domain.models import MonthSeries, PLTable

log = logging.getLogger(__name__)


class ReportingService:
    """Every report is computed from a fresh snapshot of the ledger."""

    def __init__(self, repo):
        self.repo = repo

    def _window(self, from_date: Optional[str], to_date: Optional[str], today: Optional[date] = None) -> tuple[str, str]:
        # no bounds at all means the current month, like the dashboard default
        if from_date is None and to_date is None:
            return current_month_bounds(today)
        return from_date or "", to_date or ""

    def dashboard_summary(
        self, from_date: Optional[str] = None, to_date: Optional[str] = None, today: Optional[date] = None
    ) -> DashboardSummary:
        start, end = self._window(from_date, to_date, today)
        return dashboard_summary(self.repo.load_snapshot(), start, end)

    def dashboard_charts(
        self, from_date: Optional[str] = None, to_date: Optional[str] = None, today: Optional[date] = None
    ) -> DashboardCharts:
        start, end = self._window(from_date, to_date, today)
        return dashboard_charts(self.repo.load_snapshot(), start, end)

    def payment_method_counts(self, from_date: str = "", to_date: str = "") -> dict[str, MonthSeries]:
        snapshot = self.repo.load_snapshot()
        return payment_method_counts(snapshot.invoices, snapshot.expenses, from_date, to_date)

    def profit_and_loss(self, year: int) -> PLTable:
        snapshot = self.repo.load_snapshot()
        table = calculate_pl_for(snapshot, year)
        totals = table.totals
        log.info(
            "pl_computed year=%s sales=%s cogs=%s opex=%s net=%s",
            table.year,
            totals["sales"],
            totals["cogs"],
            totals["operating_expense_total"],
            totals["net_earnings"],
        )
        return table

    def cell_records(self, year: int, month: int, row: RowKey | str) -> list:
        snapshot = self.repo.load_snapshot()
        if isinstance(row, str):
            key = find_row(calculate_pl_for(snapshot, year), row)
            if key is None:
                raise NotFoundError(f"No P&L row named {row!r} for {year}.")
            row = key
        return supporting_records(snapshot, year, month, row)

    def data_quality(self) -> DataQualityReport:
        report = audit_snapshot(self.repo.load_snapshot())
        if not report.ok:
            log.warning(
                "data_quality_issues %s",
                " ".join(f"{kind.value}={n}" for kind, n in sorted(report.counts.items(), key=lambda kv: kv[0].value)),
            )
        return report
