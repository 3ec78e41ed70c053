from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterable, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from finplat.analytics.alignment import align_series
from finplat.analytics.export_rows import (
    OPERATING_EXPENSES_HEADER,
    invoice_rows,
    other_expense_rows,
    pl_header,
    pl_to_rows,
    sales_ledger_rows,
    series_to_rows,
)
from finplat.analytics.months import records_in_range
from finplat.domain.models import ZERO, MonthSeries, PLTable
from finplat.services.ledger_service import matching_sales

log = logging.getLogger(__name__)


class ExportService:
    def __init__(self, repo):
        self.repo = repo

    @staticmethod
    def write_csv(path: str | Path, rows: Iterable[Sequence[object]]) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh)
            for row in rows:
                writer.writerow(["" if v is None else v for v in row])
        return target

    def export_pl_csv(self, path: str | Path, table: PLTable) -> Path:
        out = self.write_csv(path, [pl_header(table), *pl_to_rows(table)])
        log.info("pl_csv_exported year=%s path=%s", table.year, out)
        return out

    def export_series_csv(self, path: str | Path, series: dict[str, MonthSeries]) -> Path:
        names = list(series)
        aligned = align_series([series[n] for n in names])
        return self.write_csv(path, series_to_rows(aligned, names))

    def export_sales_csv(
        self, path: str | Path, from_date: str = "", to_date: str = "", search: str = ""
    ) -> Path:
        entries = matching_sales(self.repo.list_sale_entries(), from_date, to_date, search)
        return self.write_csv(path, sales_ledger_rows(entries))

    def export_invoices_csv(self, path: str | Path, from_date: str = "", to_date: str = "") -> Path:
        invoices = records_in_range(self.repo.list_invoices(), lambda inv: inv.invoice_date, from_date, to_date)
        return self.write_csv(path, invoice_rows(invoices, self.repo.list_sellers()))

    def export_expenses_csv(self, path: str | Path, from_date: str = "", to_date: str = "") -> Path:
        expenses = records_in_range(self.repo.list_other_expenses(), lambda e: e.date, from_date, to_date)
        return self.write_csv(path, other_expense_rows(expenses, self.repo.list_expense_types()))

    def export_pl_excel(self, path: str | Path, table: PLTable) -> Path:
        wb = Workbook()
        ws = wb.active
        ws.title = f"P&L {table.year}"

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(r):
            for c in ws[r]:
                c.font = Font(bold=True)

        ws.append(pl_header(table))
        bold_row(1)

        def add(label: str, values, bold: bool = False):
            ws.append([label, *values, sum(values, ZERO)])
            r = ws.max_row
            for col in range(2, len(values) + 3):
                money(ws.cell(row=r, column=col))
            if bold:
                bold_row(r)

        add("Sales", table.sales)
        add("COGS", table.cogs)
        add("Gross Profit", table.gross_profit, bold=True)
        ws.append([OPERATING_EXPENSES_HEADER])
        bold_row(ws.max_row)
        for category, values in table.expense_rows.items():
            add(category.label, values)
        add("Total Operating Expenses", table.operating_expense_total, bold=True)
        add("EBIT", table.ebit, bold=True)
        add("Net Earnings", table.net_earnings, bold=True)

        ws.freeze_panes = "B2"
        ws.column_dimensions["A"].width = 28
        for col in range(2, 15):
            ws.column_dimensions[get_column_letter(col)].width = 12

        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        wb.save(target)
        log.info("pl_excel_exported year=%s path=%s", table.year, target)
        return target
