from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from finplat.analytics.export_rows import format_amount, pl_header, pl_to_rows, series_to_rows
from finplat.application.container import build_container
from finplat.config import get_app_paths, load_sync_settings
from finplat.domain.errors import AppError
from finplat.logging_config import setup_logging

log = logging.getLogger(__name__)


def _print_rows(rows: Sequence[Sequence[object]]) -> None:
    widths = [max(len(str(row[i])) for row in rows if i < len(row)) for i in range(max(len(r) for r in rows))]
    for row in rows:
        print("  ".join(str(v).rjust(widths[i]) if i else str(v).ljust(widths[i]) for i, v in enumerate(row)))


def _cmd_pl(container, args) -> int:
    table = container.reporting.profit_and_loss(args.year)
    _print_rows([pl_header(table), *pl_to_rows(table)])
    if args.csv:
        container.exports.export_pl_csv(args.csv, table)
    if args.xlsx:
        container.exports.export_pl_excel(args.xlsx, table)
    return 0


def _cmd_dashboard(container, args) -> int:
    summary = container.reporting.dashboard_summary(args.from_date, args.to_date)
    for label, value in (
        ("Fiscal sales", summary.fiscal_sales),
        ("Non-fiscal sales", summary.non_fiscal_sales),
        ("Total sales", summary.total_sales),
        ("Purchases", summary.total_purchases),
        ("Other expenses", summary.total_other_expenses),
        ("Total expenses", summary.total_expenses),
        ("Net result", summary.net_result),
    ):
        print(f"{label:<18}{format_amount(value):>14}")

    charts = container.reporting.dashboard_charts(args.from_date, args.to_date)
    print()
    _print_rows(series_to_rows(charts.sales, ["Fiscal", "Non-fiscal"]))
    print()
    _print_rows(series_to_rows(charts.expenses, ["Purchases", "Other expenses"]))
    return 0


def _cmd_audit(container, args) -> int:
    report = container.reporting.data_quality()
    if report.ok:
        print("No data-quality issues.")
        return 0
    for issue in report.issues:
        print(f"{issue.kind.value:<24}{issue.collection:<10}{issue.record_id:<32}{issue.field}={issue.value!r}")
    return 1


def _cmd_ledger_csv(container, args) -> int:
    if args.kind == "sales":
        out = container.exports.export_sales_csv(args.path, args.from_date, args.to_date, args.search)
    elif args.kind == "invoices":
        out = container.exports.export_invoices_csv(args.path, args.from_date, args.to_date)
    else:
        out = container.exports.export_expenses_csv(args.path, args.from_date, args.to_date)
    print(out)
    return 0


def _cmd_export_json(container, args) -> int:
    print(container.backup.export_json(args.path))
    return 0


def _cmd_import_json(container, args) -> int:
    for name, count in container.backup.import_json(args.path).items():
        print(f"{name}: {count}")
    return 0


def _cmd_sync(container, args) -> int:
    container.sync.login(args.username, args.password)
    result = container.sync.push_snapshot(container.repo.load_snapshot())
    print(f"pushed={result.pushed} failed={result.failed}")
    return 0 if result.failed == 0 else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="finplat", description="Small-business bookkeeping reports.")
    parser.add_argument("--db", help="Path to the ledger database (defaults to the app data directory).")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("pl", help="Profit & Loss statement for a year.")
    p.add_argument("--year", type=int, required=True)
    p.add_argument("--csv", help="Also write the statement as CSV.")
    p.add_argument("--xlsx", help="Also write the statement as an Excel workbook.")
    p.set_defaults(func=_cmd_pl)

    p = sub.add_parser("dashboard", help="Totals and monthly series (current month by default).")
    p.add_argument("--from", dest="from_date")
    p.add_argument("--to", dest="to_date")
    p.set_defaults(func=_cmd_dashboard)

    p = sub.add_parser("audit", help="List records the reports had to coerce or bucket as Unknown.")
    p.set_defaults(func=_cmd_audit)

    p = sub.add_parser("ledger-csv", help="Write sales, invoices or other expenses as CSV.")
    p.add_argument("kind", choices=["sales", "invoices", "expenses"])
    p.add_argument("path")
    p.add_argument("--from", dest="from_date", default="")
    p.add_argument("--to", dest="to_date", default="")
    p.add_argument("--search", default="", help="Sales only: match text in the description.")
    p.set_defaults(func=_cmd_ledger_csv)

    p = sub.add_parser("export-json", help="Write the whole ledger to a JSON backup file.")
    p.add_argument("path")
    p.set_defaults(func=_cmd_export_json)

    p = sub.add_parser("import-json", help="Replace ledger collections from a JSON backup file.")
    p.add_argument("path")
    p.set_defaults(func=_cmd_import_json)

    p = sub.add_parser("sync", help="Push the ledger to the sync server.")
    p.add_argument("--username", required=True)
    p.add_argument("--password", required=True)
    p.set_defaults(func=_cmd_sync)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)

    container = build_container(args.db or paths.db_path, load_sync_settings())
    try:
        return args.func(container, args)
    except AppError as e:
        log.error("command_failed command=%s error=%s", args.command, e)
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
