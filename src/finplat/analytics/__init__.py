from .alignment import align_series
from .dashboard import dashboard_charts, dashboard_summary
from .diagnostics import audit_snapshot
from .export_rows import pl_to_rows, series_to_rows
from .invoices import invoice_total
from .months import UNKNOWN_MONTH, month_key, months_of_year
from .profit_loss import calculate_pl, calculate_pl_for, supporting_records
from .timeseries import aggregate_by_month

__all__ = [
    "align_series",
    "dashboard_charts",
    "dashboard_summary",
    "audit_snapshot",
    "pl_to_rows",
    "series_to_rows",
    "invoice_total",
    "UNKNOWN_MONTH",
    "month_key",
    "months_of_year",
    "calculate_pl",
    "calculate_pl_for",
    "supporting_records",
    "aggregate_by_month",
]
