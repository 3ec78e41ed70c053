"""
Data-quality audit.

Reports never fail on bad records: dates that cannot be read land in the
"Unknown" month, unusable amounts count as 0, unknown expense types go to
"Other" and any non-product invoice counts as an operating expense.
Dates that are readable but not zero-padded YYYY-MM-DD are reported too,
since they sort out of order wherever dates are compared as text. This
module lists every record that was absorbed that way so it can be fixed at
the source.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from finplat.analytics.coercion import parse_amount, to_price, to_quantity
from finplat.analytics.invoices import is_known_invoice_type
from finplat.analytics.months import is_canonical_date, parse_date
from finplat.domain.models import LedgerSnapshot


class IssueKind(Enum):
    UNKNOWN_DATE = "unknown_date"
    COERCED_AMOUNT = "coerced_amount"
    COERCED_LINE_ITEM = "coerced_line_item"
    UNMATCHED_EXPENSE_TYPE = "unmatched_expense_type"
    INVOICE_TYPE_FALLBACK = "invoice_type_fallback"
    NON_CANONICAL_DATE = "non_canonical_date"


@dataclass(frozen=True)
class DataIssue:
    kind: IssueKind
    collection: str
    record_id: str
    field: str
    value: object


@dataclass(frozen=True)
class DataQualityReport:
    issues: tuple[DataIssue, ...] = ()
    counts: Counter = field(default_factory=Counter)

    @property
    def ok(self) -> bool:
        return not self.issues

    def of_kind(self, kind: IssueKind) -> list[DataIssue]:
        return [i for i in self.issues if i.kind is kind]


def _line_item_coerced(quantity: object, unit_price: object) -> bool:
    # a missing quantity defaulting to 1 is not a coercion
    qty_missing = quantity is None or (isinstance(quantity, str) and not quantity.strip())
    qty_ok = qty_missing or parse_amount(quantity) == to_quantity(quantity)
    return not qty_ok or parse_amount(unit_price) != to_price(unit_price)


def audit_snapshot(snapshot: LedgerSnapshot) -> DataQualityReport:
    issues: list[DataIssue] = []

    def add(kind: IssueKind, collection: str, record_id: str, field_name: str, value: object) -> None:
        issues.append(DataIssue(kind, collection, record_id, field_name, value))

    def check_date(collection: str, record_id: str, field_name: str, value: object, required: bool = True) -> None:
        # optional dates may be empty; anything else must be YYYY-MM-DD
        if parse_date(value) is None:
            if required:
                add(IssueKind.UNKNOWN_DATE, collection, record_id, field_name, value)
            elif value not in (None, ""):
                add(IssueKind.NON_CANONICAL_DATE, collection, record_id, field_name, value)
        elif not is_canonical_date(value):
            add(IssueKind.NON_CANONICAL_DATE, collection, record_id, field_name, value)

    for e in snapshot.sales:
        check_date("sales", e.id, "date", e.date)
        if parse_amount(e.amount) is None:
            add(IssueKind.COERCED_AMOUNT, "sales", e.id, "amount", e.amount)

    for inv in snapshot.invoices:
        check_date("invoices", inv.id, "invoice_date", inv.invoice_date)
        check_date("invoices", inv.id, "documented_date", inv.documented_date, required=False)
        check_date("invoices", inv.id, "payment_date", inv.payment_date, required=False)
        if not is_known_invoice_type(inv.type):
            add(IssueKind.INVOICE_TYPE_FALLBACK, "invoices", inv.id, "type", inv.type)
        for pos, item in enumerate(inv.items):
            if _line_item_coerced(item.quantity, item.unit_price):
                add(IssueKind.COERCED_LINE_ITEM, "invoices", inv.id, f"items[{pos}]", item)

    known_types = {t.id for t in snapshot.expense_types}
    for exp in snapshot.expenses:
        check_date("expenses", exp.id, "date", exp.date)
        check_date("expenses", exp.id, "payment_date", exp.payment_date, required=False)
        if parse_amount(exp.amount) is None:
            add(IssueKind.COERCED_AMOUNT, "expenses", exp.id, "amount", exp.amount)
        if exp.type_id not in known_types:
            add(IssueKind.UNMATCHED_EXPENSE_TYPE, "expenses", exp.id, "type_id", exp.type_id)

    counts = Counter(i.kind for i in issues)
    return DataQualityReport(issues=tuple(issues), counts=counts)
