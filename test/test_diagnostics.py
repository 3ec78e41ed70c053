from conftest import expense, invoice, sale
from finplat.analytics.diagnostics import IssueKind, audit_snapshot
from finplat.domain.models import ExpenseType, Invoice, LedgerSnapshot, LineItem, OtherExpense


def test_clean_snapshot_has_no_issues():
    snapshot = LedgerSnapshot(
        sales=(sale("s1", "2024-01-15", 100),),
        invoices=(invoice("i1", "2024-01-20", [(2, 30)]), invoice("i2", "2024-01-21", [(1, 5)], type="service")),
        expenses=(expense("e1", "2024-02-01", "rent", -3),),
        expense_types=(ExpenseType(id="rent", name="Rent"),),
    )
    report = audit_snapshot(snapshot)

    assert report.ok
    assert report.issues == ()
    assert sum(report.counts.values()) == 0


def test_every_absorbed_record_is_reported():
    snapshot = LedgerSnapshot(
        sales=(sale("s1", "", 100), sale("s2", "2024-01-01", "ten")),
        invoices=(
            invoice("i1", "2024/01/20", [(2, 30)], type="servcie"),
            invoice("i2", "2024-01-20", [(-1, 30), (None, 4), ("x", 1), (1, None)]),
        ),
        expenses=(
            expense("e1", "2024-02-01", "ghost", 5),
            expense("e2", "someday", "rent", None),
        ),
        expense_types=(ExpenseType(id="rent", name="Rent"),),
    )
    report = audit_snapshot(snapshot)

    assert not report.ok
    assert report.counts[IssueKind.UNKNOWN_DATE] == 3
    assert report.counts[IssueKind.COERCED_AMOUNT] == 2
    assert report.counts[IssueKind.INVOICE_TYPE_FALLBACK] == 1
    assert report.counts[IssueKind.UNMATCHED_EXPENSE_TYPE] == 1

    line_issues = report.of_kind(IssueKind.COERCED_LINE_ITEM)
    assert [(i.record_id, i.field) for i in line_issues] == [
        ("i2", "items[0]"),
        ("i2", "items[2]"),
        ("i2", "items[3]"),
    ]

    unknown = {(i.collection, i.record_id, i.field) for i in report.of_kind(IssueKind.UNKNOWN_DATE)}
    assert unknown == {
        ("sales", "s1", "date"),
        ("invoices", "i1", "invoice_date"),
        ("expenses", "e2", "date"),
    }


def test_invoice_type_check_ignores_case_but_not_spelling():
    snapshot = LedgerSnapshot(
        invoices=(
            Invoice(id="a", seller_id=None, invoice_number="A", documented_date="", invoice_date="2024-01-01",
                    type="SERVICE", items=(LineItem(1, 1),)),
            Invoice(id="b", seller_id=None, invoice_number="B", documented_date="", invoice_date="2024-01-01",
                    type="", items=()),
        )
    )
    fallback = audit_snapshot(snapshot).of_kind(IssueKind.INVOICE_TYPE_FALLBACK)
    assert [i.record_id for i in fallback] == ["b"]


def test_readable_dates_that_are_not_zero_padded_are_reported():
    snapshot = LedgerSnapshot(
        sales=(sale("s1", "2024-1-5", 10), sale("s2", "2024-01-05T10:00:00", 1), sale("s3", "2024-01-05", 1)),
        expenses=(
            OtherExpense(id="e1", date="2024-02-01", type_id="rent", description="", amount=5, payment_date="2024-2-3"),
        ),
        expense_types=(ExpenseType(id="rent", name="Rent"),),
    )
    report = audit_snapshot(snapshot)

    assert not report.ok
    assert [(i.record_id, i.field) for i in report.of_kind(IssueKind.NON_CANONICAL_DATE)] == [
        ("s1", "date"),
        ("s2", "date"),
        ("e1", "payment_date"),
    ]
    assert report.counts[IssueKind.UNKNOWN_DATE] == 0


def test_amounts_too_large_to_use_are_reported_as_coerced():
    snapshot = LedgerSnapshot(
        sales=(sale("s1", "2024-01-05", "1e30"),),
        invoices=(invoice("i1", "2024-01-06", [("1e999999", "1e999999")]),),
    )
    report = audit_snapshot(snapshot)

    assert report.counts[IssueKind.COERCED_AMOUNT] == 1
    assert report.counts[IssueKind.COERCED_LINE_ITEM] == 1
