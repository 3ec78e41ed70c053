import pytest

from conftest import D, expense, invoice, sale
from finplat.analytics.alignment import align_series
from finplat.analytics.months import UNKNOWN_MONTH
from finplat.analytics.timeseries import (
    ALL_RECORDS,
    FISCAL,
    NON_FISCAL,
    aggregate_by_month,
    expenses_by_month,
    payment_method_counts,
    purchases_by_month,
    sales_by_type,
)
from finplat.domain.errors import ValidationError
from finplat.domain.models import MonthSeries


def test_sale_without_date_lands_in_unknown_bucket():
    sales = [sale("s1", "2024-01-15", 100), sale("s2", "", 40)]
    fiscal = sales_by_type(sales)[FISCAL]

    assert fiscal.labels == ("2024-01", UNKNOWN_MONTH)
    assert fiscal.values == (D(100), D(40))


def test_sales_split_by_type_with_both_series_present():
    sales = [
        sale("s1", "2024-01-15", 100, type="fiscal"),
        sale("s2", "2024-02-01", 30, type="non-fiscal"),
        sale("s3", "2024-02-03", 5, type="cash"),
    ]
    by_type = sales_by_type(sales)

    assert by_type[FISCAL] == MonthSeries(("2024-01",), (D(100),))
    assert by_type[NON_FISCAL] == MonthSeries(("2024-02",), (D(35),))
    assert sales_by_type([])[FISCAL] == MonthSeries()


def test_range_filter_is_inclusive_and_drops_undated_records():
    sales = [
        sale("s1", "2024-01-01", 1),
        sale("s2", "2024-01-31", 2),
        sale("s3", "2024-02-01", 4),
        sale("s4", "2023-12-31", 8),
        sale("s5", "", 16),
    ]
    fiscal = sales_by_type(sales, "2024-01-01", "2024-01-31")[FISCAL]

    assert fiscal.labels == ("2024-01",)
    assert fiscal.values == (D(3),)


def test_open_ended_bounds():
    sales = [sale("s1", "2023-12-31", 1), sale("s2", "2024-03-01", 2)]

    assert sales_by_type(sales, "2024-01-01", "")[FISCAL].labels == ("2024-03",)
    assert sales_by_type(sales, None, "2023-12-31")[FISCAL].labels == ("2023-12",)


def test_malformed_bound_is_rejected():
    with pytest.raises(ValidationError):
        sales_by_type([sale("s1", "2024-01-01", 1)], "01/01/2024")


def test_non_numeric_amounts_count_as_zero():
    series = expenses_by_month([expense("e1", "2024-05-01", "rent", "n/a"), expense("e2", "2024-05-09", "rent", "7.5")])
    assert series.values == (D("7.5"),)


def test_generic_aggregation_groups_by_category_and_sorts_labels():
    records = [
        {"d": "2024-03-02", "v": 1, "c": "a"},
        {"d": "2024-01-10", "v": 2, "c": "a"},
        {"d": "2024-01-11", "v": 3, "c": "b"},
        {"d": "2024-01-12", "v": 4, "c": "a"},
    ]
    out = aggregate_by_month(records, lambda r: r["d"], lambda r: r["v"], lambda r: r["c"])

    assert out["a"] == MonthSeries(("2024-01", "2024-03"), (D(6), D(1)))
    assert out["b"] == MonthSeries(("2024-01",), (D(3),))

    single = aggregate_by_month(records, lambda r: r["d"], lambda r: r["v"])
    assert list(single) == [ALL_RECORDS]
    assert single[ALL_RECORDS].total == D(10)


def test_purchases_use_invoice_totals():
    invoices = [
        invoice("i1", "2024-01-20", [(2, 30)]),
        invoice("i2", "2024-01-25", [(1, 15), (1, 5)], type="service"),
        invoice("i3", "2024-02-02", [(3, 1)]),
    ]
    series = purchases_by_month(invoices, "2024-01-01", "2024-01-31")
    assert series == MonthSeries(("2024-01",), (D(80),))


def test_payment_method_counts_occurrences():
    invoices = [invoice("i1", "2024-01-20", [(1, 1)], payment_method="cash")]
    expenses = [
        expense("e1", "2024-01-02", "rent", 10, payment_method="Cash"),
        expense("e2", "2024-02-02", "rent", 10, payment_method="card"),
    ]
    counts = payment_method_counts(invoices, expenses)

    assert counts["cash"] == MonthSeries(("2024-01",), (D(2),))
    assert counts["card"] == MonthSeries(("2024-02",), (D(1),))


def test_alignment_zero_fills_missing_labels():
    fiscal = MonthSeries(("2024-01", "2024-03"), (D(10), D(30)))
    non_fiscal = MonthSeries(("2024-02", "2024-03", UNKNOWN_MONTH), (D(2), D(3), D(9)))

    aligned = align_series([fiscal, non_fiscal])

    assert aligned.labels == ("2024-01", "2024-02", "2024-03", UNKNOWN_MONTH)
    assert aligned.values[0] == (D(10), D(0), D(30), D(0))
    assert aligned.values[1] == (D(0), D(2), D(3), D(9))
    assert all(len(v) == len(aligned.labels) for v in aligned.values)


def test_alignment_of_nothing():
    aligned = align_series([])
    assert aligned.labels == ()
    assert aligned.values == ()

    aligned = align_series([MonthSeries(), MonthSeries()])
    assert aligned.labels == ()
    assert aligned.values == ((), ())
