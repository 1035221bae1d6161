from decimal import Decimal

import pandas as pd

from sales_report.etl.transform_funcs import build_tabular_report, rename_columns
from sales_report.models import SalesAggregateRow


# 1) Fixed column schema
def test_build_tabular_report_columns(sample_report):
    assert sample_report.columns == ("Year", "Month", "TotalSales")


# 2) Row order and values preserved
def test_build_tabular_report_keeps_order(sample_rows, sample_report):
    assert sample_report.rows == tuple(sample_rows)
    assert len(sample_report) == 2


# 3) Decimal totals are not converted to float
def test_build_tabular_report_keeps_decimal(sample_report):
    totals = [row.total_amount for row in sample_report.iter_rows()]
    assert totals == [Decimal("1000.00"), Decimal("1500.50")]
    assert all(isinstance(t, Decimal) for t in totals)


# 4) Source is consumed exactly once
def test_build_tabular_report_consumes_once():
    pulls = []

    def rows():
        for row in [SalesAggregateRow(2023, 12, Decimal("5")), SalesAggregateRow(2024, 1, Decimal("7"))]:
            pulls.append(row)
            yield row

    source = rows()
    report = build_tabular_report(source)

    assert len(pulls) == 2
    assert list(source) == []
    # Reading the report again does not touch the source
    assert len(report.rows) == 2
    assert len(report.rows) == 2
    assert len(pulls) == 2


# 5) Empty result is an empty report, not an error
def test_build_tabular_report_empty(empty_report):
    assert len(empty_report) == 0
    assert empty_report.rows == ()
    assert empty_report.columns == ("Year", "Month", "TotalSales")
    assert empty_report.grand_total() == Decimal("0")


def test_grand_total(sample_report):
    assert sample_report.grand_total() == Decimal("2500.50")


# 6) Display labels
def test_rename_columns(sample_report):
    out = rename_columns(sample_report.frame)
    assert list(out.columns) == ["Año", "Mes", "Total Ventas"]
    # Source frame is untouched
    assert list(sample_report.frame.columns) == ["Year", "Month", "TotalSales"]


def test_rename_columns_ignores_unknown():
    df = pd.DataFrame({"Year": [2024], "Extra": [1]})
    assert list(rename_columns(df).columns) == ["Año", "Extra"]
