# src/sales_report/etl/transform_funcs.py
import logging
from typing import Iterable

import pandas as pd

from ..config import DISPLAY_HEADERS, REPORT_COLUMNS
from ..models import SalesAggregateRow, TabularReport

logger = logging.getLogger(__name__)


def build_tabular_report(rows: Iterable[SalesAggregateRow]) -> TabularReport:
    """
    Consume the query rows exactly once into the shared report dataset.

    Row order is kept as delivered by the query. An empty iterable yields a
    report with the fixed columns and no rows.
    """
    records = [row.as_tuple() for row in rows]
    frame = pd.DataFrame.from_records(records, columns=list(REPORT_COLUMNS))
    # Decimal totals stay as objects so no precision is lost
    frame = frame.astype({"Year": "int64", "Month": "int64", "TotalSales": "object"})
    logger.info("Materialized %d monthly sales groups", len(frame))
    return TabularReport(frame=frame)


def rename_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Rename report columns to their display labels.
    """
    return df.rename(columns=DISPLAY_HEADERS)
