# src/sales_report/etl/extract_funcs.py
import logging
from typing import Iterator

import psycopg2

from ..errors import QueryExecutionError
from ..models import SalesAggregateRow

logger = logging.getLogger(__name__)

MONTHLY_SALES_CURSOR = "monthly_sales_report"
FETCH_BATCH_SIZE = 500

MONTHLY_SALES_SQL = """
SELECT
    CAST(EXTRACT(YEAR FROM "FechaVenta") AS INTEGER)  AS year,
    CAST(EXTRACT(MONTH FROM "FechaVenta") AS INTEGER) AS month,
    COALESCE(SUM("Cantidad" * "Precio"), 0)           AS total_sales
FROM "Productos"
WHERE "FechaVenta" IS NOT NULL
GROUP BY 1, 2
ORDER BY 1, 2;
"""


def get_sql_conn(dsn: str):
    """Return a psycopg2 connection for the report's source database."""
    try:
        return psycopg2.connect(dsn)
    except psycopg2.Error as e:
        raise QueryExecutionError(f"Could not connect to the sales database: {e}") from e


def execute_monthly_sales_query(conn) -> Iterator[SalesAggregateRow]:
    """
    Run the monthly aggregation on a server-side cursor.

    The query is executed immediately; rows are fetched lazily through the
    returned iterator, which reads forward once and closes the cursor when
    exhausted.
    """
    try:
        cur = conn.cursor(name=MONTHLY_SALES_CURSOR)
    except psycopg2.Error as e:
        raise QueryExecutionError(f"Database connection is not usable: {e}") from e

    cur.itersize = FETCH_BATCH_SIZE
    try:
        cur.execute(MONTHLY_SALES_SQL)
    except psycopg2.Error as e:
        cur.close()
        raise QueryExecutionError(f"Monthly sales query failed: {e}") from e

    logger.info("Monthly sales query executed")
    return _iter_rows(cur)


def _iter_rows(cur) -> Iterator[SalesAggregateRow]:
    try:
        with cur:
            for year, month, total in cur:
                yield SalesAggregateRow(year=int(year), month=int(month), total_amount=total)
    except psycopg2.Error as e:
        raise QueryExecutionError(f"Reading monthly sales rows failed: {e}") from e
