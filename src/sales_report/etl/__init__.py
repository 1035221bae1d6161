"""
ETL Module

Source query execution and materialization of the report dataset.
"""

from .extract_funcs import execute_monthly_sales_query, get_sql_conn
from .transform_funcs import build_tabular_report

__all__ = ["execute_monthly_sales_query", "get_sql_conn", "build_tabular_report"]
