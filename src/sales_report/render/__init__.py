"""
Render Module

Spreadsheet and document renderers fed from the same materialized dataset.
"""

from .document import DocumentRenderer, TableLayout
from .spreadsheet import SpreadsheetRenderer

__all__ = ["DocumentRenderer", "SpreadsheetRenderer", "TableLayout"]
