"""
Monthly Sales Report Pipeline

Aggregates monthly sales from the relational store, renders them as a
spreadsheet and a PDF document, and publishes both to object storage.
"""

__version__ = "1.0.0"
__author__ = "Data Engineering Team"

__all__ = [
    "__version__",
    "__author__",
]
