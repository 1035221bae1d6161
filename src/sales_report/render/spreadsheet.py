"""
Spreadsheet Renderer

Writes the report dataset to a single-sheet XLSX workbook.
"""

import io
import logging
from typing import Optional, Sequence

from openpyxl import Workbook

from ..config import REPORT_TITLE
from ..errors import RenderError
from ..etl.transform_funcs import rename_columns
from ..models import ArtifactKind, RenderedArtifact, TabularReport

logger = logging.getLogger(__name__)

# Excel limit on worksheet titles
MAX_SHEET_TITLE = 31


class SpreadsheetRenderer:
    """Renders a TabularReport as an XLSX workbook held in memory"""

    def __init__(self, sheet_title: str = REPORT_TITLE, headers: Optional[Sequence[str]] = None):
        self.sheet_title = sheet_title[:MAX_SHEET_TITLE]
        self.headers = list(headers) if headers is not None else None

    def render(self, report: TabularReport) -> RenderedArtifact:
        """
        Build the workbook: row 1 holds the headers, each following row one
        (year, month, total) group in report order.

        Returns:
            RenderedArtifact whose stream is positioned at offset 0
        """
        headers = self.headers or list(rename_columns(report.frame).columns)
        stream = io.BytesIO()
        try:
            wb = Workbook()
            ws = wb.active
            ws.title = self.sheet_title
            ws.append(headers)
            for row in report.iter_rows():
                ws.append([row.year, row.month, row.total_amount])
            wb.save(stream)
        except Exception as e:
            stream.close()
            raise RenderError(f"Spreadsheet rendering failed: {e}") from e

        size = stream.tell()
        stream.seek(0)
        logger.info(f"Spreadsheet rendered: {len(report)} data rows, {size:,} bytes")
        return RenderedArtifact(kind=ArtifactKind.SPREADSHEET, stream=stream)
