"""
Document Renderer

Draws the report dataset on a single PDF page: a centered bold title, one
line of description, then a ruled table with a filled header row.

Layout is computed from fixed geometry (column widths, row height) rather
than measured from the content. Positions are expressed top-down from the
upper page edge and converted to PDF coordinates only when drawing.
"""

import io
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from ..config import REPORT_DESCRIPTION, REPORT_TITLE
from ..errors import RenderError
from ..etl.transform_funcs import rename_columns
from ..models import ArtifactKind, RenderedArtifact, TabularReport

logger = logging.getLogger(__name__)

# Fraction of the font size occupied by capitals, used to center text vertically
CAP_HEIGHT_RATIO = 0.72


@dataclass(frozen=True)
class TableLayout:
    """Fixed page and table geometry, in points"""

    page_size: Tuple[float, float] = A4
    margin_left: float = 20
    title_top: float = 20
    description_top: float = 40
    table_top: float = 80
    bottom_margin: float = 20
    column_widths: Tuple[float, ...] = (80, 80, 100)
    row_height: float = 20

    title_font: str = "Helvetica-Bold"
    title_font_size: float = 12
    text_font: str = "Helvetica"
    text_font_size: float = 10
    header_font: str = "Helvetica-Bold"
    header_font_size: float = 10

    header_fill: colors.Color = field(default_factory=lambda: colors.darkblue)
    header_text: colors.Color = field(default_factory=lambda: colors.white)
    cell_fill: colors.Color = field(default_factory=lambda: colors.lightgrey)
    cell_text: colors.Color = field(default_factory=lambda: colors.black)
    rule_color: colors.Color = field(default_factory=lambda: colors.grey)
    rule_width: float = 0.5

    @property
    def body_rows_per_page(self) -> int:
        """Data rows that fit below the header row on one page"""
        usable = self.page_size[1] - self.table_top - self.bottom_margin
        return max(int(usable // self.row_height) - 1, 0)


@dataclass(frozen=True)
class CellBox:
    x: float
    top: float
    width: float
    height: float
    text: str


@dataclass(frozen=True)
class RowBox:
    top: float
    cells: Tuple[CellBox, ...]
    is_header: bool = False

    @property
    def texts(self) -> Tuple[str, ...]:
        return tuple(c.text for c in self.cells)


def format_cell(value) -> str:
    """Textual representation of a table value"""
    if value is None:
        return ""
    return str(value)


class DocumentRenderer:
    """Renders a TabularReport as a one-page PDF"""

    def __init__(
        self,
        layout: Optional[TableLayout] = None,
        title: str = REPORT_TITLE,
        description: str = REPORT_DESCRIPTION,
        headers: Optional[Sequence[str]] = None,
        invariant: bool = False,
        page_compression: bool = True,
    ):
        self.layout = layout or TableLayout()
        self.title = title
        self.description = description
        self.headers = list(headers) if headers is not None else None
        # Passed to each Canvas; reportlab's global rl_config is left alone
        self.invariant = invariant
        self.page_compression = page_compression

    def _row(self, top: float, values: Sequence, is_header: bool = False) -> RowBox:
        x = self.layout.margin_left
        cells = []
        for width, value in zip(self.layout.column_widths, values):
            cells.append(CellBox(x, top, width, self.layout.row_height, format_cell(value)))
            x += width
        return RowBox(top=top, cells=tuple(cells), is_header=is_header)

    def compute_layout(self, report: TabularReport) -> List[RowBox]:
        """
        Place the header row at the table top, then advance the vertical
        cursor by one row height per data row.
        """
        headers = self.headers or list(rename_columns(report.frame).columns)
        if len(self.layout.column_widths) != len(headers):
            raise RenderError(
                f"Layout defines {len(self.layout.column_widths)} columns, "
                f"report has {len(headers)}"
            )
        if self.layout.row_height <= 0 or any(w <= 0 for w in self.layout.column_widths):
            raise RenderError("Row height and column widths must be positive")

        y = self.layout.table_top
        rows = [self._row(y, headers, is_header=True)]
        y += self.layout.row_height
        for row in report.iter_rows():
            rows.append(self._row(y, row.as_tuple()))
            y += self.layout.row_height
        return rows

    def _draw_row(self, pdf, page_height: float, row: RowBox) -> None:
        layout = self.layout
        if row.is_header:
            fill, text_color = layout.header_fill, layout.header_text
            font, size = layout.header_font, layout.header_font_size
        else:
            fill, text_color = layout.cell_fill, layout.cell_text
            font, size = layout.text_font, layout.text_font_size

        for cell in row.cells:
            bottom = page_height - cell.top - cell.height
            pdf.setFillColor(fill)
            pdf.rect(cell.x, bottom, cell.width, cell.height, stroke=1, fill=1)
            pdf.setFillColor(text_color)
            pdf.setFont(font, size)
            baseline = bottom + (cell.height - size * CAP_HEIGHT_RATIO) / 2
            pdf.drawCentredString(cell.x + cell.width / 2, baseline, cell.text)

    def render(self, report: TabularReport) -> RenderedArtifact:
        """
        Draw title, description and table onto one page.

        Returns:
            RenderedArtifact whose stream is positioned at offset 0
        """
        rows = self.compute_layout(report)
        layout = self.layout
        if len(report) > layout.body_rows_per_page:
            logger.warning(
                f"{len(report)} rows exceed the {layout.body_rows_per_page} that fit on one page; "
                "rows past the bottom margin will be clipped"
            )

        stream = io.BytesIO()
        try:
            for font in (layout.title_font, layout.text_font, layout.header_font):
                pdfmetrics.getFont(font)

            page_width, page_height = layout.page_size
            pdf = canvas.Canvas(
                stream,
                pagesize=layout.page_size,
                invariant=int(self.invariant),
                pageCompression=int(self.page_compression),
            )
            pdf.setTitle(self.title)

            pdf.setFillColor(colors.black)
            pdf.setFont(layout.title_font, layout.title_font_size)
            pdf.drawCentredString(page_width / 2, page_height - layout.title_top, self.title)

            pdf.setFont(layout.text_font, layout.text_font_size)
            pdf.drawString(
                layout.margin_left, page_height - layout.description_top, self.description
            )

            pdf.setStrokeColor(layout.rule_color)
            pdf.setLineWidth(layout.rule_width)
            for row in rows:
                self._draw_row(pdf, page_height, row)

            pdf.showPage()
            pdf.save()
        except Exception as e:
            stream.close()
            raise RenderError(f"Document rendering failed: {e}") from e

        size = stream.tell()
        stream.seek(0)
        logger.info(f"Document rendered: {len(rows) - 1} table rows, {size:,} bytes")
        return RenderedArtifact(kind=ArtifactKind.DOCUMENT, stream=stream)
