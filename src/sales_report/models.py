"""
Data model shared by the report pipeline stages.
"""

import io
from dataclasses import astuple, dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterator, Optional, Tuple

import pandas as pd


@dataclass(frozen=True)
class SalesAggregateRow:
    """One (year, month) group of the sales aggregation query"""

    year: int
    month: int
    total_amount: Optional[Decimal]

    def as_tuple(self) -> Tuple[int, int, Optional[Decimal]]:
        return astuple(self)


@dataclass(frozen=True, eq=False)
class TabularReport:
    """
    Materialized report dataset.

    Both renderers read the same frame; it is built once per run and never
    refreshed from the data source.
    """

    frame: pd.DataFrame

    @property
    def columns(self) -> Tuple[str, ...]:
        return tuple(self.frame.columns)

    def __len__(self) -> int:
        return len(self.frame)

    def iter_rows(self) -> Iterator[SalesAggregateRow]:
        for year, month, total in self.frame.itertuples(index=False, name=None):
            yield SalesAggregateRow(int(year), int(month), total)

    @property
    def rows(self) -> Tuple[SalesAggregateRow, ...]:
        return tuple(self.iter_rows())

    def grand_total(self) -> Decimal:
        return sum(
            (t for t in self.frame["TotalSales"] if t is not None), Decimal("0")
        )


class ArtifactKind(Enum):
    SPREADSHEET = ("xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
    DOCUMENT = ("pdf", "application/pdf")

    @property
    def extension(self) -> str:
        return self.value[0]

    @property
    def content_type(self) -> str:
        return self.value[1]


@dataclass
class RenderedArtifact:
    """Rendered payload held by the orchestrator until it is uploaded"""

    kind: ArtifactKind
    stream: io.BytesIO

    def suggested_name(self, base_name: str, epoch: str) -> str:
        return f"{base_name}_{epoch}.{self.kind.extension}"

    def getvalue(self) -> bytes:
        return self.stream.getvalue()

    def close(self) -> None:
        self.stream.close()
