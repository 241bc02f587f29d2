"""
Banded table rendering on top of PageLayout.

Tables are centred on the page. The header is a solid band with light text
and is redrawn on every page the table spills onto; body rows alternate
background by row index. Cell text is left-aligned with a fixed inset and is
expected to be formatted already.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from reportlab.lib.colors import Color

from bizdocs.services import theme
from bizdocs.services.layout import PageLayout


CELL_INSET = 5.0


@dataclass(frozen=True)
class Column:
    label: str
    width: float


@dataclass(frozen=True)
class Cell:
    """Cell text with optional styling; `span` merges it across following columns."""
    text: str = ""
    bold: bool = False
    color: Optional[Color] = None
    span: int = 1


CellValue = Union[str, Cell, None]


@dataclass(frozen=True)
class TableSpec:
    columns: Tuple[Column, ...]
    header_height: float = 22.0
    row_height: float = 18.0
    header_font_size: float = 9.0
    body_font_size: float = 8.0

    @classmethod
    def from_widths(cls, labels: Sequence[str], widths: Sequence[float], **kwargs) -> "TableSpec":
        if len(labels) != len(widths):
            raise ValueError("labels and widths differ in length")
        return cls(columns=tuple(Column(l, float(w)) for l, w in zip(labels, widths)), **kwargs)

    @classmethod
    def from_ratios(cls, labels: Sequence[str], ratios: Sequence[float], total_width: float, **kwargs) -> "TableSpec":
        """Relative widths scaled so the columns add up to `total_width`."""
        s = float(sum(ratios))
        if s <= 0:
            raise ValueError("ratios must sum to a positive number")
        return cls.from_widths(labels, [total_width * r / s for r in ratios], **kwargs)

    @property
    def total_width(self) -> float:
        return sum(c.width for c in self.columns)

    def start_x(self, page_width: float) -> float:
        return (page_width - self.total_width) / 2

    def column_edges(self, page_width: float) -> List[float]:
        """x of every column boundary, left edge first, right edge last."""
        edges = [self.start_x(page_width)]
        for c in self.columns:
            edges.append(edges[-1] + c.width)
        return edges


def _as_cell(value: CellValue) -> Cell:
    if isinstance(value, Cell):
        return value
    return Cell(text="" if value is None else str(value))


class TableRenderer:
    def __init__(
        self,
        layout: PageLayout,
        spec: TableSpec,
        header_fill: Color = theme.PRIMARY,
        header_text: Color = theme.WHITE,
        band_fills: Tuple[Color, Color] = (theme.WHITE, theme.SECONDARY),
        border: Color = theme.BORDER,
    ):
        self.layout = layout
        self.spec = spec
        self.header_fill = header_fill
        self.header_text = header_text
        self.band_fills = band_fills
        self.border = border
        self.header_draws = 0
        self.rows_drawn = 0

    @property
    def edges(self) -> List[float]:
        return self.spec.column_edges(self.layout.width)

    def begin(self) -> None:
        """Draw the header (moving to a new page if even one row would not fit) and keep it active."""
        self.layout.ensure_space(self.spec.header_height + self.spec.row_height)
        self.draw_header()
        self.layout.set_header(self.draw_header)

    def end(self) -> None:
        self.layout.clear_header()

    def draw_header(self) -> None:
        layout = self.layout
        spec = self.spec
        edges = self.edges
        top = layout.current_y
        bottom = top - spec.header_height

        layout.rect(edges[0], bottom, spec.total_width, spec.header_height, fill=self.header_fill)
        baseline = bottom + (spec.header_height - spec.header_font_size) / 2 + 2
        for i, col in enumerate(spec.columns):
            layout.text(
                col.label,
                edges[i] + CELL_INSET,
                baseline,
                size=spec.header_font_size,
                bold=True,
                color=self.header_text,
                max_width=col.width - 2 * CELL_INSET,
            )
        for x in edges[1:-1]:
            layout.line(x, top, x, bottom, color=self.border, width=0.5)
        layout.line(edges[0], bottom, edges[-1], bottom, color=self.border, width=1)

        layout.advance(spec.header_height)
        self.header_draws += 1

    def draw_row(
        self,
        cells: Sequence[CellValue],
        row_index: int,
        fill: Optional[Color] = None,
        bold: bool = False,
        height: Optional[float] = None,
    ) -> None:
        """
        Draw one body row, breaking the page first if it would not fit.

        `fill` overrides the zebra band (totals rows); `bold` applies to every
        cell that does not set its own weight.
        """
        layout = self.layout
        spec = self.spec
        row_h = height or spec.row_height
        layout.ensure_space(row_h)

        edges = self.edges
        top = layout.current_y
        bottom = top - row_h
        background = fill or self.band_fills[row_index % 2]
        layout.rect(edges[0], bottom, spec.total_width, row_h, fill=background, stroke=self.border, stroke_w=0.5)

        baseline = bottom + (row_h - spec.body_font_size) / 2 + 2
        col = 0
        boundaries = []
        for value in cells:
            if col >= len(spec.columns):
                break
            cell = _as_cell(value)
            span = max(1, min(cell.span, len(spec.columns) - col))
            left = edges[col]
            right = edges[col + span]
            layout.text(
                cell.text,
                left + CELL_INSET,
                baseline,
                size=spec.body_font_size,
                bold=cell.bold or bold,
                color=cell.color,
                max_width=right - left - 2 * CELL_INSET,
            )
            col += span
            boundaries.append(col)

        # Columns past the last supplied cell are still ruled individually.
        boundaries.extend(range(col + 1, len(spec.columns) + 1))
        for b in boundaries:
            if 0 < b < len(spec.columns):
                layout.line(edges[b], top, edges[b], bottom, color=self.border, width=0.5)

        layout.advance(row_h)
        self.rows_drawn += 1
