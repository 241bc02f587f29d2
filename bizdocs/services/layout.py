"""
Page layout and pagination.

`PageLayout` owns the current page, the write cursor (`current_y`, moving
down the page) and the decision of when to start a new page. Everything that
draws goes through it: the primitives here sanitize text for the standard
fonts, and `ensure_space` re-runs the active table header on every new page.

`NumberedCanvas` defers per-page footers until the document is saved, so a
footer can print "Page i of n".
"""

from __future__ import annotations

import io
from typing import Callable, List, Optional, Tuple

from reportlab.lib.colors import Color
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from bizdocs.services import theme
from bizdocs.services.text_sanitizer import safe


FooterFn = Callable[[canvas.Canvas, int, int], None]


class NumberedCanvas(canvas.Canvas):
    """Canvas that holds finished pages back until save() so footers know the page total."""

    def __init__(self, *args, footer: Optional[FooterFn] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states: List[dict] = []
        self._footer = footer

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for index, state in enumerate(self._saved_page_states, start=1):
            self.__dict__.update(state)
            if self._footer is not None:
                self._footer(self, index, total)
            super().showPage()
        super().save()

    @property
    def finished_pages(self) -> int:
        return len(self._saved_page_states)


# ---------------------------------------------------------------------------
# Drawing primitives
# ---------------------------------------------------------------------------


def fit_text(text: str, font: str, size: float, max_width: Optional[float]) -> str:
    """Truncate with '...' until the text fits `max_width`."""
    if max_width is None or stringWidth(text, font, size) <= max_width:
        return text
    while len(text) > 3 and stringWidth(text + "...", font, size) > max_width:
        text = text[:-1]
    return text + "..."


def draw_text(
    pdf: canvas.Canvas,
    text,
    x: float,
    y: float,
    size: float = 10,
    bold: bool = False,
    color: Optional[Color] = None,
    align: str = "left",
    max_width: Optional[float] = None,
) -> None:
    font = theme.FONT_BOLD if bold else theme.FONT
    value = fit_text(safe(text), font, size, max_width)
    pdf.saveState()
    pdf.setFont(font, size)
    pdf.setFillColor(color or theme.TEXT)
    if align == "center":
        pdf.drawCentredString(x, y, value)
    elif align == "right":
        pdf.drawRightString(x, y, value)
    else:
        pdf.drawString(x, y, value)
    pdf.restoreState()


def draw_rect(
    pdf: canvas.Canvas,
    x: float,
    y: float,
    w: float,
    h: float,
    fill: Optional[Color] = None,
    stroke: Optional[Color] = None,
    stroke_w: float = 0.5,
    opacity: Optional[float] = None,
) -> None:
    pdf.saveState()
    if opacity is not None:
        pdf.setFillAlpha(opacity)
    if fill is not None:
        pdf.setFillColor(fill)
    if stroke is not None:
        pdf.setStrokeColor(stroke)
        pdf.setLineWidth(stroke_w)
    pdf.rect(x, y, w, h, fill=1 if fill is not None else 0, stroke=1 if stroke is not None else 0)
    pdf.restoreState()


def draw_line(
    pdf: canvas.Canvas,
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    color: Optional[Color] = None,
    width: float = 0.5,
) -> None:
    pdf.saveState()
    pdf.setStrokeColor(color or theme.BORDER)
    pdf.setLineWidth(width)
    pdf.line(x1, y1, x2, y2)
    pdf.restoreState()


def text_width(text, size: float = 10, bold: bool = False) -> float:
    return stringWidth(safe(text), theme.FONT_BOLD if bold else theme.FONT, size)


def wrap_text(text, max_width: float, size: float = 10, bold: bool = False) -> List[str]:
    """Greedy word wrap of one paragraph against the rendered font width."""
    words = safe(text).split()
    lines: List[str] = []
    current = ""
    for word in words:
        tentative = f"{current} {word}" if current else word
        if current and text_width(tentative, size, bold) > max_width:
            lines.append(current)
            current = word
        else:
            current = tentative
    if current:
        lines.append(current)
    return lines


def draw_page_number(pdf: canvas.Canvas, index: int, total: int, page_width: float) -> None:
    """Draw the "Page i of n" badge in the bottom-right corner."""
    draw_rect(pdf, page_width - 140, 40, 120, 25, fill=theme.PRIMARY)
    draw_text(pdf, f"Page {index} of {total}", page_width - 130, 48, size=9, bold=True, color=theme.WHITE)


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


class PageLayout:
    """
    Cursor and page management for one document.

    Page decorators run at the start of every page, before any content (the
    watermark is one). Page-break hooks run on the outgoing page just before a
    break. The header callback, when set, runs on every page started by
    `ensure_space`.
    """

    def __init__(
        self,
        pdf: canvas.Canvas,
        page_size: Tuple[float, float] = theme.PAGE_SIZE,
        margin: float = theme.PAGE_MARGIN,
        bottom_reserve: float = theme.BOTTOM_RESERVE,
        top_offset: float = 0.0,
    ):
        self.pdf = pdf
        self.width, self.height = page_size
        self.margin = margin
        self.bottom_reserve = bottom_reserve
        self.top_offset = top_offset
        self.page_count = 0
        self.current_y = self.top
        self._header: Optional[Callable[[], None]] = None
        self._decorators: List[Callable[[canvas.Canvas], None]] = []
        self._break_hooks: List[Callable[["PageLayout"], None]] = []

    @property
    def top(self) -> float:
        return self.height - self.margin - self.top_offset

    @property
    def floor(self) -> float:
        """Lowest y any content may reach."""
        return self.margin + self.bottom_reserve

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    def remaining(self) -> float:
        return self.current_y - self.floor

    def add_page_decorator(self, fn: Callable[[canvas.Canvas], None]) -> None:
        self._decorators.append(fn)

    def add_break_hook(self, fn: Callable[["PageLayout"], None]) -> None:
        self._break_hooks.append(fn)

    def remove_break_hook(self, fn: Callable[["PageLayout"], None]) -> None:
        if fn in self._break_hooks:
            self._break_hooks.remove(fn)

    def set_header(self, fn: Optional[Callable[[], None]]) -> None:
        self._header = fn

    def clear_header(self) -> None:
        self._header = None

    def begin_page(self) -> int:
        """Start a fresh page and return its 1-based number."""
        if self.page_count > 0:
            self.pdf.showPage()
        self.page_count += 1
        self.current_y = self.top
        for decorate in self._decorators:
            decorate(self.pdf)
        return self.page_count

    def ensure_space(self, height: float) -> bool:
        """
        Make sure `height` fits above the floor; break the page if not.

        Returns True when a new page was started. The header callback is
        re-run on the new page, so callers should ask for the row height only.
        """
        if self.page_count == 0:
            self.begin_page()
        if self.current_y - height >= self.floor:
            return False
        for hook in self._break_hooks:
            hook(self)
        self.begin_page()
        if self._header is not None:
            self._header()
        return True

    def advance(self, height: float) -> None:
        self.current_y -= height

    # Drawing passthroughs, all sanitized.

    def text(self, value, x: float, y: float, **kwargs) -> None:
        draw_text(self.pdf, value, x, y, **kwargs)

    def rect(self, x: float, y: float, w: float, h: float, **kwargs) -> None:
        draw_rect(self.pdf, x, y, w, h, **kwargs)

    def line(self, x1: float, y1: float, x2: float, y2: float, **kwargs) -> None:
        draw_line(self.pdf, x1, y1, x2, y2, **kwargs)

    def finish(self) -> None:
        """Close the last page and write the document."""
        if self.page_count == 0:
            self.begin_page()
        self.pdf.showPage()
        self.pdf.save()


def new_document(
    footer: Optional[FooterFn] = None,
    title: Optional[str] = None,
    page_size: Tuple[float, float] = theme.PAGE_SIZE,
) -> Tuple[io.BytesIO, NumberedCanvas]:
    buffer = io.BytesIO()
    pdf = NumberedCanvas(buffer, pagesize=page_size, footer=footer)
    if title:
        pdf.setTitle(safe(title))
    pdf.setAuthor("bizdocs")
    return buffer, pdf
