import io
import math

import pytest

from bizdocs.services.layout import NumberedCanvas, PageLayout, fit_text, new_document, wrap_text
from bizdocs.services.table_renderer import Cell, TableRenderer, TableSpec
from bizdocs.services.theme import FONT
from conftest import pdf_pages


PAGE = (300.0, 400.0)
MARGIN = 20.0
RESERVE = 30.0


def _layout(footer=None):
    buf = io.BytesIO()
    pdf = NumberedCanvas(buf, pagesize=PAGE, footer=footer)
    return buf, PageLayout(pdf, page_size=PAGE, margin=MARGIN, bottom_reserve=RESERVE)


def _spec():
    return TableSpec.from_ratios(("Name", "Amount"), (0.6, 0.4), 200.0)


def _rows_per_page(spec):
    usable = (PAGE[1] - MARGIN) - (MARGIN + RESERVE)
    return math.floor((usable - spec.header_height) / spec.row_height)


@pytest.mark.parametrize("rows", [0, 1, 17, 18, 40, 85])
def test_page_count_follows_rows_per_page(rows):
    spec = _spec()
    buf, layout = _layout()
    table = TableRenderer(layout, spec)
    table.begin()
    for i in range(rows):
        table.draw_row([f"row {i}", f"{i}.00"], i)
    table.end()
    layout.finish()

    per_page = _rows_per_page(spec)
    expected = max(1, math.ceil(rows / per_page))
    assert layout.page_count == expected
    assert table.header_draws == expected

    pages = pdf_pages(buf.getvalue())
    assert len(pages) == expected
    for text in pages:
        assert "Name" in text and "Amount" in text


def test_row_that_fits_exactly_stays_on_page():
    _, layout = _layout()
    layout.begin_page()
    layout.current_y = layout.floor + 18
    assert layout.ensure_space(18) is False
    assert layout.ensure_space(18.01) is True
    assert layout.page_count == 2
    assert layout.current_y == layout.top


def test_decorators_run_on_every_page_and_break_hooks_before_each_break():
    _, layout = _layout()
    decorated = []
    breaks = []
    layout.add_page_decorator(lambda pdf: decorated.append(layout.page_count))
    layout.add_break_hook(lambda lay: breaks.append(lay.page_count))
    for _ in range(3):
        layout.ensure_space(layout.top - layout.floor)
        layout.advance(layout.top - layout.floor)
    assert decorated == [1, 2, 3]
    assert breaks == [1, 2]


def test_removed_break_hook_no_longer_runs():
    _, layout = _layout()
    calls = []

    def hook(lay):
        calls.append(lay.page_count)

    layout.add_break_hook(hook)
    layout.remove_break_hook(hook)
    layout.ensure_space(10)
    layout.advance(layout.top)
    layout.ensure_space(10)
    assert calls == []


def test_numbered_canvas_footer_sees_page_total():
    seen = []
    buf, layout = _layout(footer=lambda pdf, index, total: seen.append((index, total)))
    for _ in range(3):
        layout.begin_page()
    layout.finish()
    assert seen == [(1, 3), (2, 3), (3, 3)]
    assert len(pdf_pages(buf.getvalue())) == 3


def test_finish_on_untouched_layout_yields_one_page():
    buf, pdf = new_document(title="Empty")
    layout = PageLayout(pdf)
    layout.finish()
    assert layout.page_count == 1
    assert buf.getvalue().startswith(b"%PDF")


def test_table_is_centred_and_widths_follow_ratios():
    spec = TableSpec.from_ratios(("A", "B", "C"), (1, 2, 1), 400.0)
    assert [c.width for c in spec.columns] == [100.0, 200.0, 100.0]
    assert spec.start_x(842.0) == pytest.approx(221.0)
    edges = spec.column_edges(842.0)
    assert edges[0] == pytest.approx(221.0)
    assert edges[-1] == pytest.approx(621.0)


def test_table_spec_rejects_mismatched_widths():
    with pytest.raises(ValueError):
        TableSpec.from_widths(("A", "B"), (10,))


def test_spanning_and_styled_cells_render():
    buf, layout = _layout()
    spec = TableSpec.from_widths(("Date", "Particulars", "Debit", "Credit"), (50, 90, 50, 50))
    table = TableRenderer(layout, spec)
    table.begin()
    table.draw_row(["01/01/2025", "By Opening Balance", "", ""], 0)
    table.draw_row([Cell("Total as on 31/01/2025", bold=True, span=2), "10.00", "5.00"], 1)
    table.end()
    layout.finish()
    text = pdf_pages(buf.getvalue())[0]
    assert "Total as on 31/01/2025" in text
    assert table.rows_drawn == 2


def test_text_helpers_sanitize_and_truncate():
    assert wrap_text("one two three four", 10_000) == ["one two three four"]
    assert len(wrap_text("word " * 50, 60, size=9)) > 1
    assert fit_text("x" * 200, FONT, 9, 50).endswith("...")
    assert wrap_text("Paid ₹500", 10_000) == ["Paid Rs.500"]
