"""
Invoice PDF assembler.

Section order: header band, invoice details, company details, Bill To / Ship
To, item table, totals band, payment summary beside bank details, amount in
words. The footer (terms, signature block, page number, branding) is added to
every page once the page total is known.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, List, Optional

import requests

from bizdocs.schemas import Customer, Invoice, OrderItem, OrgProfile, coerce
from bizdocs.services import theme
from bizdocs.services.errors import DocumentGenerationError
from bizdocs.services.formatting import amount_in_words, format_date, money, quantize, whole_number
from bizdocs.services.layout import PageLayout, draw_page_number, draw_rect, draw_text, new_document, wrap_text
from bizdocs.services.org_profile_cache import OrgProfileCache, resolve_org_profile
from bizdocs.services.table_renderer import Cell, TableRenderer, TableSpec
from bizdocs.services.watermark import WatermarkRef, embed_watermark


logger = logging.getLogger("bizdocs.invoice_pdf")

RS = "Rs. "

HEADER_BAND_HEIGHT = 80.0
# Room kept clear above the page footer.
INVOICE_BOTTOM_RESERVE = 120.0
FOOTER_BASE_Y = 80.0

ITEM_COLUMNS = ("SL", "Item Description", "HSN", "Qty", "Rate", "Amount", "Tax", "Total")
ITEM_COLUMN_RATIOS = (0.06, 0.32, 0.1, 0.08, 0.14, 0.14, 0.08, 0.14)
INVOICE_NUMBER_CHUNK = 25
INVOICE_NUMBER_MAX_LINES = 4
DETAILS_MIN_HEIGHT = 60.0
LINE_HEIGHT = 16.0


def synthesize_items(invoice: Invoice) -> List[OrderItem]:
    """A single "Service/Product" line standing in for an order with no items."""
    gst_percent = (invoice.tax / invoice.amount * 100) if invoice.amount else Decimal("0")
    return [
        OrderItem(
            item_name="Service/Product",
            quantity=Decimal("1"),
            unit_price=invoice.amount,
            gst_percent=gst_percent,
            tax_amount=invoice.tax,
            total_price=invoice.grand_total,
        )
    ]


def chunk_invoice_number(
    number: str, size: int = INVOICE_NUMBER_CHUNK, max_lines: int = INVOICE_NUMBER_MAX_LINES
) -> List[str]:
    """Fixed-width chunks; anything past `max_lines` is cut and marked with '...'."""
    chunks = [number[i:i + size] for i in range(0, len(number), size)] or [number]
    if len(chunks) > max_lines:
        chunks = chunks[:max_lines]
        chunks[-1] = chunks[-1][:size - 3] + "..."
    return chunks


def _section_box(layout: PageLayout, x: float, top: float, w: float, h: float, title: str, solid: bool) -> None:
    """Bordered box with a 25pt title strip."""
    if solid:
        layout.rect(x, top - h, w, h, fill=theme.WHITE, stroke=theme.PRIMARY, stroke_w=2)
        layout.rect(x, top - 25, w, 25, fill=theme.PRIMARY)
        layout.text(title, x + 10, top - 18, size=12, bold=True, color=theme.WHITE)
    else:
        layout.rect(x, top - h, w, h, fill=theme.WHITE, stroke=theme.BORDER, stroke_w=1)
        layout.rect(x, top - 25, w, 25, fill=theme.SECONDARY)
        layout.text(title, x + 10, top - 18, size=11, bold=True, color=theme.PRIMARY)


def _draw_header_band(layout: PageLayout, profile: OrgProfile) -> None:
    w, h = layout.width, layout.height
    layout.rect(0, h - HEADER_BAND_HEIGHT, w, HEADER_BAND_HEIGHT, fill=theme.PRIMARY)
    layout.rect(0, h - HEADER_BAND_HEIGHT + 40, w, 40, fill=theme.ACCENT, opacity=0.3)
    layout.text(profile.name, layout.margin, h - 35, size=24, bold=True, color=theme.WHITE, max_width=w - 240)
    layout.text("INVOICE", w - 140, h - 35, size=20, bold=True, color=theme.WHITE)
    layout.current_y = h - HEADER_BAND_HEIGHT - 20


def _draw_details(layout: PageLayout, invoice: Invoice) -> None:
    m, w = layout.margin, layout.width
    top = layout.current_y
    chunks = chunk_invoice_number(invoice.invoice_number)
    # First baseline sits 20pt down; keep 16pt below the last one.
    box_h = max(DETAILS_MIN_HEIGHT, 20 + (len(chunks) - 1) * 12 + 16)
    layout.rect(m, top - box_h, layout.content_width, box_h, fill=theme.SECONDARY, stroke=theme.BORDER, stroke_w=1)
    layout.text("Invoice No:", m + 10, top - 20, size=11, bold=True, color=theme.PRIMARY)
    for i, chunk in enumerate(chunks):
        layout.text(chunk, m + 100, top - 20 - i * 12, size=11)
    layout.text("Date:", w - 200, top - 20, size=11, bold=True, color=theme.PRIMARY)
    layout.text(format_date(invoice.issue_date), w - 120, top - 20, size=11)
    if invoice.due_date:
        layout.text("Due:", w - 200, top - 38, size=11, bold=True, color=theme.PRIMARY)
        layout.text(format_date(invoice.due_date), w - 120, top - 38, size=11)
    layout.advance(box_h + 20)


def company_lines(profile: OrgProfile) -> List[str]:
    lines = []
    if profile.address_lines:
        lines.append(", ".join(profile.address_lines))
    contact = "  |  ".join(
        part for part in (
            f"Phone: {profile.phone}" if profile.phone else "",
            f"Email: {profile.email}" if profile.email else "",
        ) if part
    )
    if contact:
        lines.append(contact)
    tax = "  |  ".join(
        part for part in (
            f"GSTIN: {profile.gstin}" if profile.gstin else "",
            f"State: {profile.state}" if profile.state else "",
        ) if part
    )
    if tax:
        lines.append(tax)
    return lines


def _draw_company(layout: PageLayout, profile: OrgProfile) -> None:
    m = layout.margin
    top = layout.current_y
    box_h = 100.0
    _section_box(layout, m, top, layout.content_width, box_h, "COMPANY DETAILS", solid=True)
    y = top - 40
    for i, line in enumerate(company_lines(profile)):
        layout.text(line, m + 10, y, size=10, bold=(i == 0), max_width=layout.content_width - 20)
        y -= LINE_HEIGHT
    layout.advance(box_h + 20)


def party_lines(customer: Optional[Customer], address: Optional[str]) -> List[str]:
    if customer is None:
        return ["Customer"]
    lines = [customer.name, customer.company_name or "", customer.phone or "", customer.email or ""]
    lines.extend((address or "").split("\n"))
    return [line.strip() for line in lines if line and line.strip()]


def _draw_parties(layout: PageLayout, customer: Optional[Customer]) -> None:
    m = layout.margin
    top = layout.current_y
    col_w = (layout.content_width - 10) / 2
    box_h = 130.0
    billing = customer.billing_address if customer else None
    shipping = (customer.shipping_address or customer.billing_address) if customer else None

    for x, title, lines in (
        (m, "BILL TO", party_lines(customer, billing)),
        (m + col_w + 10, "SHIP TO", party_lines(customer, shipping)),
    ):
        _section_box(layout, x, top, col_w, box_h, title, solid=False)
        y = top - 40
        for i, line in enumerate(lines):
            if y < top - box_h + 8:
                break
            layout.text(line, x + 10, y, size=10, bold=(i == 0), max_width=col_w - 20)
            y -= LINE_HEIGHT
    layout.advance(box_h + 30)


def _draw_items(layout: PageLayout, items: List[OrderItem]) -> None:
    spec = TableSpec.from_ratios(
        ITEM_COLUMNS,
        ITEM_COLUMN_RATIOS,
        layout.content_width,
        header_height=25.0,
        row_height=22.0,
        header_font_size=10.0,
        body_font_size=9.0,
    )
    table = TableRenderer(layout, spec)

    def continued(lay: PageLayout) -> None:
        lay.text("Continued on next page...", lay.width - 200, lay.floor - 12, size=9, color=theme.PRIMARY)

    table.begin()
    layout.add_break_hook(continued)

    total_qty = Decimal("0")
    total_tax = Decimal("0")
    total_amount = Decimal("0")
    for index, item in enumerate(items):
        table.draw_row(
            [
                str(index + 1),
                item.item_name or "Item",
                item.hsn_code or "-",
                whole_number(item.quantity),
                money(item.unit_price, RS),
                money(item.gross, RS),
                f"{quantize(item.gst_percent):.1f}%",
                Cell(money(item.total_price, RS), bold=True),
            ],
            index,
        )
        total_qty += item.quantity
        total_tax += item.tax_amount
        total_amount += item.total_price

    layout.remove_break_hook(continued)
    white = theme.WHITE
    table.draw_row(
        [
            Cell("TOTAL", bold=True, color=white, span=3),
            Cell(whole_number(total_qty), bold=True, color=white),
            "",
            "",
            Cell(money(total_tax, RS), bold=True, color=white),
            Cell(money(total_amount, RS), bold=True, color=white),
        ],
        0,
        fill=theme.PRIMARY,
        height=25.0,
    )
    table.end()
    layout.advance(25)


def _draw_summary_and_bank(layout: PageLayout, invoice: Invoice, profile: OrgProfile) -> None:
    box_h = 100.0
    layout.ensure_space(box_h + 20)
    m, w = layout.margin, layout.width
    top = layout.current_y

    summary_w = 300.0
    summary_x = w - summary_w - m
    layout.rect(summary_x, top - box_h, summary_w, box_h, fill=theme.SECONDARY, stroke=theme.PRIMARY, stroke_w=1)
    layout.rect(summary_x, top - 25, summary_w, 25, fill=theme.PRIMARY)
    layout.text("PAYMENT SUMMARY", summary_x + 10, top - 16, size=11, bold=True, color=theme.WHITE)
    rows = [
        ("Subtotal:", money(invoice.amount, RS)),
        ("Tax Amount:", money(invoice.tax, RS)),
        ("Grand Total:", money(invoice.grand_total, RS)),
    ]
    y = top - 40
    for i, (label, value) in enumerate(rows):
        last = i == len(rows) - 1
        size = 11 if last else 10
        layout.text(label, summary_x + 10, y, size=size, bold=last)
        layout.text(value, summary_x + summary_w - 10, y, size=size, bold=True,
                    color=theme.PRIMARY if last else theme.TEXT, align="right")
        y -= LINE_HEIGHT + 2

    bank_w = summary_x - m - 20
    _section_box(layout, m, top, bank_w, box_h, "BANK DETAILS", solid=False)
    y = top - 40
    for detail in (
        f"Account: {profile.bank_account_number or '-'}",
        f"IFSC: {profile.bank_ifsc or '-'}",
        f"Bank: {profile.bank_name or '-'}",
        f"Branch: {profile.bank_branch or '-'}",
    ):
        layout.text(detail, m + 10, y, size=10, max_width=bank_w - 20)
        y -= LINE_HEIGHT
    layout.advance(box_h + 20)


def _draw_amount_in_words(layout: PageLayout, invoice: Invoice) -> None:
    layout.ensure_space(50)
    m = layout.margin
    top = layout.current_y
    words = amount_in_words(invoice.grand_total).upper()
    layout.rect(m, top - 30, layout.content_width, 30, fill=theme.SECONDARY, stroke=theme.BORDER, stroke_w=1)
    layout.text(f"Amount in words: {words} ONLY", m + 10, top - 20, size=10, bold=True,
                max_width=layout.content_width - 20)
    layout.advance(50)


def make_footer(profile: OrgProfile, generated_at: datetime):
    """Footer callback for NumberedCanvas: terms, signature, page badge, branding."""
    terms = (profile.terms or "").replace("\r\n", "\n").split("\n")

    def footer(pdf, index: int, total: int) -> None:
        pw = theme.PAGE_SIZE[0]
        base = FOOTER_BASE_Y
        draw_rect(pdf, 0, 0, pw, base + 60, fill=theme.WHITE, stroke=theme.BORDER, stroke_w=1)
        draw_rect(pdf, 40, base + 50, pw - 80, 2, fill=theme.PRIMARY)
        draw_text(pdf, "TERMS & CONDITIONS", 50, base + 35, size=11, bold=True, color=theme.PRIMARY)

        y = base + 20
        for paragraph in terms:
            for line in wrap_text(paragraph.strip(), pw - 420, size=9):
                if y < base - 5:
                    break
                draw_text(pdf, line, 50, y, size=9)
                y -= 10

        draw_rect(pdf, pw - 320, base + 5, 250, 40, fill=theme.SECONDARY, stroke=theme.PRIMARY, stroke_w=1)
        draw_text(pdf, f"FOR {profile.name}", pw - 310, base + 30, size=10, bold=True,
                  color=theme.PRIMARY, max_width=230)
        draw_text(pdf, "Authorised Signatory", pw - 310, base + 13, size=9)

        draw_page_number(pdf, index, total, pw)
        branding = " | ".join(p for p in (profile.name, profile.phone) if p)
        draw_text(pdf, branding, 50, 25, size=8, color=theme.PRIMARY)
        draw_text(pdf, f"Generated: {format_date(generated_at)}", pw - 200, 25, size=8)

    return footer


def render_invoice(
    invoice: Any,
    customer: Any,
    order_items: Optional[Iterable[Any]],
    org_profile_override: Optional[Any] = None,
    *,
    profile_cache: Optional[OrgProfileCache] = None,
    watermark: Optional[WatermarkRef] = None,
    asset_dir: str = ".",
    http_session: Optional[requests.Session] = None,
    fetch_timeout: float = 10.0,
    generated_at: Optional[datetime] = None,
) -> bytes:
    """Render one invoice to PDF bytes."""
    if invoice is None:
        raise DocumentGenerationError("Invoice payload is required")
    invoice = coerce(Invoice, invoice)
    customer = coerce(Customer, customer) if customer is not None else None
    items = [coerce(OrderItem, i) for i in (order_items or [])] or synthesize_items(invoice)
    override = coerce(OrgProfile, org_profile_override) if org_profile_override is not None else None
    profile = resolve_org_profile(override, profile_cache)
    generated_at = generated_at or datetime.now()

    buffer, pdf = new_document(footer=make_footer(profile, generated_at), title=f"Invoice {invoice.invoice_number}")
    layout = PageLayout(pdf, bottom_reserve=INVOICE_BOTTOM_RESERVE)
    handle = embed_watermark(watermark, asset_dir=asset_dir, session=http_session, timeout=fetch_timeout)
    if handle is not None:
        layout.add_page_decorator(handle.draw)

    layout.begin_page()
    _draw_header_band(layout, profile)
    _draw_details(layout, invoice)
    _draw_company(layout, profile)
    _draw_parties(layout, customer)
    _draw_items(layout, items)
    _draw_summary_and_bank(layout, invoice, profile)
    _draw_amount_in_words(layout, invoice)
    layout.finish()

    data = buffer.getvalue()
    logger.info(
        "document_rendered",
        extra={
            "kind": "invoice",
            "invoice_number": invoice.invoice_number,
            "pages": layout.page_count,
            "byte_size": len(data),
            "watermark": handle is not None,
        },
    )
    return data
