"""
Analytics report PDF.

Sections are optional apart from the headline figures: each block is only
drawn when its payload is present and non-empty. Card rows and the payment
chart are kept whole on one page; tables paginate row by row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence

import requests
from reportlab.lib.colors import Color

from bizdocs.schemas import (
    AgingRow,
    HealthMetrics,
    LedgerSummary,
    OrgProfile,
    SalesSummary,
    TurnoverRow,
    coerce,
)
from bizdocs.services import theme
from bizdocs.services.errors import DocumentGenerationError
from bizdocs.services.formatting import format_date, money, whole_number
from bizdocs.services.layout import PageLayout, draw_page_number, draw_text, new_document
from bizdocs.services.org_profile_cache import OrgProfileCache, resolve_org_profile
from bizdocs.services.table_renderer import Cell, TableRenderer, TableSpec
from bizdocs.services.watermark import WatermarkRef, embed_watermark


logger = logging.getLogger("bizdocs.report_pdf")

RS = "Rs. "
HEADER_BAND_HEIGHT = 80.0
SECTION_TITLE_HEIGHT = 25.0
SECTION_GAP = 30.0

AGING_LIMIT = 5
TURNOVER_LIMIT = 8
TOP_LIMIT = 5

AGING_COLUMNS = ("Customer", "0-30 Days", "31-60 Days", "61-90 Days", "90+ Days", "Total")
AGING_RATIOS = (0.3, 0.15, 0.15, 0.15, 0.15, 0.1)
TURNOVER_COLUMNS = ("Item", "Opening", "Closing", "Sold", "Turnover", "Days Stock", "Last Restock", "Status")
TURNOVER_RATIOS = (0.3, 0.1, 0.1, 0.1, 0.1, 0.1, 0.1, 0.1)


@dataclass(frozen=True)
class MetricCard:
    title: str
    value: str
    color: Color


def restock_status(row: TurnoverRow) -> str:
    """URGENT if never restocked, NEEDED if under a week of stock or 10 units, else OK."""
    if row.restock_date is None:
        return "URGENT"
    if row.days_of_stock < 7 or row.closing_stock < 10:
        return "NEEDED"
    return "OK"


_STATUS_COLORS = {"URGENT": theme.DANGER, "NEEDED": theme.WARNING, "OK": theme.SUCCESS}


def _days_color(days) -> Color:
    if days < 7:
        return theme.DANGER
    if days < 14:
        return theme.WARNING
    return theme.SUCCESS


def _section_title(layout: PageLayout, title: str, content_height: float) -> None:
    layout.ensure_space(SECTION_TITLE_HEIGHT + content_height)
    layout.text(title, layout.margin, layout.current_y, size=16, bold=True, color=theme.PRIMARY)
    layout.advance(SECTION_TITLE_HEIGHT)


def _draw_cards(
    layout: PageLayout,
    cards: Sequence[MetricCard],
    box_height: float,
    strip_height: float = 25.0,
    title_size: float = 10,
    value_size: float = 14,
) -> None:
    m = layout.margin
    gap = 10.0
    box_w = (layout.content_width - gap * (len(cards) - 1)) / len(cards)
    top = layout.current_y
    for i, card in enumerate(cards):
        x = m + i * (box_w + gap)
        layout.rect(x, top - box_height, box_w, box_height, fill=theme.WHITE, stroke=theme.BORDER, stroke_w=1)
        layout.rect(x, top - strip_height, box_w, strip_height, fill=card.color)
        layout.text(card.title, x + 10, top - strip_height + 7, size=title_size, bold=True,
                    color=theme.WHITE, max_width=box_w - 20)
        layout.text(card.value, x + 10, top - strip_height - (box_height - strip_height) / 2 - 4,
                    size=value_size, bold=True, max_width=box_w - 20)
    layout.advance(box_height + SECTION_GAP)


def _draw_header(layout: PageLayout, profile: OrgProfile, summary: SalesSummary, period: str,
                 generated_at: datetime) -> None:
    w, h, m = layout.width, layout.height, layout.margin
    layout.rect(0, h - HEADER_BAND_HEIGHT, w, HEADER_BAND_HEIGHT, fill=theme.PRIMARY)
    layout.text(profile.name, m, h - 35, size=20, bold=True, color=theme.WHITE, max_width=w - 420)
    layout.text("COMPREHENSIVE ANALYTICS REPORT", w - 350, h - 35, size=16, bold=True, color=theme.WHITE)
    layout.current_y = h - HEADER_BAND_HEIGHT - 20

    top = layout.current_y
    box_h = 60.0
    layout.rect(m, top - box_h, layout.content_width, box_h, fill=theme.SECONDARY, stroke=theme.BORDER, stroke_w=1)
    layout.text("Report Period:", m + 10, top - 20, size=11, bold=True, color=theme.PRIMARY)
    layout.text((period or "").capitalize(), m + 120, top - 20, size=11)
    layout.text("Generated:", w - 200, top - 20, size=11, bold=True, color=theme.PRIMARY)
    layout.text(format_date(generated_at), w - 120, top - 20, size=11)
    layout.text("Total Sales:", m + 10, top - 40, size=11, bold=True, color=theme.PRIMARY)
    layout.text(money(summary.total_sales, RS), m + 120, top - 40, size=11)
    layout.text("Total Orders:", w - 200, top - 40, size=11, bold=True, color=theme.PRIMARY)
    layout.text(str(summary.total_orders), w - 120, top - 40, size=11)
    layout.advance(box_h + SECTION_GAP)


def _draw_key_metrics(layout: PageLayout, summary: SalesSummary) -> None:
    _section_title(layout, "KEY METRICS", 80)
    _draw_cards(
        layout,
        [
            MetricCard("Total Sales", money(summary.total_sales, RS), theme.SUCCESS),
            MetricCard("Total Orders", str(summary.total_orders), theme.PRIMARY),
            MetricCard("Avg Order Value", money(summary.average_order_value, RS), theme.ACCENT),
            MetricCard("Pending Payments", str(summary.payment_status.pending), theme.WARNING),
        ],
        box_height=80,
    )


def _draw_financial_health(layout: PageLayout, ledger: LedgerSummary) -> None:
    _section_title(layout, "FINANCIAL HEALTH SUMMARY", 60)
    _draw_cards(
        layout,
        [
            MetricCard("Total Receivables", money(ledger.total_outstanding_receivables, RS), theme.SUCCESS),
            MetricCard("Total Payables", money(ledger.total_outstanding_payables, RS), theme.DANGER),
            MetricCard(
                "Net Position",
                money(ledger.net_position, RS),
                theme.SUCCESS if ledger.net_position >= 0 else theme.DANGER,
            ),
        ],
        box_height=60,
        title_size=9,
        value_size=12,
    )


def _draw_payment_status(layout: PageLayout, summary: SalesSummary) -> None:
    chart_h, chart_w = 100.0, 300.0
    _section_title(layout, "PAYMENT STATUS", chart_h + 20)
    m = layout.margin
    top = layout.current_y
    bottom = top - chart_h
    layout.rect(m, bottom, chart_w, chart_h, fill=theme.WHITE, stroke=theme.BORDER, stroke_w=1)

    status = summary.payment_status
    total = status.total
    if total > 0:
        bar_w = (chart_w - 40) / 3
        max_h = chart_h - 40
        bars = (
            ("Paid", status.paid, theme.SUCCESS),
            ("Pending", status.pending, theme.WARNING),
            ("Overdue", status.overdue, theme.DANGER),
        )
        for i, (label, count, color) in enumerate(bars):
            x = m + 10 * (i + 1) + bar_w * i
            bar_h = count / total * max_h
            if bar_h > 0:
                layout.rect(x, bottom + 20, bar_w, bar_h, fill=color)
            layout.text(f"{label}: {count}", x, bottom - 10, size=9, color=color)
    else:
        layout.text("No payments recorded", m + 10, bottom + chart_h / 2, size=9)
    layout.advance(chart_h + 40)


def _draw_table(layout: PageLayout, spec: TableSpec, rows: Iterable[List[Any]]) -> None:
    table = TableRenderer(layout, spec)
    table.begin()
    for i, cells in enumerate(rows):
        table.draw_row(cells, i)
    table.end()
    layout.advance(20)


def _draw_aging(layout: PageLayout, rows: List[AgingRow]) -> None:
    spec = TableSpec.from_ratios(AGING_COLUMNS, AGING_RATIOS, layout.content_width)
    _section_title(layout, "ACCOUNTS RECEIVABLE AGING", spec.header_height + spec.row_height)
    _draw_table(
        layout,
        spec,
        (
            [
                r.customer_name,
                money(r.days_0_30, RS),
                money(r.days_31_60, RS),
                money(r.days_61_90, RS),
                Cell(money(r.days_over_90, RS), color=theme.DANGER if r.days_over_90 > 0 else None),
                Cell(money(r.current_balance, RS), bold=True),
            ]
            for r in rows[:AGING_LIMIT]
        ),
    )


def _draw_turnover(layout: PageLayout, rows: List[TurnoverRow]) -> None:
    spec = TableSpec.from_ratios(TURNOVER_COLUMNS, TURNOVER_RATIOS, layout.content_width, body_font_size=7.0)
    _section_title(layout, "INVENTORY TURNOVER & RESTOCK ANALYSIS", spec.header_height + spec.row_height)

    def cells(r: TurnoverRow) -> List[Any]:
        status = restock_status(r)
        return [
            r.item_name,
            whole_number(r.opening_stock),
            whole_number(r.closing_stock),
            whole_number(r.total_sold),
            f"{r.turnover_ratio:.2f}",
            Cell(f"{r.days_of_stock:.1f}", color=_days_color(r.days_of_stock)),
            Cell(format_date(r.restock_date, fallback="Never"), color=theme.DANGER if r.restock_date is None else None),
            Cell(status, bold=True, color=_STATUS_COLORS[status]),
        ]

    _draw_table(layout, spec, (cells(r) for r in rows[:TURNOVER_LIMIT]))


def _draw_system_health(layout: PageLayout, health: HealthMetrics, ledger: Optional[LedgerSummary]) -> None:
    with_balance = health.customers_with_balance
    if with_balance is None and ledger is not None:
        with_balance = ledger.customers_with_positive_balance + ledger.customers_with_negative_balance
    _section_title(layout, "SYSTEM HEALTH METRICS", 60)
    _draw_cards(
        layout,
        [
            MetricCard("Total Customers", str(health.total_customers), theme.PRIMARY),
            MetricCard("Low Stock Items", str(health.low_stock_items), theme.WARNING),
            MetricCard("Out of Stock", str(health.out_of_stock_items), theme.DANGER),
            MetricCard("With Balance", str(with_balance or 0), theme.ACCENT),
        ],
        box_height=60,
        strip_height=20,
        title_size=8,
        value_size=12,
    )


def _draw_top_customers(layout: PageLayout, summary: SalesSummary) -> None:
    spec = TableSpec.from_ratios(("Customer Name", "Orders", "Total Spent"), (0.4, 0.3, 0.3), layout.content_width)
    _section_title(layout, "TOP CUSTOMERS", spec.header_height + spec.row_height)
    _draw_table(
        layout,
        spec,
        ([c.name, str(c.order_count), money(c.total_spent, RS)] for c in summary.top_customers[:TOP_LIMIT]),
    )


def _draw_top_products(layout: PageLayout, summary: SalesSummary) -> None:
    spec = TableSpec.from_ratios(("Product Name", "Quantity Sold", "Revenue"), (0.4, 0.3, 0.3), layout.content_width)
    _section_title(layout, "TOP PRODUCTS", spec.header_height + spec.row_height)
    _draw_table(
        layout,
        spec,
        ([p.name, whole_number(p.quantity_sold), money(p.revenue, RS)] for p in summary.top_products[:TOP_LIMIT]),
    )


def make_footer(profile: OrgProfile, generated_at: datetime):
    def footer(pdf, index: int, total: int) -> None:
        pw = theme.PAGE_SIZE[0]
        draw_page_number(pdf, index, total, pw)
        draw_text(pdf, f"{profile.name} | Analytics Report", 50, 25, size=8, color=theme.PRIMARY)
        draw_text(pdf, f"Generated: {format_date(generated_at)}", pw - 200, 25, size=8)

    return footer


def render_report(
    sales_summary: Any,
    health_metrics: Optional[Any] = None,
    turnover_rows: Optional[Iterable[Any]] = None,
    aging_rows: Optional[Iterable[Any]] = None,
    ledger_summary: Optional[Any] = None,
    period: str = "monthly",
    watermark: Optional[WatermarkRef] = None,
    *,
    profile_cache: Optional[OrgProfileCache] = None,
    org_profile: Optional[Any] = None,
    asset_dir: str = ".",
    http_session: Optional[requests.Session] = None,
    fetch_timeout: float = 10.0,
    generated_at: Optional[datetime] = None,
) -> bytes:
    """Render the analytics report to PDF bytes. Only `sales_summary` is required."""
    if sales_summary is None:
        raise DocumentGenerationError("Sales summary is required")
    summary = coerce(SalesSummary, sales_summary)
    health = coerce(HealthMetrics, health_metrics) if health_metrics is not None else None
    ledger = coerce(LedgerSummary, ledger_summary) if ledger_summary is not None else None
    turnover = [coerce(TurnoverRow, r) for r in (turnover_rows or [])]
    aging = [coerce(AgingRow, r) for r in (aging_rows or [])]

    override = coerce(OrgProfile, org_profile) if org_profile is not None else None
    profile = resolve_org_profile(override, profile_cache)
    generated_at = generated_at or datetime.now()

    buffer, pdf = new_document(footer=make_footer(profile, generated_at), title="Analytics Report")
    layout = PageLayout(pdf)
    handle = embed_watermark(watermark, asset_dir=asset_dir, session=http_session, timeout=fetch_timeout)
    if handle is not None:
        layout.add_page_decorator(handle.draw)

    layout.begin_page()
    _draw_header(layout, profile, summary, period, generated_at)
    _draw_key_metrics(layout, summary)
    if ledger is not None:
        _draw_financial_health(layout, ledger)
    _draw_payment_status(layout, summary)
    if aging:
        _draw_aging(layout, aging)
    if turnover:
        _draw_turnover(layout, turnover)
    if health is not None:
        _draw_system_health(layout, health, ledger)
    if summary.top_customers:
        _draw_top_customers(layout, summary)
    if summary.top_products:
        _draw_top_products(layout, summary)
    layout.finish()

    data = buffer.getvalue()
    logger.info(
        "document_rendered",
        extra={
            "kind": "report",
            "period": period,
            "pages": layout.page_count,
            "byte_size": len(data),
            "watermark": handle is not None,
        },
    )
    return data
