"""
Customer ledger statement PDF.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional

import requests

from bizdocs.schemas import Customer, DateRange, LedgerTransaction, OrgProfile, TransactionType, coerce
from bizdocs.services import theme
from bizdocs.services.errors import DocumentGenerationError
from bizdocs.services.formatting import format_date, plain_amount, to_decimal
from bizdocs.services.layout import PageLayout, draw_page_number, draw_text, new_document
from bizdocs.services.ledger_balance import (
    LedgerGrandTotals,
    RunningLedger,
    balance_label,
    compute_running,
    grand_totals,
    order_transactions,
)
from bizdocs.services.org_profile_cache import OrgProfileCache, resolve_org_profile
from bizdocs.services.table_renderer import Cell, TableRenderer, TableSpec
from bizdocs.services.watermark import WatermarkRef, embed_watermark


logger = logging.getLogger("bizdocs.ledger_pdf")

LEDGER_COLUMNS = ("Date", "Type", "Trans.no", "Particulars", "Debit (₹)", "Credit (₹)", "Balance")
LEDGER_COLUMN_WIDTHS = (75, 55, 80, 210, 110, 110, 122)


def transaction_cells(t: LedgerTransaction, row_number: int, balance) -> List[str]:
    debit = t.transaction_type == TransactionType.DEBIT
    if t.description:
        particulars = t.description
    else:
        particulars = "To Sales" if debit else "By PAYMENT - Bank/Cash"
    return [
        format_date(t.transaction_date),
        "Sale" if debit else "Rcpt",
        t.reference_id[-8:] if t.reference_id else str(row_number),
        particulars,
        plain_amount(t.amount) if debit else "",
        "" if debit else plain_amount(t.amount),
        balance_label(balance),
    ]


def _draw_heading(layout: PageLayout, profile: OrgProfile, customer: Customer, period: DateRange) -> None:
    cx = layout.width / 2

    def centred(text: str, size: float, step: float, bold: bool = False) -> None:
        layout.ensure_space(step)
        layout.text(text, cx, layout.current_y, size=size, bold=bold, align="center", max_width=layout.content_width)
        layout.advance(step)

    centred(profile.name, 14, 20, bold=True)
    for line in profile.address_lines:
        centred(line, 9, 12)
    contact = "  ".join(p for p in (profile.phone, profile.email) if p)
    if contact:
        centred(contact, 9, 12)
    layout.advance(18)

    centred("LEDGER", 14, 25, bold=True)
    centred(customer.display_name.upper(), 12, 15, bold=True)
    for line in (customer.billing_address or "").split("\n"):
        if line.strip():
            centred(line.strip(), 9, 12)
    centred(f"{format_date(period.date_from)} - {format_date(period.date_to)}", 9, 30)


def _draw_table(
    layout: PageLayout,
    transactions: List[LedgerTransaction],
    ledger: RunningLedger,
    totals: LedgerGrandTotals,
    period: DateRange,
) -> int:
    table = TableRenderer(layout, TableSpec.from_widths(LEDGER_COLUMNS, LEDGER_COLUMN_WIDTHS))
    table.begin()

    opening = ledger.opening_balance
    table.draw_row(
        [
            format_date(period.date_from),
            "",
            "",
            "By Opening Balance",
            plain_amount(opening) if opening > 0 else "",
            plain_amount(-opening) if opening < 0 else "",
            balance_label(opening),
        ],
        0,
    )
    for i, (t, balance) in enumerate(zip(transactions, ledger.per_transaction), start=1):
        table.draw_row(transaction_cells(t, i, balance), i)

    table.draw_row(
        [
            Cell(f"Total as on {format_date(period.date_to)}", bold=True, span=4),
            plain_amount(totals.debit_before_closing),
            plain_amount(totals.credit_before_closing),
            "",
        ],
        0,
        fill=theme.SECONDARY,
        bold=True,
    )

    closing = plain_amount(totals.closing_amount)
    table.draw_row(
        [
            Cell("", span=3),
            "Debit Balance" if totals.closing_on_credit_side else "Credit Balance",
            "" if totals.closing_on_credit_side else closing,
            closing if totals.closing_on_credit_side else "",
            "",
        ],
        0,
        fill=theme.LIGHT_GRAY,
        bold=True,
    )
    table.draw_row(
        [
            Cell("", span=3),
            "Grand Total",
            plain_amount(totals.debit_side),
            plain_amount(totals.credit_side),
            "",
        ],
        0,
        fill=theme.BORDER,
        bold=True,
    )
    table.end()
    return table.rows_drawn


def make_footer(profile: OrgProfile, generated_at: datetime):
    def footer(pdf, index: int, total: int) -> None:
        pw = theme.PAGE_SIZE[0]
        draw_page_number(pdf, index, total, pw)
        branding = " | ".join(p for p in (profile.name, profile.phone) if p)
        draw_text(pdf, branding, 50, 25, size=8, color=theme.PRIMARY)
        draw_text(pdf, f"Generated: {format_date(generated_at)}", pw - 200, 25, size=8)

    return footer


def _opening_amount(value: Any) -> Decimal:
    try:
        amount = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise DocumentGenerationError(f"Invalid opening balance: {value!r}") from e
    if not amount.is_finite():
        raise DocumentGenerationError(f"Invalid opening balance: {value!r}")
    return amount


def render_ledger(
    customer: Any,
    transactions: Optional[Iterable[Any]],
    date_range: Any,
    opening_balance: Any = 0,
    watermark: Optional[WatermarkRef] = None,
    *,
    profile_cache: Optional[OrgProfileCache] = None,
    org_profile: Optional[Any] = None,
    asset_dir: str = ".",
    http_session: Optional[requests.Session] = None,
    fetch_timeout: float = 10.0,
    generated_at: Optional[datetime] = None,
) -> bytes:
    """
    Render a ledger statement to PDF bytes.

    Transactions are put in date order (creation time breaks same-day ties)
    before balances are folded. The caller's list is not modified. Raises
    DocumentGenerationError when a required payload is missing or the
    balances fail to reconcile.
    """
    if customer is None:
        raise DocumentGenerationError("Ledger customer is required")
    if transactions is None:
        raise DocumentGenerationError("Ledger transactions are required")
    if date_range is None:
        raise DocumentGenerationError("Ledger date range is required")

    customer = coerce(Customer, customer)
    period = coerce(DateRange, date_range)
    ordered = order_transactions(coerce(LedgerTransaction, t) for t in transactions)
    ledger = compute_running(_opening_amount(opening_balance), ordered)
    totals = grand_totals(ledger)

    override = coerce(OrgProfile, org_profile) if org_profile is not None else None
    profile = resolve_org_profile(override, profile_cache)
    generated_at = generated_at or datetime.now()

    buffer, pdf = new_document(footer=make_footer(profile, generated_at), title=f"Ledger {customer.display_name}")
    layout = PageLayout(pdf)
    handle = embed_watermark(watermark, asset_dir=asset_dir, session=http_session, timeout=fetch_timeout)
    if handle is not None:
        layout.add_page_decorator(handle.draw)

    layout.begin_page()
    _draw_heading(layout, profile, customer, period)
    rows = _draw_table(layout, ordered, ledger, totals, period)
    layout.finish()

    data = buffer.getvalue()
    logger.info(
        "document_rendered",
        extra={
            "kind": "ledger",
            "customer": customer.display_name,
            "rows": rows,
            "pages": layout.page_count,
            "byte_size": len(data),
            "closing_balance": str(ledger.closing_balance),
            "watermark": handle is not None,
        },
    )
    return data
