from datetime import date, datetime, timedelta

import pytest
from pydantic import ValidationError

from bizdocs.schemas import LedgerTransaction, OrgProfile
from bizdocs.services.errors import DocumentGenerationError
from bizdocs.services.ledger_pdf import render_ledger, transaction_cells
from bizdocs.services.org_profile_cache import OrgProfileCache
from conftest import pdf_pages


CUSTOMER = {"name": "Ravi Kumar", "company_name": "Kumar Builders", "billing_address": "Plot 4, Sector 18\nNoida"}
PERIOD = {"from": "2025-01-01", "to": "2025-01-31"}
EXAMPLE = [
    {"transaction_date": "2025-01-05", "transaction_type": "debit", "amount": "500"},
    {"transaction_date": "2025-01-10", "transaction_type": "credit", "amount": "200"},
    {"transaction_date": "2025-01-20", "transaction_type": "debit", "amount": "100", "reference_id": "ORD-2025-00001234"},
]


def _render(transactions=EXAMPLE, opening=0, customer=CUSTOMER, **kwargs):
    kwargs.setdefault("org_profile", OrgProfile(name="Acme Traders", phone="020-1234"))
    kwargs.setdefault("generated_at", datetime(2025, 2, 1, 8, 0))
    return render_ledger(customer, transactions, PERIOD, opening, **kwargs)


def test_example_ledger_statement():
    pages = pdf_pages(_render())
    assert len(pages) == 1
    text = pages[0]
    assert "LEDGER" in text
    assert "KUMAR BUILDERS" in text
    assert "01/01/2025 - 31/01/2025" in text
    assert "Debit (Rs.)" in text and "Credit (Rs.)" in text
    assert "By Opening Balance" in text
    assert "500.00 Dr" in text
    assert "300.00 Dr" in text
    assert "400.00 Dr" in text
    assert "Total as on 31/01/2025" in text
    assert "Debit Balance" in text
    assert "Grand Total" in text
    assert "00001234" in text
    assert "By PAYMENT - Bank/Cash" in text
    assert "Page 1 of 1" in text


def test_credit_closing_balance_row():
    txs = [{"transaction_date": "2025-01-03", "transaction_type": "credit", "amount": "750"}]
    text = pdf_pages(_render(txs, opening=250))[0]
    assert "500.00 Cr" in text
    assert "Credit Balance" in text


def test_transaction_cells_defaults():
    debit = LedgerTransaction(transaction_date=date(2025, 1, 2), transaction_type="debit", amount=10)
    credit = LedgerTransaction(
        transaction_date=date(2025, 1, 3), transaction_type="credit", amount=4, description="Cheque 221"
    )
    assert transaction_cells(debit, 1, 10) == ["02/01/2025", "Sale", "1", "To Sales", "10.00", "", "10.00 Dr"]
    assert transaction_cells(credit, 2, -4) == ["03/01/2025", "Rcpt", "2", "Cheque 221", "", "4.00", "4.00 Cr"]


def test_many_transactions_paginate_with_repeated_header():
    start = date(2025, 1, 1)
    txs = [
        {
            "transaction_date": (start + timedelta(days=i % 28)).isoformat(),
            "transaction_type": "debit" if i % 3 else "credit",
            "amount": "10.00",
        }
        for i in range(150)
    ]
    pages = pdf_pages(_render(txs))
    assert len(pages) >= 3
    for index, text in enumerate(pages, start=1):
        assert "Particulars" in text
        assert f"Page {index} of {len(pages)}" in text
    assert "Grand Total" in pages[-1]


def test_input_list_is_not_reordered_or_mutated():
    txs = list(reversed(EXAMPLE))
    snapshot = [dict(t) for t in txs]
    _render(txs)
    assert txs == snapshot


def test_out_of_order_input_is_folded_in_date_order():
    text = pdf_pages(_render(list(reversed(EXAMPLE))))[0]
    assert "300.00 Dr" in text
    assert "400.00 Dr" in text


def test_missing_transactions_is_fatal():
    with pytest.raises(DocumentGenerationError):
        render_ledger(CUSTOMER, None, PERIOD, 0)
    with pytest.raises(DocumentGenerationError):
        render_ledger(None, [], PERIOD, 0)


def test_negative_amount_never_reaches_the_fold():
    bad = [{"transaction_date": "2025-01-05", "transaction_type": "debit", "amount": "-5"}]
    with pytest.raises(ValidationError):
        _render(bad)


def test_empty_ledger_still_renders_totals():
    text = pdf_pages(_render([], opening=-120))[0]
    assert "120.00 Cr" in text
    assert "Grand Total" in text


def test_stale_profile_is_used_when_refresh_fails():
    calls = []

    def fetch():
        calls.append(1)
        if len(calls) > 1:
            raise RuntimeError("metadata service down")
        return OrgProfile(name="Cached Co")

    cache = OrgProfileCache(fetch, ttl=timedelta(0))
    cache.get()
    text = pdf_pages(_render(org_profile=None, profile_cache=cache))[0]
    assert "Cached Co" in text
    assert len(calls) == 2


def test_watermark_failure_keeps_page_count(png_bytes):
    txs = EXAMPLE * 40
    good = _render(txs, watermark=png_bytes)
    bad = _render(txs, watermark=b"garbage")
    assert len(pdf_pages(good)) == len(pdf_pages(bad))


@pytest.mark.parametrize("opening", ["abc", "NaN", "Infinity", [1, 2]])
def test_malformed_opening_balance_is_fatal(opening):
    with pytest.raises(DocumentGenerationError, match="opening balance"):
        _render(opening=opening)


def test_long_billing_address_flows_onto_next_page():
    address = "\n".join(f"Address line {i:03d}" for i in range(1, 121))
    pages = pdf_pages(_render(customer=dict(CUSTOMER, billing_address=address)))
    assert len(pages) >= 2
    assert "Address line 001" in pages[0]
    assert "Address line 120" not in pages[0]
    assert any("Address line 120" in text for text in pages[1:])
    assert "Grand Total" in pages[-1]
    assert f"Page 1 of {len(pages)}" in pages[0]
