#!/usr/bin/env python3
"""
Render one invoice, one ledger statement and one analytics report from
built-in sample data.
Usage: python scripts/render_sample_documents.py <out_dir> [watermark]
"""

import sys
from datetime import date, datetime
from pathlib import Path

from bizdocs.schemas import OrgProfile
from bizdocs.services.invoice_pdf import render_invoice
from bizdocs.services.ledger_pdf import render_ledger
from bizdocs.services.report_pdf import render_report

SAMPLE_PROFILE = OrgProfile(
    name="Sharma Hardware & Sanitary",
    address_lines=["12 Station Road", "Karol Bagh", "New Delhi 110005"],
    phone="+91 98100 00000",
    email="accounts@sharmahardware.example",
    gstin="07ABCDE1234F1Z5",
    state="Delhi",
    bank_name="State Bank of India",
    bank_account_number="00000012345678",
    bank_ifsc="SBIN0000001",
    bank_branch="Karol Bagh",
)

SAMPLE_CUSTOMER = {
    "id": "cust-0001",
    "name": "Ravi Kumar",
    "company_name": "Kumar Builders",
    "phone": "+91 99990 11111",
    "email": "ravi@kumarbuilders.example",
    "billing_address": "Plot 4, Sector 18\nNoida 201301",
}

SAMPLE_INVOICE = {
    "invoice_number": "INV-2025-00042",
    "issue_date": "2025-03-14",
    "due_date": "2025-03-28",
    "amount": "12500.00",
    "tax": "2250.00",
}

SAMPLE_ITEMS = [
    {"item_name": "PVC Pipe 4in (6m)", "quantity": 20, "unit_price": "350.00", "gst_percent": 18,
     "tax_amount": "1260.00", "total_price": "8260.00", "hsn_code": "3917"},
    {"item_name": "Ball Valve 1in", "quantity": 10, "unit_price": "550.00", "gst_percent": 18,
     "tax_amount": "990.00", "total_price": "6490.00", "hsn_code": "8481"},
]

SAMPLE_TRANSACTIONS = [
    {"transaction_date": "2025-03-01", "transaction_type": "debit", "amount": "8260.00",
     "reference_id": "ORD-2025-000311", "description": "To Sales"},
    {"transaction_date": "2025-03-05", "transaction_type": "credit", "amount": "5000.00",
     "reference_id": "RCPT-000091"},
    {"transaction_date": "2025-03-14", "transaction_type": "debit", "amount": "14750.00",
     "reference_id": "INV-2025-00042"},
]

SAMPLE_SALES = {
    "total_sales": "184500.00",
    "total_orders": 42,
    "average_order_value": "4392.86",
    "payment_status": {"paid": 30, "pending": 9, "overdue": 3},
    "top_customers": [
        {"name": "Kumar Builders", "total_spent": "48210.00", "order_count": 7},
        {"name": "Gupta Interiors", "total_spent": "31200.00", "order_count": 5},
    ],
    "top_products": [
        {"name": "PVC Pipe 4in (6m)", "quantity_sold": 180, "revenue": "63000.00"},
        {"name": "Ball Valve 1in", "quantity_sold": 64, "revenue": "35200.00"},
    ],
}

SAMPLE_TURNOVER = [
    {"item_name": "PVC Pipe 4in (6m)", "opening_stock": 200, "closing_stock": 20, "total_sold": 180,
     "turnover_ratio": "1.64", "days_of_stock": "3.3", "restock_date": "2025-02-10"},
    {"item_name": "Ball Valve 1in", "opening_stock": 100, "closing_stock": 36, "total_sold": 64,
     "turnover_ratio": "0.94", "days_of_stock": "16.9", "restock_date": "2025-01-22"},
    {"item_name": "Teflon Tape", "opening_stock": 50, "closing_stock": 48, "total_sold": 2,
     "turnover_ratio": "0.04", "days_of_stock": "720.0"},
]

SAMPLE_AGING = [
    {"customer_name": "Kumar Builders", "days_0_30": "17010.00", "days_31_60": "0", "days_61_90": "0",
     "days_over_90": "0", "current_balance": "17010.00"},
    {"customer_name": "Gupta Interiors", "days_0_30": "0", "days_31_60": "4200.00", "days_61_90": "0",
     "days_over_90": "1800.00", "current_balance": "6000.00"},
]


def render_all(out_dir, watermark=None):
    """Write the three sample PDFs into `out_dir` and return their paths."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    generated_at = datetime(2025, 3, 31, 10, 0, 0)

    documents = {
        "sample-invoice.pdf": render_invoice(
            SAMPLE_INVOICE, SAMPLE_CUSTOMER, SAMPLE_ITEMS, SAMPLE_PROFILE,
            watermark=watermark, generated_at=generated_at,
        ),
        "sample-ledger.pdf": render_ledger(
            SAMPLE_CUSTOMER, SAMPLE_TRANSACTIONS, {"from": date(2025, 3, 1), "to": date(2025, 3, 31)}, 0,
            watermark, org_profile=SAMPLE_PROFILE, generated_at=generated_at,
        ),
        "sample-report.pdf": render_report(
            SAMPLE_SALES,
            {"total_customers": 58, "total_orders": 42, "low_stock_items": 4, "out_of_stock_items": 1},
            SAMPLE_TURNOVER,
            SAMPLE_AGING,
            {"total_outstanding_receivables": "23010.00", "total_outstanding_payables": "0",
             "net_position": "23010.00", "customers_with_positive_balance": 2},
            "monthly",
            watermark,
            org_profile=SAMPLE_PROFILE,
            generated_at=generated_at,
        ),
    }

    paths = []
    for name, data in documents.items():
        path = out / name
        path.write_bytes(data)
        paths.append(path)
    return paths


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/render_sample_documents.py <out_dir> [watermark]")
        sys.exit(1)

    watermark = sys.argv[2] if len(sys.argv) > 2 else None
    for path in render_all(sys.argv[1], watermark):
        print(f"✓ {path} ({path.stat().st_size} bytes)")
