"""
API request/response schemas for the document endpoints.

These are separate from `bizdocs/schemas.py`, which defines the domain payloads
the engine renders.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from bizdocs.schemas import (
    AgingRow,
    Customer,
    DateRange,
    HealthMetrics,
    Invoice,
    LedgerSummary,
    LedgerTransaction,
    OrderItem,
    OrgProfile,
    SalesSummary,
    TurnoverRow,
)


class InvoiceDocumentRequest(BaseModel):
    invoice: Invoice
    customer: Optional[Customer] = None
    order_items: List[OrderItem] = Field(default_factory=list)
    org_profile: Optional[OrgProfile] = Field(None, description="Overrides the cached organization profile")
    watermark: Optional[str] = Field(None, description="Bundled asset name, relative asset path or http(s) URL on an allowed host")


class LedgerDocumentRequest(BaseModel):
    customer: Customer
    transactions: List[LedgerTransaction]
    date_range: DateRange
    opening_balance: Decimal = Decimal("0")
    watermark: Optional[str] = None


class ReportDocumentRequest(BaseModel):
    sales_summary: SalesSummary
    health_metrics: Optional[HealthMetrics] = None
    turnover_rows: List[TurnoverRow] = Field(default_factory=list)
    aging_rows: List[AgingRow] = Field(default_factory=list)
    ledger_summary: Optional[LedgerSummary] = None
    period: str = Field("monthly", min_length=1, max_length=20)
    watermark: Optional[str] = None


class StoredDocumentResponse(BaseModel):
    artifact_id: int
    kind: str
    subject_ref: Optional[str]
    storage_path: str
    public_url: Optional[str]
    byte_size: int


class OrgProfileResponse(BaseModel):
    profile: OrgProfile
    cache_state: str
    fetched_at: Optional[str] = None


class ErrorResponse(BaseModel):
    error_code: str
    message: str
