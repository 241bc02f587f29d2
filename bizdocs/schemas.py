"""
Domain payloads consumed by the document engine.

These mirror the rows the data store hands to callers. The engine never
fetches them itself; a caller resolves them and passes them in fully formed.
Validation here is the boundary check: anything that passes is safe to fold
into balances and draw.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, field_validator, model_validator


M = TypeVar("M", bound=BaseModel)


def coerce(model: Type[M], value: Any) -> M:
    """Accept either a model instance or its dict form."""
    if isinstance(value, model):
        return value
    return model.model_validate(value)


class TransactionType(str, Enum):
    """Sign effect of a ledger entry on the running balance."""
    DEBIT = "debit"
    CREDIT = "credit"


class Customer(BaseModel):
    """Counterparty on an invoice or ledger."""
    id: Optional[str] = None
    name: str = Field(..., min_length=1, description="Contact name")
    company_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    gstin: Optional[str] = None
    billing_address: Optional[str] = None
    shipping_address: Optional[str] = None
    country: Optional[str] = None

    @property
    def display_name(self) -> str:
        return (self.company_name or "").strip() or self.name


class Invoice(BaseModel):
    """An issued invoice. `amount` is the pre-tax subtotal."""
    id: Optional[str] = None
    order_id: Optional[str] = None
    invoice_number: str = Field(..., min_length=1)
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    amount: Decimal = Field(Decimal("0"), ge=0)
    tax: Decimal = Field(Decimal("0"), ge=0)
    status: Optional[str] = None

    @property
    def grand_total(self) -> Decimal:
        return self.amount + self.tax


class OrderItem(BaseModel):
    """One line of an order, already priced by the caller."""
    item_name: str = Field("Item", description="Display name of the item")
    quantity: Decimal = Field(Decimal("0"), ge=0)
    unit_price: Decimal = Field(Decimal("0"), ge=0)
    gst_percent: Decimal = Field(Decimal("0"), ge=0)
    tax_amount: Decimal = Field(Decimal("0"), ge=0)
    total_price: Decimal = Field(Decimal("0"), ge=0)
    hsn_code: Optional[str] = None

    @property
    def gross(self) -> Decimal:
        return self.unit_price * self.quantity


class LedgerTransaction(BaseModel):
    """
    A single ledger entry.

    `amount` is always non-negative; only `transaction_type` decides whether
    the entry raises or lowers the balance.
    """
    id: Optional[str] = None
    transaction_date: date
    transaction_type: TransactionType
    amount: Decimal = Field(..., ge=0, description="Non-negative amount; sign comes from the type")
    description: Optional[str] = None
    reference_id: Optional[str] = None
    reference_type: Optional[str] = None
    created_at: Optional[datetime] = Field(None, description="Secondary ordering key for same-day entries")

    @field_validator("transaction_type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class DateRange(BaseModel):
    """Inclusive reporting window of a ledger statement."""
    date_from: date = Field(..., alias="from")
    date_to: date = Field(..., alias="to")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def check_order(self):
        if self.date_to < self.date_from:
            raise ValueError("Date range ends before it starts")
        return self


class OrgProfile(BaseModel):
    """The issuing organization, as printed in document headers and footers."""
    name: str
    address_lines: List[str] = Field(default_factory=list)
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    gstin: Optional[str] = None
    state: Optional[str] = None
    bank_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    bank_ifsc: Optional[str] = None
    bank_branch: Optional[str] = None
    terms: Optional[str] = None
    logo_url: Optional[str] = None
    is_placeholder: bool = False


# ---------------------------------------------------------------------------
# Analytics report payloads
# ---------------------------------------------------------------------------


class TopCustomer(BaseModel):
    name: str
    total_spent: Decimal = Decimal("0")
    order_count: int = 0


class TopProduct(BaseModel):
    name: str
    quantity_sold: Decimal = Decimal("0")
    revenue: Decimal = Decimal("0")


class PaymentStatusCounts(BaseModel):
    paid: int = Field(0, ge=0)
    pending: int = Field(0, ge=0)
    overdue: int = Field(0, ge=0)

    @property
    def total(self) -> int:
        return self.paid + self.pending + self.overdue


class SalesSummary(BaseModel):
    """Headline sales figures for the reporting period."""
    total_sales: Decimal = Decimal("0")
    total_orders: int = 0
    average_order_value: Decimal = Decimal("0")
    top_customers: List[TopCustomer] = Field(default_factory=list)
    top_products: List[TopProduct] = Field(default_factory=list)
    payment_status: PaymentStatusCounts = Field(default_factory=PaymentStatusCounts)


class HealthMetrics(BaseModel):
    total_customers: int = 0
    total_orders: int = 0
    total_inventory_items: int = 0
    low_stock_items: int = 0
    out_of_stock_items: int = 0
    total_invoices: int = 0
    unpaid_invoices: int = 0
    total_revenue_this_month: Decimal = Decimal("0")
    customers_with_balance: Optional[int] = None


class TurnoverRow(BaseModel):
    item_id: Optional[str] = None
    item_name: str
    opening_stock: Decimal = Decimal("0")
    closing_stock: Decimal = Decimal("0")
    total_sold: Decimal = Decimal("0")
    turnover_ratio: Decimal = Decimal("0")
    days_of_stock: Decimal = Decimal("0")
    restock_date: Optional[date] = None


class AgingRow(BaseModel):
    customer_name: str
    days_0_30: Decimal = Decimal("0")
    days_31_60: Decimal = Decimal("0")
    days_61_90: Decimal = Decimal("0")
    days_over_90: Decimal = Decimal("0")
    current_balance: Decimal = Decimal("0")


class LedgerSummary(BaseModel):
    total_customers: int = 0
    customers_with_positive_balance: int = 0
    customers_with_negative_balance: int = 0
    customers_with_zero_balance: int = 0
    total_outstanding_receivables: Decimal = Decimal("0")
    total_outstanding_payables: Decimal = Decimal("0")
    net_position: Decimal = Decimal("0")
