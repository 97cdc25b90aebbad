from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import Field

from app.schemas.common import MAX_AMOUNT, CamelModel


LateFeeType = Literal["percentage", "fixed"]
InvoiceStatus = Literal["unpaid", "paid", "overdue"]


class InvoiceItemIn(CamelModel):
    description: str = Field(..., min_length=1, max_length=500)
    quantity: float = Field(..., gt=0, le=MAX_AMOUNT)
    rate: float = Field(..., ge=0, le=MAX_AMOUNT)
    time_log_id: Optional[int] = None


class InvoiceCreate(CamelModel):
    client_id: int
    project_id: Optional[int] = None
    invoice_number: Optional[str] = Field(default=None, min_length=1, max_length=50)
    items: Optional[List[InvoiceItemIn]] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    tax_rate: Optional[float] = Field(default=None, ge=0, le=100)
    discount_amount: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    late_fee_rate: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    late_fee_type: Optional[LateFeeType] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


class InvoiceUpdate(CamelModel):
    items: Optional[List[InvoiceItemIn]] = Field(default=None, min_length=1)
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    tax_rate: Optional[float] = Field(default=None, ge=0, le=100)
    discount_amount: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    late_fee_rate: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    late_fee_type: Optional[LateFeeType] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


class InvoiceItemResponse(CamelModel):
    id: int
    description: str
    quantity: float
    rate: float
    amount: float
    time_log_id: Optional[int] = None


class InvoiceResponse(CamelModel):
    id: int
    invoice_number: str
    client_id: int
    project_id: Optional[int] = None
    issue_date: date
    due_date: date
    items: List[InvoiceItemResponse]
    subtotal: float
    tax_rate: float
    tax_amount: float
    discount_amount: float
    late_fee_rate: float
    late_fee_type: LateFeeType
    total_amount: float
    amount_paid: float
    amount_due: float
    currency: str
    status: Literal["unpaid", "paid"]
    effective_status: InvoiceStatus
    late_fee: float
    paid_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class LateFeeResponse(CamelModel):
    invoice_id: int
    as_of: date
    due_date: date
    days_late: int
    late_fee_type: LateFeeType
    late_fee_rate: float
    late_fee: float
    total_with_late_fee: float


class InvoiceStats(CamelModel):
    total: int = 0
    unpaid: int = 0
    paid: int = 0
    overdue: int = 0
    total_billed: float = 0
    total_paid: float = 0
    total_outstanding: float = 0
