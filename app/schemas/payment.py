from datetime import date, datetime
from typing import Literal, Optional

from pydantic import Field

from app.schemas.common import MAX_AMOUNT, CamelModel


PaymentMethod = Literal[
    "bank_transfer",
    "upi",
    "cash",
    "credit_card",
    "debit_card",
    "cheque",
    "other",
]


class PaymentCreate(CamelModel):
    invoice_id: int
    amount: float = Field(..., gt=0, le=MAX_AMOUNT)
    payment_date: Optional[date] = None
    payment_method: PaymentMethod = "other"
    reference_number: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=500)


class PaymentResponse(CamelModel):
    id: int
    invoice_id: int
    amount: float
    payment_date: date
    payment_method: str
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class PaymentRecorded(CamelModel):
    payment: PaymentResponse
    invoice_status: str
    amount_paid: float
    amount_due: float
