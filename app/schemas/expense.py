import datetime as dt
from typing import Literal, Optional

from pydantic import Field

from app.schemas.common import MAX_AMOUNT, CamelModel


ExpenseCategory = Literal[
    "Software & Tools",
    "Hardware & Equipment",
    "Marketing & Advertising",
    "Office Supplies",
    "Travel & Transportation",
    "Meals & Entertainment",
    "Professional Services",
    "Utilities & Internet",
    "Training & Education",
    "Subscriptions",
    "Taxes & Fees",
    "Other",
]

ExpensePaymentMethod = Literal[
    "cash",
    "credit_card",
    "debit_card",
    "bank_transfer",
    "paypal",
    "other",
]


class ExpenseCreate(CamelModel):
    category: ExpenseCategory
    description: str = Field(..., min_length=1, max_length=1000)
    amount: float = Field(..., ge=0, le=MAX_AMOUNT)
    date: dt.date
    client_id: Optional[int] = None
    project_id: Optional[int] = None
    payment_method: ExpensePaymentMethod = "other"
    tax_deductible: bool = True
    notes: Optional[str] = Field(default=None, max_length=1000)


class ExpenseUpdate(CamelModel):
    category: Optional[ExpenseCategory] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    amount: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    date: Optional[dt.date] = None
    client_id: Optional[int] = None
    project_id: Optional[int] = None
    payment_method: Optional[ExpensePaymentMethod] = None
    tax_deductible: Optional[bool] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


class ExpenseResponse(CamelModel):
    id: int
    category: str
    description: str
    amount: float
    date: dt.date
    client_id: Optional[int] = None
    project_id: Optional[int] = None
    payment_method: str
    tax_deductible: bool
    notes: Optional[str] = None
    created_at: Optional[dt.datetime] = None
