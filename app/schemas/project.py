from datetime import date, datetime
from typing import Literal, Optional

from pydantic import Field, model_validator

from app.schemas.common import MAX_AMOUNT, CamelModel


BillingType = Literal["hourly", "fixed"]
ProjectStatus = Literal["active", "on_hold", "completed", "cancelled"]


class ProjectCreate(CamelModel):
    client_id: int
    title: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    billing_type: BillingType = "hourly"
    hourly_rate: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    fixed_price: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    start_date: Optional[date] = None
    deadline: Optional[date] = None
    status: ProjectStatus = "active"

    @model_validator(mode="after")
    def check_billing_fields(self):
        if self.billing_type == "hourly" and self.hourly_rate is None:
            raise ValueError("hourlyRate is required for hourly billing")
        if self.billing_type == "fixed" and self.fixed_price is None:
            raise ValueError("fixedPrice is required for fixed billing")
        return self


class ProjectUpdate(CamelModel):
    client_id: Optional[int] = None
    title: Optional[str] = Field(default=None, min_length=2, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    billing_type: Optional[BillingType] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    fixed_price: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    start_date: Optional[date] = None
    deadline: Optional[date] = None
    completed_date: Optional[date] = None
    status: Optional[ProjectStatus] = None


class ProjectResponse(CamelModel):
    id: int
    client_id: int
    title: str
    description: Optional[str] = None
    billing_type: str
    hourly_rate: Optional[float] = None
    fixed_price: Optional[float] = None
    start_date: Optional[date] = None
    deadline: Optional[date] = None
    completed_date: Optional[date] = None
    status: str
    created_at: Optional[datetime] = None


class ProjectSummary(CamelModel):
    project_id: int
    total_hours: float
    billable_hours: float
    unbilled_hours: float
    unbilled_amount: float
    invoiced_hours: float
