import datetime as dt
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel


class TimeLogCreate(CamelModel):
    project_id: int
    date: dt.date
    hours: float = Field(..., ge=0.1, le=24)
    description: str = Field(..., min_length=1, max_length=1000)
    notes: Optional[str] = Field(default=None, max_length=1000)
    billable: bool = True


class TimeLogUpdate(CamelModel):
    project_id: Optional[int] = None
    date: Optional[dt.date] = None
    hours: Optional[float] = Field(default=None, ge=0.1, le=24)
    description: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    notes: Optional[str] = Field(default=None, max_length=1000)
    billable: Optional[bool] = None


class TimeLogResponse(CamelModel):
    id: int
    project_id: int
    date: dt.date
    hours: float
    description: str
    notes: Optional[str] = None
    billable: bool
    invoiced: bool
    invoice_id: Optional[int] = None
    created_at: Optional[dt.datetime] = None
