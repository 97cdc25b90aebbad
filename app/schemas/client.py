from datetime import datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field

from app.schemas.common import MAX_AMOUNT, CamelModel


ClientStatus = Literal["active", "archived"]
ClientType = Literal["individual", "company"]


class ClientCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    client_type: ClientType = "individual"
    company: Optional[str] = Field(default=None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = Field(default=None, max_length=500)
    tax_id: Optional[str] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    default_hourly_rate: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    status: ClientStatus = "active"
    notes: Optional[str] = Field(default=None, max_length=1000)


class ClientUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    client_type: Optional[ClientType] = None
    company: Optional[str] = Field(default=None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = Field(default=None, max_length=500)
    tax_id: Optional[str] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    default_hourly_rate: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    status: Optional[ClientStatus] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


class ClientResponse(CamelModel):
    id: int
    name: str
    client_type: str
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    tax_id: Optional[str] = None
    currency: str
    default_hourly_rate: Optional[float] = None
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
