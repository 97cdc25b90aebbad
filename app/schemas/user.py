from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from app.schemas.common import MAX_AMOUNT, CamelModel


class UserCreate(CamelModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    default_hourly_rate: Optional[float] = Field(default=None, ge=0, le=MAX_AMOUNT)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


class UserResponse(CamelModel):
    id: int
    full_name: str
    email: EmailStr
    currency: str
    default_hourly_rate: Optional[float] = None
    created_at: Optional[datetime] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
