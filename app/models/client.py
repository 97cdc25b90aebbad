from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text

from app.db.base import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    client_type = Column(String, nullable=False, default="individual")
    name = Column(String, nullable=False)
    company = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)

    tax_id = Column(String, nullable=True)
    currency = Column(String(3), nullable=False, default="INR")
    default_hourly_rate = Column(Float, nullable=True)

    status = Column(String, nullable=False, default="active")
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
