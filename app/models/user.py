from datetime import datetime

from sqlalchemy import Column, DateTime, Float, Integer, String

from app.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)

    currency = Column(String(3), nullable=False, default="INR")
    default_hourly_rate = Column(Float, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
