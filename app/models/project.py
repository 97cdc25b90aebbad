from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.base import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    billing_type = Column(String, nullable=False, default="hourly")
    hourly_rate = Column(Float, nullable=True)
    fixed_price = Column(Float, nullable=True)

    start_date = Column(Date, nullable=True)
    deadline = Column(Date, nullable=True)
    completed_date = Column(Date, nullable=True)

    status = Column(String, nullable=False, default="active")

    created_at = Column(DateTime, default=datetime.utcnow)

    client = relationship("Client")
