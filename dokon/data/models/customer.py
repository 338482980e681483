# dokon/data/models/customer.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, String, Text

from dokon.data.database import Base


class CustomerModel(Base):
    __tablename__ = "customers"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=False, unique=True)
    address = Column(Text, nullable=True)
    total_orders = Column(Integer, nullable=False, default=0)
    total_spent = Column(Float, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
