# dokon/data/models/courier.py
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, String

from dokon.data.database import Base


class CourierModel(Base):
    __tablename__ = "couriers"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    telegram_id = Column(String, nullable=False, unique=True)
    card_number = Column(String, nullable=True, index=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    category_id = Column(String, nullable=True)
    balance = Column(Float, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
