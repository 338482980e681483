# dokon/data/models/order.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, String, Text

from dokon.data.database import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True)
    order_number = Column(String, nullable=False, unique=True)

    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False, index=True)
    customer_address = Column(Text, nullable=False, default="")
    customer_telegram_id = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    delivery_type = Column(String, nullable=False)  # courier, pickup
    payment_type = Column(String, nullable=False)  # cash, card
    status = Column(String, nullable=False, default="new")

    subtotal = Column(Float, nullable=False)
    delivery_price = Column(Float, nullable=False, default=0)
    discount = Column(Float, nullable=False, default=0)
    total = Column(Float, nullable=False)
    promo_code = Column(String, nullable=True)

    # JSON array of line item snapshots
    items = Column(Text, nullable=False, default="[]")
    category_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
