# dokon/data/models/courier_transaction.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, String, Text

from dokon.data.database import Base


class CourierTransactionModel(Base):
    __tablename__ = "courier_transactions"

    id = Column(String, primary_key=True)
    courier_id = Column(String, nullable=False, index=True)
    amount = Column(Float, nullable=False)  # signed
    type = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
