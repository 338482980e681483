# dokon/data/models/review.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from dokon.data.database import Base


class ReviewModel(Base):
    __tablename__ = "reviews"

    id = Column(String, primary_key=True)
    product_id = Column(String, nullable=False, index=True)
    customer_name = Column(String, nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
