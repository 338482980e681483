# dokon/data/models/product.py
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text

from dokon.data.database import Base, StringList


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    old_price = Column(Float, nullable=True)
    category_id = Column(String, nullable=False, index=True)
    brand = Column(String, nullable=True)
    images = Column(StringList, nullable=False)
    colors = Column(StringList, nullable=True)
    sizes = Column(StringList, nullable=True)
    containers = Column(StringList, nullable=True)
    stock = Column(Integer, nullable=False, default=0)
    rating = Column(Float, nullable=False, default=0)
    review_count = Column(Integer, nullable=False, default=0)
    is_popular = Column(Boolean, nullable=False, default=False)
    is_new = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
