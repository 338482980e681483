# dokon/data/models/advertisement.py
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, String, Text

from dokon.data.database import Base


class AdvertisementModel(Base):
    __tablename__ = "advertisements"

    id = Column(String, primary_key=True)
    business_name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(Text, nullable=False)
    contact_phone = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
