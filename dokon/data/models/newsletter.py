# dokon/data/models/newsletter.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from dokon.data.database import Base


class NewsletterModel(Base):
    __tablename__ = "newsletters"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    image_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
