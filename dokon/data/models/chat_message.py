# dokon/data/models/chat_message.py
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, String, Text

from dokon.data.database import Base


class ChatMessageModel(Base):
    __tablename__ = "chat_messages"

    id = Column(String, primary_key=True)
    customer_phone = Column(String, nullable=False, index=True)
    customer_name = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    # customer | admin
    sender_type = Column(String, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
