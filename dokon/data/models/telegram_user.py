# dokon/data/models/telegram_user.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from dokon.data.database import Base


class TelegramUserModel(Base):
    __tablename__ = "telegram_users"

    id = Column(String, primary_key=True)
    telegram_id = Column(String, nullable=False, unique=True)
    first_name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
