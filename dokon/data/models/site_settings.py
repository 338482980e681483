# dokon/data/models/site_settings.py
from sqlalchemy import Column, Float, String, Text

from dokon.data.database import Base


class SiteSettingsModel(Base):
    __tablename__ = "site_settings"

    id = Column(String, primary_key=True, default="default")
    logo_url = Column(Text, nullable=True)
    hero_image_url = Column(Text, nullable=True)
    site_name = Column(String, nullable=False)
    primary_color = Column(String, nullable=True)
    delivery_price = Column(Float, nullable=False)
    free_delivery_threshold = Column(Float, nullable=True)
    telegram_bot_token = Column(String, nullable=True)
    telegram_group_id = Column(String, nullable=True)
