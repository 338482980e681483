# dokon/data/models/promo_code.py
from sqlalchemy import Boolean, Column, Integer, String

from dokon.data.database import Base


class PromoCodeModel(Base):
    __tablename__ = "promo_codes"

    id = Column(String, primary_key=True)
    code = Column(String, nullable=False, unique=True)
    discount_percent = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)
