# dokon/data/models/category.py
from sqlalchemy import Column, Float, Integer, String

from dokon.data.database import Base


class CategoryModel(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    icon = Column(String, nullable=True)
    parent_id = Column(String, nullable=True)
    order = Column(Integer, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
