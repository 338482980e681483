# dokon/data/models/user.py
from sqlalchemy import Column, String

from dokon.data.database import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    username = Column(String, nullable=False, unique=True)
    password = Column(String, nullable=False)  # passlib hash
    role = Column(String, nullable=False, default="admin")
