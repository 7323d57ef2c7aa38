# mailtrust/models/user.py
from sqlalchemy import Column, Integer, String
from mailtrust.db import Base


class UserRecord(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False)
    api_key = Column(String, nullable=False)
    api_calls_remaining = Column(Integer, nullable=False, default=10)
    plan = Column(String, nullable=False, default="free")
