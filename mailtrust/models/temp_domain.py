# mailtrust/models/temp_domain.py
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from mailtrust.db import Base


class TempDomainRecord(Base):
    __tablename__ = "temp_domains"

    id = Column(Integer, primary_key=True, index=True)
    # stored lowercased, so the unique index is case-insensitive in practice
    domain = Column(String, unique=True, index=True, nullable=False)
    source = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
