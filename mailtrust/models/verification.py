# mailtrust/models/verification.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from mailtrust.db import Base


class VerificationRecord(Base):
    __tablename__ = "verification_history"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, index=True, nullable=False)
    is_temp_email = Column(Boolean, nullable=False)
    trust_score = Column(Integer, nullable=False)
    domain_age = Column(String, nullable=True)
    has_mx_records = Column(Boolean, nullable=True)
    pattern_match = Column(String, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
