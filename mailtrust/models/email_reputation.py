# mailtrust/models/email_reputation.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, UniqueConstraint
from mailtrust.db import Base


class EmailReputationRecord(Base):
    __tablename__ = "email_reputations"
    __table_args__ = (
        UniqueConstraint("email", "is_full_email", name="uq_email_reputations_target"),
    )

    id = Column(Integer, primary_key=True, index=True)
    # full address or bare domain
    email = Column(String, index=True, nullable=False)
    is_full_email = Column(Boolean, nullable=False)
    report_type = Column(String, nullable=False)
    report_count = Column(Integer, nullable=False, default=1)
    total_reports = Column(Integer, nullable=False, default=1)
    confidence_score = Column(Integer, nullable=False, default=0)
    first_reported_at = Column(DateTime(timezone=True), nullable=False)
    last_reported_at = Column(DateTime(timezone=True), nullable=False)

    # "metadata" is reserved on declarative classes
    meta = Column("metadata", String, nullable=True)
