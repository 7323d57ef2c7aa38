# mailtrust/schemas.py
"""
Row and result shapes shared by every storage backend and the HTTP layer.

Python attributes are snake_case; the external representation (JSON, any
document store) uses the camelCase aliases so field names stay stable across
a backend swap.
"""
import enum
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class TempDomainSource(str, enum.Enum):
    builtin = "builtin"
    user = "user"


class ReportType(str, enum.Enum):
    legitimate = "legitimate"
    temporary = "temporary"
    suspicious = "suspicious"
    phishing = "phishing"
    spam = "spam"


class Plan(str, enum.Enum):
    free = "free"
    premium = "premium"
    enterprise = "enterprise"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class TempDomain(CamelModel):
    id: int
    domain: str
    source: TempDomainSource
    created_at: datetime


class Verification(CamelModel):
    id: int
    email: str
    is_temp_email: bool
    trust_score: int = Field(ge=0, le=100)
    domain_age: str
    has_mx_records: bool
    pattern_match: str
    user_id: Optional[int] = None
    created_at: datetime


class EmailReputation(CamelModel):
    id: Optional[int] = None
    email: str
    is_full_email: bool
    report_type: ReportType
    report_count: int = 1
    total_reports: int = 1
    confidence_score: int = Field(default=0, ge=0, le=100)
    first_reported_at: datetime
    last_reported_at: datetime
    metadata: Optional[str] = None


class User(CamelModel):
    id: int
    username: str
    api_key: str
    api_calls_remaining: int
    plan: Plan = Plan.free


class VerificationResult(CamelModel):
    model_config = ConfigDict(frozen=True)

    email: str
    is_temp_email: bool
    trust_score: int = Field(ge=0, le=100)
    domain_age: str
    has_mx_records: bool
    pattern_match: str


class VerificationFailure(CamelModel):
    email: str
    error: str


class Page(CamelModel, Generic[T]):
    items: List[T]
    total: int
