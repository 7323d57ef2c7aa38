from .temp_domain import TempDomainRecord
from .verification import VerificationRecord
from .email_reputation import EmailReputationRecord
from .user import UserRecord

__all__ = [
    "TempDomainRecord",
    "VerificationRecord",
    "EmailReputationRecord",
    "UserRecord",
]
