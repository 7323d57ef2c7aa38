# mailtrust/verifier/__init__.py

from .syntax_engine import (
    normalize_email,
    is_syntax_valid,
    split_email,
)

from .disposable import TempDomainRegistry, BUILTIN_TEMP_DOMAINS
from .patterns import match_temp_pattern, score_username
from .domain_age import estimate_age
from .dns_engine import MxChecker, MxCheck
from .provider_profiles import identify_provider
from .reputation import ReputationLedger
from .cache import VerificationCache, RedisVerificationCache
from .score_engine import ScoringEngine, apply_reputation_overlay

__all__ = [
    "normalize_email",
    "is_syntax_valid",
    "split_email",
    "TempDomainRegistry",
    "BUILTIN_TEMP_DOMAINS",
    "match_temp_pattern",
    "score_username",
    "estimate_age",
    "MxChecker",
    "MxCheck",
    "identify_provider",
    "ReputationLedger",
    "VerificationCache",
    "RedisVerificationCache",
    "ScoringEngine",
    "apply_reputation_overlay",
]
