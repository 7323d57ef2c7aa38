# mailtrust/verifier/score_engine.py
"""
Trust scoring for a single address.

The score starts at 100 and every signal subtracts (or adds) a fixed amount:

    known temp domain         -80
    fixed temp pattern        -40   (skips the username heuristic)
    username heuristic        -35 / -20
    no MX records             -30   (-20 when the lookup timed out or failed)
    domain age                -15 new, -5 recent
    legit provider            +10   (capped at 100)
    domain reported by users  -25, or +15 when verified legitimate

The result is clamped to [0, 100]; anything under the threshold (40) is
flagged as temporary. pattern_match names the dominant reason.
"""
import asyncio
import logging
from typing import Iterable, List, Optional, Sequence, Union

from ..errors import InputError
from ..schemas import EmailReputation, ReportType, VerificationFailure, VerificationResult
from .cache import DEFAULT_TTL_SECONDS
from .dns_engine import MxChecker
from .disposable import TempDomainRegistry
from .domain_age import age_penalty, estimate_age
from .patterns import DEFAULT_DOMAIN_RULES, TEMP_EMAIL_PATTERNS, DomainRule, TempPattern, match_temp_pattern, score_username
from .provider_profiles import is_legit_provider
from .reputation import ReputationLedger
from .syntax_engine import split_email

LOG = logging.getLogger("mailtrust.engine")

TEMP_EMAIL_THRESHOLD = 40

TEMP_DOMAIN_PENALTY = 80
PATTERN_PENALTY = 40
LEGIT_PROVIDER_BOOST = 10

# domain reputation folded into the engine's own score
REPORTED_MIN_REPORTS = 2
REPORTED_MIN_CONFIDENCE = 50
REPORTED_PENALTY = 25
VERIFIED_MIN_REPORTS = 4
VERIFIED_MIN_CONFIDENCE = 75
VERIFIED_BOOST = 15

# caller-side overlay thresholds (see apply_reputation_overlay)
OVERLAY_REPORTED_MIN_REPORTS = 3
OVERLAY_REPORTED_MIN_CONFIDENCE = 70
OVERLAY_REPORTED_PENALTY = 20
OVERLAY_SCORE_FLOOR = 10
OVERLAY_VERIFIED_MIN_REPORTS = 5
OVERLAY_VERIFIED_MIN_CONFIDENCE = 80
OVERLAY_VERIFIED_BOOST = 10

# quota cost of each operation, for callers that meter usage
VERIFY_COST = 1
BULK_VERIFY_COST = 10
MAX_BULK_EMAILS = 15

KNOWN_TEMP_LABEL = "Known temporary email domain"
LEGIT_PROVIDER_LABEL = "Known legitimate email provider"
VERIFIED_LABEL = "Verified as legitimate by multiple users"
NO_PATTERN_LABEL = "No patterns detected"
BULK_ITEM_ERROR = "Failed to verify this email"

BulkItem = Union[VerificationResult, VerificationFailure]


def _append(label: str, note: str) -> str:
    return f"{label}; {note}" if label else note


def _clamp(score: int) -> int:
    return max(0, min(100, score))


class ScoringEngine:
    def __init__(
        self,
        registry: TempDomainRegistry,
        ledger: ReputationLedger,
        cache=None,
        mx_checker: Optional[MxChecker] = None,
        threshold: int = TEMP_EMAIL_THRESHOLD,
        cache_ttl: float = DEFAULT_TTL_SECONDS,
        patterns: Sequence[TempPattern] = TEMP_EMAIL_PATTERNS,
        domain_rules: Iterable[DomainRule] = DEFAULT_DOMAIN_RULES,
    ):
        self.registry = registry
        self.ledger = ledger
        self.cache = cache
        self.mx_checker = mx_checker or MxChecker()
        self.threshold = threshold
        self.cache_ttl = cache_ttl
        self.patterns = list(patterns)
        self.domain_rules = list(domain_rules)

    # ---------------------------------------------------------
    # cache access: failures behave as a miss
    # ---------------------------------------------------------
    async def _cache_get(self, key: str) -> Optional[VerificationResult]:
        if self.cache is None:
            return None
        try:
            return await self.cache.get(key)
        except Exception as e:
            LOG.warning("Cache read failed for %s: %s", key, e)
            return None

    async def _cache_set(self, key: str, value: VerificationResult) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(key, value, self.cache_ttl)
        except Exception as e:
            LOG.warning("Cache write failed for %s: %s", key, e)

    async def _is_temp_domain(self, domain: str) -> bool:
        try:
            return await self.registry.is_temp_domain(domain)
        except Exception as e:
            LOG.warning("Temp-domain lookup failed for %s: %s", domain, e)
            return False

    async def _domain_reputation(self, domain: str) -> Optional[EmailReputation]:
        try:
            return await self.ledger.get_by_domain(domain)
        except Exception as e:
            LOG.warning("Reputation lookup failed for %s: %s", domain, e)
            return None

    # ---------------------------------------------------------
    # pipeline
    # ---------------------------------------------------------
    async def verify(self, email: str) -> VerificationResult:
        username, domain = split_email(email)

        cache_key = f"verify:{email}"
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return cached

        trust_score = 100
        pattern_match = ""

        if await self._is_temp_domain(domain):
            trust_score -= TEMP_DOMAIN_PENALTY
            pattern_match = KNOWN_TEMP_LABEL

        matched = match_temp_pattern(f"{username}@{domain}", self.patterns)
        if matched is not None:
            trust_score -= PATTERN_PENALTY
            # keep the registry verdict visible when both fired
            pattern_match = _append(KNOWN_TEMP_LABEL, matched.label) if pattern_match else matched.label
        else:
            scored = score_username(username, domain, self.domain_rules)
            trust_score -= scored.penalty
            if scored.label and not pattern_match:
                pattern_match = scored.label

        mx = await self.mx_checker.check(domain)
        trust_score -= mx.penalty

        domain_age = estimate_age(domain)
        trust_score -= age_penalty(domain_age)

        if is_legit_provider(domain):
            trust_score = min(100, trust_score + LEGIT_PROVIDER_BOOST)
            if not pattern_match:
                pattern_match = LEGIT_PROVIDER_LABEL

        reputation = await self._domain_reputation(domain)
        if reputation is not None:
            if (
                reputation.report_type != ReportType.legitimate
                and reputation.total_reports > REPORTED_MIN_REPORTS
                and reputation.confidence_score > REPORTED_MIN_CONFIDENCE
            ):
                trust_score -= REPORTED_PENALTY
                pattern_match = _append(
                    pattern_match, f'Reported by multiple users as "{reputation.report_type.value}"'
                )
            if (
                reputation.report_type == ReportType.legitimate
                and reputation.total_reports > VERIFIED_MIN_REPORTS
                and reputation.confidence_score > VERIFIED_MIN_CONFIDENCE
            ):
                trust_score = min(100, trust_score + VERIFIED_BOOST)
                pattern_match = _append(pattern_match, VERIFIED_LABEL)

        trust_score = _clamp(trust_score)
        result = VerificationResult(
            email=email,
            is_temp_email=trust_score < self.threshold,
            trust_score=trust_score,
            domain_age=domain_age,
            has_mx_records=mx.has_mx,
            pattern_match=pattern_match or NO_PATTERN_LABEL,
        )
        LOG.debug("Scored %s -> %d (%s)", email, trust_score, result.pattern_match)

        await self._cache_set(cache_key, result)
        return result

    def verify_sync(self, email: str) -> VerificationResult:
        """Blocking wrapper for callers without a running event loop."""
        return asyncio.run(self.verify(email))

    async def verify_with_reputation(self, email: str) -> VerificationResult:
        """verify() followed by the per-address reputation overlay."""
        result = await self.verify(email)
        try:
            reputation = await self.ledger.get_reputation(email)
        except Exception as e:
            LOG.warning("Reputation lookup failed for %s: %s", email, e)
            return result
        return apply_reputation_overlay(result, reputation)

    # ---------------------------------------------------------
    # bulk
    # ---------------------------------------------------------
    async def _verify_item(self, email: str) -> BulkItem:
        try:
            return await self.verify(email)
        except InputError as e:
            return VerificationFailure(email=str(email), error=e.message)
        except Exception:
            LOG.exception("Error verifying email in bulk: %s", email)
            return VerificationFailure(email=str(email), error=BULK_ITEM_ERROR)

    async def verify_bulk(self, emails: Iterable[str]) -> List[BulkItem]:
        """
        Verify addresses concurrently. The output lines up with the input;
        a failing item carries a VerificationFailure instead of aborting the batch.
        """
        tasks = [asyncio.ensure_future(self._verify_item(e)) for e in emails]
        if not tasks:
            return []
        return list(await asyncio.gather(*tasks))


def apply_reputation_overlay(
    result: VerificationResult, reputation: Optional[EmailReputation]
) -> VerificationResult:
    """
    Caller-side adjustment using reputation for the exact address (or its
    domain). Strong negative consensus forces the temporary verdict; strong
    legitimate consensus adds a small boost. Returns a new result and leaves
    the (possibly cached) input untouched.
    """
    if reputation is None:
        return result

    trust_score = result.trust_score
    is_temp = result.is_temp_email

    if (
        reputation.report_type != ReportType.legitimate
        and reputation.total_reports > OVERLAY_REPORTED_MIN_REPORTS
        and reputation.confidence_score > OVERLAY_REPORTED_MIN_CONFIDENCE
    ):
        trust_score = max(OVERLAY_SCORE_FLOOR, trust_score - OVERLAY_REPORTED_PENALTY)
        is_temp = True

    if (
        reputation.report_type == ReportType.legitimate
        and reputation.total_reports > OVERLAY_VERIFIED_MIN_REPORTS
        and reputation.confidence_score > OVERLAY_VERIFIED_MIN_CONFIDENCE
    ):
        trust_score = min(100, trust_score + OVERLAY_VERIFIED_BOOST)

    if trust_score == result.trust_score and is_temp == result.is_temp_email:
        return result
    return result.model_copy(update={"trust_score": trust_score, "is_temp_email": is_temp})
