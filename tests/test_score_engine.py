from datetime import datetime, timezone

import pytest

from mailtrust.errors import InputError
from mailtrust.schemas import EmailReputation, ReportType, VerificationFailure, VerificationResult
from mailtrust.storage import InMemoryStore
from mailtrust.verifier import ReputationLedger, ScoringEngine, TempDomainRegistry
from mailtrust.verifier.dns_engine import MxCheck, MxChecker
from mailtrust.verifier.domain_age import age_penalty, estimate_age
from mailtrust.verifier.patterns import SUSPICIOUS_USERNAME_LABEL
from mailtrust.verifier.score_engine import (
    BULK_ITEM_ERROR,
    KNOWN_TEMP_LABEL,
    LEGIT_PROVIDER_LABEL,
    NO_PATTERN_LABEL,
    VERIFIED_LABEL,
    apply_reputation_overlay,
)

from conftest import HANG, FakeResolver


def _penalty(domain):
    return age_penalty(estimate_age(domain))


async def test_known_temp_domain(engine):
    result = await engine.verify("user123@mailinator.com")
    assert result.is_temp_email
    assert result.trust_score < 20
    assert result.has_mx_records
    assert KNOWN_TEMP_LABEL in result.pattern_match
    assert "mailinator" in result.pattern_match


async def test_legit_provider(engine):
    result = await engine.verify("someone@gmail.com")
    assert not result.is_temp_email
    assert result.trust_score == min(100, 100 - _penalty("gmail.com") + 10)
    assert result.trust_score >= 90
    assert result.pattern_match == LEGIT_PROVIDER_LABEL


async def test_ordinary_address(engine):
    result = await engine.verify("john@example.org")
    assert result.trust_score == 100 - _penalty("example.org")
    assert result.pattern_match == NO_PATTERN_LABEL
    assert result.domain_age == estimate_age("example.org")


async def test_result_keeps_input_email(engine):
    result = await engine.verify("John@Example.org")
    assert result.email == "John@Example.org"


async def test_cached_result_is_reused(engine, resolver):
    first = await engine.verify("someone@gmail.com")
    second = await engine.verify("someone@gmail.com")
    assert first == second
    assert len(resolver.calls) == 1


async def test_cache_expiry_rescores(engine, resolver, clock):
    await engine.verify("someone@gmail.com")
    clock.advance(15 * 60 + 1)
    await engine.verify("someone@gmail.com")
    assert len(resolver.calls) == 2


@pytest.mark.parametrize("email", ["", "no-at-sign", "@example.com", "user@", "a@b@c.com"])
async def test_malformed_address(engine, email):
    with pytest.raises(InputError):
        await engine.verify(email)


async def test_missing_mx_records(engine, resolver):
    resolver.answers["nomx.example"] = []
    result = await engine.verify("john@nomx.example")
    assert not result.has_mx_records
    assert result.trust_score == 100 - 30 - _penalty("nomx.example")


async def test_mx_timeout_is_a_soft_failure(engine, resolver):
    resolver.answers["slow.example"] = HANG
    result = await engine.verify("john@slow.example")
    assert not result.has_mx_records
    assert result.trust_score == 100 - 20 - _penalty("slow.example")


async def test_suspicious_username(engine):
    result = await engine.verify("jonathan.99x@example.com")
    assert result.trust_score == 100 - 20 - _penalty("example.com")
    assert result.pattern_match == SUSPICIOUS_USERNAME_LABEL


async def test_registry_label_survives_username_heuristic(engine, registry):
    await registry.add("quickbox.io")
    result = await engine.verify("jonathan.99x@quickbox.io")
    assert result.is_temp_email
    assert result.trust_score == 0
    assert result.pattern_match == KNOWN_TEMP_LABEL


async def test_reported_domain_penalty(engine, ledger):
    for _ in range(3):
        await ledger.report("shady.example", "spam")
    result = await engine.verify("john@shady.example")
    assert result.trust_score == 100 - 25 - _penalty("shady.example")
    assert result.pattern_match == 'Reported by multiple users as "spam"'


async def test_too_few_reports_do_nothing(engine, ledger):
    for _ in range(2):
        await ledger.report("shady.example", "spam")
    result = await engine.verify("john@shady.example")
    assert result.trust_score == 100 - _penalty("shady.example")


async def test_verified_domain_boost(engine, ledger, resolver):
    resolver.answers["trusted.example"] = []
    for _ in range(5):
        await ledger.report("trusted.example", "legitimate")
    result = await engine.verify("john@trusted.example")
    assert result.trust_score == 100 - 30 - _penalty("trusted.example") + 15
    assert result.pattern_match == VERIFIED_LABEL


async def test_scores_stay_in_bounds(engine, resolver):
    resolver.answers["temp-mail.org"] = []
    result = await engine.verify("tmp12345@temp-mail.org")
    assert result.trust_score == 0
    assert result.is_temp_email


class _BrokenCache:
    async def get(self, key):
        raise ConnectionError("cache down")

    async def set(self, key, value, ttl=None):
        raise ConnectionError("cache down")


async def test_cache_failure_does_not_fail_verification(registry, ledger, mx_checker):
    engine = ScoringEngine(registry, ledger, cache=_BrokenCache(), mx_checker=mx_checker)
    result = await engine.verify("someone@gmail.com")
    assert result.trust_score >= 90


async def test_bulk_keeps_order_and_isolates_bad_input(engine):
    results = await engine.verify_bulk(["someone@gmail.com", "not-an-email", "user123@mailinator.com"])
    assert len(results) == 3
    assert isinstance(results[0], VerificationResult)
    assert isinstance(results[1], VerificationFailure)
    assert results[1].email == "not-an-email"
    assert results[2].is_temp_email


class _ExplodingChecker:
    async def check(self, domain, timeout=None):
        if domain == "boom.example":
            raise RuntimeError("resolver crashed")
        return MxCheck(ok=True, hosts=("mx.example",))


async def test_bulk_isolates_unexpected_errors(registry, ledger):
    engine = ScoringEngine(registry, ledger, mx_checker=_ExplodingChecker())
    results = await engine.verify_bulk(["a@boom.example", "someone@gmail.com"])
    assert results[0] == VerificationFailure(email="a@boom.example", error=BULK_ITEM_ERROR)
    assert results[1].trust_score >= 90


async def test_bulk_empty(engine):
    assert await engine.verify_bulk([]) == []


def _result(score, is_temp=False):
    return VerificationResult(
        email="a@example.com",
        is_temp_email=is_temp,
        trust_score=score,
        domain_age="Old (5+ years)",
        has_mx_records=True,
        pattern_match=NO_PATTERN_LABEL,
    )


def _reputation(report_type, total, confidence):
    now = datetime.now(timezone.utc)
    return EmailReputation(
        email="a@example.com",
        is_full_email=True,
        report_type=report_type,
        report_count=total,
        total_reports=total,
        confidence_score=confidence,
        first_reported_at=now,
        last_reported_at=now,
    )


def test_overlay_without_reputation():
    result = _result(80)
    assert apply_reputation_overlay(result, None) is result


def test_overlay_reported_forces_temporary():
    result = _result(50)
    overlaid = apply_reputation_overlay(result, _reputation(ReportType.spam, 4, 80))
    assert overlaid.trust_score == 30
    assert overlaid.is_temp_email
    assert result.trust_score == 50


def test_overlay_respects_floor():
    overlaid = apply_reputation_overlay(_result(20), _reputation(ReportType.phishing, 10, 100))
    assert overlaid.trust_score == 10


def test_overlay_verified_boost():
    assert apply_reputation_overlay(_result(85), _reputation(ReportType.legitimate, 6, 90)).trust_score == 95
    assert apply_reputation_overlay(_result(95), _reputation(ReportType.legitimate, 6, 90)).trust_score == 100


def test_overlay_below_thresholds():
    result = _result(70)
    assert apply_reputation_overlay(result, _reputation(ReportType.spam, 3, 100)) is result
    assert apply_reputation_overlay(result, _reputation(ReportType.legitimate, 5, 100)) is result


async def test_verify_with_reputation(engine, ledger):
    for _ in range(4):
        await ledger.report("jane@corp.example", "spam")
    result = await engine.verify_with_reputation("jane@corp.example")
    base = 100 - _penalty("corp.example")
    assert result.trust_score == max(10, base - 20)
    assert result.is_temp_email
    # cached value is untouched
    assert (await engine.verify("jane@corp.example")).trust_score == base


def test_verify_sync():
    store = InMemoryStore()
    resolver = FakeResolver()
    engine = ScoringEngine(
        TempDomainRegistry(store),
        ReputationLedger(store),
        mx_checker=MxChecker(resolver=resolver, timeout=0.05),
    )
    first = engine.verify_sync("someone@gmail.com")
    second = engine.verify_sync("someone@gmail.com")
    assert first == second
    assert first.trust_score >= 90
    assert len(resolver.calls) == 2


async def test_unencodable_domain_scores_as_mx_failure(registry, ledger):
    class Rejecting:
        def query(self, domain, rtype):
            raise UnicodeError("Codepoint U+2603 not allowed")

    engine = ScoringEngine(registry, ledger, mx_checker=MxChecker(resolver=Rejecting()))
    result = await engine.verify("john@snow☃man.com")
    assert not result.has_mx_records
    assert result.trust_score == 100 - 20 - _penalty("snow☃man.com")
