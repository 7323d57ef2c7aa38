# mailtrust/services/scoring.py
import logging
from dataclasses import dataclass
from typing import Optional

from ..schemas import Verification, VerificationResult
from ..storage import Store, create_store
from ..utils.pagination import clamp_page_params, page_offset
from ..verifier import (
    MxChecker,
    RedisVerificationCache,
    ReputationLedger,
    ScoringEngine,
    TempDomainRegistry,
    VerificationCache,
)

LOG = logging.getLogger("mailtrust.services")


@dataclass
class Services:
    """Everything a caller needs, built once at process start."""

    store: Store
    registry: TempDomainRegistry
    ledger: ReputationLedger
    cache: object
    engine: ScoringEngine

    async def start(self) -> None:
        await self.store.init()
        await self.registry.seed_builtin()
        self.cache.start()

    async def stop(self) -> None:
        await self.cache.stop()
        await self.store.close()


def create_cache(settings):
    backend = (settings.CACHE_BACKEND or "memory").lower()
    if backend == "memory":
        return VerificationCache(
            ttl_seconds=settings.CACHE_TTL_SECONDS,
            sweep_interval=settings.CACHE_SWEEP_INTERVAL_SECONDS,
        )
    if backend == "redis":
        return RedisVerificationCache.from_url(settings.REDIS_URL, ttl_seconds=settings.CACHE_TTL_SECONDS)
    raise ValueError(f"Unknown CACHE_BACKEND: {settings.CACHE_BACKEND!r}")


def build_services(settings, store: Optional[Store] = None, cache=None, mx_checker: Optional[MxChecker] = None) -> Services:
    store = store or create_store(settings)
    cache = cache or create_cache(settings)
    registry = TempDomainRegistry(store)
    ledger = ReputationLedger(store)
    engine = ScoringEngine(
        registry,
        ledger,
        cache=cache,
        mx_checker=mx_checker or MxChecker(timeout=settings.MX_TIMEOUT_SECONDS),
        threshold=settings.TEMP_EMAIL_THRESHOLD,
        cache_ttl=settings.CACHE_TTL_SECONDS,
    )
    LOG.info(
        "Services built storage=%s cache=%s threshold=%d",
        type(store).__name__, type(cache).__name__, settings.TEMP_EMAIL_THRESHOLD,
    )
    return Services(store=store, registry=registry, ledger=ledger, cache=cache, engine=engine)


async def record_verification(store: Store, result: VerificationResult, user_id: Optional[int] = None) -> Verification:
    """Append one row to the verification audit log."""
    return await store.add_verification(
        email=result.email,
        is_temp_email=result.is_temp_email,
        trust_score=result.trust_score,
        domain_age=result.domain_age,
        has_mx_records=result.has_mx_records,
        pattern_match=result.pattern_match,
        user_id=user_id,
    )


async def recent_verifications(store: Store, page: int = 1, limit: int = 10) -> dict:
    page, limit = clamp_page_params(page, limit)
    items, total = await store.page_verifications(page_offset(page, limit), limit)
    return {"items": items, "total": total}


async def verifications_for_user(store: Store, user_id: int, page: int = 1, limit: int = 20) -> dict:
    page, limit = clamp_page_params(page, limit)
    items, total = await store.page_verifications(page_offset(page, limit), limit, user_id=user_id)
    return {"items": items, "total": total}
