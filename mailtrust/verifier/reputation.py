# mailtrust/verifier/reputation.py
"""
Crowd-sourced reputation ledger.

One row per (target, is_full_email). reportCount counts consecutive reports
of the row's current type; totalReports counts every report. Confidence goes
up with consistent reports and drops by a fixed step when a report disagrees
with the stored type.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from ..errors import InputError
from ..schemas import EmailReputation, Page, ReportType
from ..storage import Store
from ..utils.pagination import clamp_page_params, page_offset

LOG = logging.getLogger("mailtrust.reputation")

INITIAL_CONFIDENCE = 60
CONFLICT_CONFIDENCE_DROP = 30
CONFIDENCE_FLOOR = 30


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_report_type(value) -> ReportType:
    try:
        return ReportType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in ReportType)
        raise InputError(f"Invalid report type. Must be one of: {allowed}") from None


class ReputationLedger:
    def __init__(self, store: Store, clock=_utcnow):
        self.store = store
        self._clock = clock
        # key -> [lock, number of holders and waiters]
        self._locks: Dict[Tuple[str, bool], list] = {}

    @asynccontextmanager
    async def _locked(self, key: Tuple[str, bool]):
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = [asyncio.Lock(), 0]
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    async def get_by_email(self, email: str) -> Optional[EmailReputation]:
        return await self.store.find_reputation((email or "").strip().lower(), True)

    async def get_by_domain(self, domain: str) -> Optional[EmailReputation]:
        return await self.store.find_reputation((domain or "").strip().lower(), False)

    async def get_reputation(self, target: str) -> Optional[EmailReputation]:
        """Exact row for target; a full address falls back to its domain's row."""
        target = (target or "").strip().lower()
        if "@" not in target:
            return await self.get_by_domain(target)
        found = await self.get_by_email(target)
        if found is not None:
            return found
        return await self.get_by_domain(target.rsplit("@", 1)[1])

    async def report(self, target: str, report_type, metadata: Optional[str] = None) -> EmailReputation:
        target = (target or "").strip().lower()
        if not target:
            raise InputError("Email or domain is required")
        report_type = parse_report_type(report_type)
        is_full_email = "@" in target

        # serialize read-modify-write per target so concurrent reports are not lost
        async with self._locked((target, is_full_email)):
            existing = await self.store.find_reputation(target, is_full_email)
            now = self._clock()

            if existing is None:
                rep = EmailReputation(
                    email=target,
                    is_full_email=is_full_email,
                    report_type=report_type,
                    report_count=1,
                    total_reports=1,
                    confidence_score=INITIAL_CONFIDENCE,
                    first_reported_at=now,
                    last_reported_at=now,
                    metadata=metadata or None,
                )
                LOG.info("First %s report for %s", report_type.value, target)
                return await self.store.insert_reputation(rep)

            total_reports = existing.total_reports + 1
            if report_type == existing.report_type:
                report_count = existing.report_count + 1
                confidence = min(100, round(report_count / total_reports * 100))
            else:
                report_count = 1
                confidence = max(CONFIDENCE_FLOOR, existing.confidence_score - CONFLICT_CONFIDENCE_DROP)

            if metadata:
                merged = f"{existing.metadata},{metadata}" if existing.metadata else metadata
            else:
                merged = existing.metadata

            updated = existing.model_copy(update={
                "report_type": report_type,
                "report_count": report_count,
                "total_reports": total_reports,
                "confidence_score": confidence,
                "last_reported_at": now,
                "metadata": merged,
            })
            return await self.store.update_reputation(updated)

    async def most_reported(self, limit: int = 10, page: int = 1) -> Page[EmailReputation]:
        page, limit = clamp_page_params(page, limit)
        items, total = await self.store.page_reputations(page_offset(page, limit), limit)
        return Page[EmailReputation](items=items, total=total)
