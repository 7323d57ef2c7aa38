# mailtrust/storage/sql.py
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from ..db import create_engine, create_session_maker, create_tables, wait_for_db
from ..models import EmailReputationRecord, TempDomainRecord, UserRecord, VerificationRecord
from ..schemas import EmailReputation, TempDomain, TempDomainSource, User, Verification
from .base import Store

LOG = logging.getLogger("mailtrust.db")


def _now() -> datetime:
    return datetime.now(timezone.utc)


# -------------------------------------------------------------------
# Row <-> schema conversion
# -------------------------------------------------------------------
def _temp_domain(row: TempDomainRecord) -> TempDomain:
    return TempDomain(id=row.id, domain=row.domain, source=row.source, created_at=row.created_at)


def _verification(row: VerificationRecord) -> Verification:
    return Verification(
        id=row.id,
        email=row.email,
        is_temp_email=row.is_temp_email,
        trust_score=row.trust_score,
        domain_age=row.domain_age or "",
        has_mx_records=bool(row.has_mx_records),
        pattern_match=row.pattern_match or "",
        user_id=row.user_id,
        created_at=row.created_at,
    )


def _reputation(row: EmailReputationRecord) -> EmailReputation:
    return EmailReputation(
        id=row.id,
        email=row.email,
        is_full_email=row.is_full_email,
        report_type=row.report_type,
        report_count=row.report_count,
        total_reports=row.total_reports,
        confidence_score=row.confidence_score,
        first_reported_at=row.first_reported_at,
        last_reported_at=row.last_reported_at,
        metadata=row.meta,
    )


def _user(row: UserRecord) -> User:
    return User(
        id=row.id,
        username=row.username,
        api_key=row.api_key,
        api_calls_remaining=row.api_calls_remaining,
        plan=row.plan,
    )


def _apply_reputation(row: EmailReputationRecord, rep: EmailReputation) -> None:
    row.email = rep.email
    row.is_full_email = rep.is_full_email
    row.report_type = rep.report_type.value
    row.report_count = rep.report_count
    row.total_reports = rep.total_reports
    row.confidence_score = rep.confidence_score
    row.first_reported_at = rep.first_reported_at
    row.last_reported_at = rep.last_reported_at
    row.meta = rep.metadata


async def safe_commit(db: AsyncSession):
    try:
        await db.commit()
    except Exception as e:
        LOG.warning("Commit failed, rolling back: %s", e)
        await db.rollback()
        raise


class SqlStore(Store):
    """
    SQLAlchemy-backed store (PostgreSQL via asyncpg in production, SQLite via
    aiosqlite in tests). One short-lived session per operation.
    """

    def __init__(self, engine: AsyncEngine, wait_retries: int = 8, wait_delay: float = 2.0):
        self.engine = engine
        self._sessions = create_session_maker(engine)
        self._wait_retries = wait_retries
        self._wait_delay = wait_delay

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False, **kwargs) -> "SqlStore":
        return cls(create_engine(database_url, echo=echo), **kwargs)

    async def init(self) -> None:
        await wait_for_db(self.engine, max_retries=self._wait_retries, delay=self._wait_delay)
        await create_tables(self.engine)

    async def close(self) -> None:
        await self.engine.dispose()

    # temp domains
    async def get_temp_domain(self, domain_id: int) -> Optional[TempDomain]:
        async with self._sessions() as db:
            row = await db.get(TempDomainRecord, domain_id)
            return _temp_domain(row) if row else None

    async def find_temp_domain(self, domain: str) -> Optional[TempDomain]:
        async with self._sessions() as db:
            q = await db.execute(select(TempDomainRecord).where(TempDomainRecord.domain == domain))
            row = q.scalars().first()
            return _temp_domain(row) if row else None

    async def insert_temp_domain(self, domain: str, source: TempDomainSource) -> TempDomain:
        async with self._sessions() as db:
            row = TempDomainRecord(domain=domain, source=source.value, created_at=_now())
            db.add(row)
            await safe_commit(db)
            return _temp_domain(row)

    async def update_temp_domain(self, domain_id: int, domain: str) -> Optional[TempDomain]:
        async with self._sessions() as db:
            row = await db.get(TempDomainRecord, domain_id)
            if row is None:
                return None
            row.domain = domain
            await safe_commit(db)
            return _temp_domain(row)

    async def delete_temp_domain(self, domain_id: int) -> bool:
        async with self._sessions() as db:
            row = await db.get(TempDomainRecord, domain_id)
            if row is None:
                return False
            await db.delete(row)
            await safe_commit(db)
            return True

    async def count_temp_domains(self) -> int:
        async with self._sessions() as db:
            q = await db.execute(select(func.count()).select_from(TempDomainRecord))
            return q.scalar_one() or 0

    async def page_temp_domains(self, offset: int, limit: int) -> Tuple[List[TempDomain], int]:
        async with self._sessions() as db:
            total = (await db.execute(select(func.count()).select_from(TempDomainRecord))).scalar_one() or 0
            q = await db.execute(
                select(TempDomainRecord).order_by(TempDomainRecord.id.desc()).offset(offset).limit(limit)
            )
            return [_temp_domain(r) for r in q.scalars().all()], int(total)

    # verification audit log
    async def add_verification(
        self,
        email: str,
        is_temp_email: bool,
        trust_score: int,
        domain_age: str,
        has_mx_records: bool,
        pattern_match: str,
        user_id: Optional[int] = None,
    ) -> Verification:
        async with self._sessions() as db:
            row = VerificationRecord(
                email=email,
                is_temp_email=is_temp_email,
                trust_score=trust_score,
                domain_age=domain_age,
                has_mx_records=has_mx_records,
                pattern_match=pattern_match,
                user_id=user_id,
                created_at=_now(),
            )
            db.add(row)
            await safe_commit(db)
            return _verification(row)

    async def page_verifications(
        self, offset: int, limit: int, user_id: Optional[int] = None
    ) -> Tuple[List[Verification], int]:
        count_stmt = select(func.count()).select_from(VerificationRecord)
        stmt = select(VerificationRecord)
        if user_id is not None:
            count_stmt = count_stmt.where(VerificationRecord.user_id == user_id)
            stmt = stmt.where(VerificationRecord.user_id == user_id)
        async with self._sessions() as db:
            total = (await db.execute(count_stmt)).scalar_one() or 0
            q = await db.execute(stmt.order_by(VerificationRecord.id.desc()).offset(offset).limit(limit))
            return [_verification(r) for r in q.scalars().all()], int(total)

    # reputations
    async def find_reputation(self, target: str, is_full_email: bool) -> Optional[EmailReputation]:
        async with self._sessions() as db:
            q = await db.execute(
                select(EmailReputationRecord).where(
                    EmailReputationRecord.email == target,
                    EmailReputationRecord.is_full_email == is_full_email,
                )
            )
            row = q.scalars().first()
            return _reputation(row) if row else None

    async def insert_reputation(self, reputation: EmailReputation) -> EmailReputation:
        async with self._sessions() as db:
            row = EmailReputationRecord()
            _apply_reputation(row, reputation)
            db.add(row)
            await safe_commit(db)
            return _reputation(row)

    async def update_reputation(self, reputation: EmailReputation) -> EmailReputation:
        async with self._sessions() as db:
            row = await db.get(EmailReputationRecord, reputation.id)
            if row is None:
                row = EmailReputationRecord(id=reputation.id)
                db.add(row)
            _apply_reputation(row, reputation)
            await safe_commit(db)
            return _reputation(row)

    async def page_reputations(self, offset: int, limit: int) -> Tuple[List[EmailReputation], int]:
        async with self._sessions() as db:
            total = (await db.execute(select(func.count()).select_from(EmailReputationRecord))).scalar_one() or 0
            q = await db.execute(
                select(EmailReputationRecord)
                .order_by(EmailReputationRecord.total_reports.desc(), EmailReputationRecord.id)
                .offset(offset)
                .limit(limit)
            )
            return [_reputation(r) for r in q.scalars().all()], int(total)

    # users
    async def get_user(self, user_id: int) -> Optional[User]:
        async with self._sessions() as db:
            row = await db.get(UserRecord, user_id)
            return _user(row) if row else None

    async def get_user_by_username(self, username: str) -> Optional[User]:
        async with self._sessions() as db:
            q = await db.execute(
                select(UserRecord).where(func.lower(UserRecord.username) == username.lower())
            )
            row = q.scalars().first()
            return _user(row) if row else None

    async def create_user(self, username: str, api_key: str, api_calls_remaining: int) -> User:
        async with self._sessions() as db:
            row = UserRecord(username=username, api_key=api_key, api_calls_remaining=api_calls_remaining, plan="free")
            db.add(row)
            await safe_commit(db)
            return _user(row)

    async def save_user(self, user: User) -> User:
        async with self._sessions() as db:
            row = await db.get(UserRecord, user.id)
            if row is None:
                row = UserRecord(id=user.id)
                db.add(row)
            row.username = user.username
            row.api_key = user.api_key
            row.api_calls_remaining = user.api_calls_remaining
            row.plan = user.plan.value
            await safe_commit(db)
            return _user(row)
