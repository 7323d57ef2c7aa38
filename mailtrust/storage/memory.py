# mailtrust/storage/memory.py
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from ..schemas import EmailReputation, TempDomain, TempDomainSource, User, Verification
from .base import Store


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStore(Store):
    """Dict-backed store; ids increase monotonically per table."""

    def __init__(self):
        self._temp_domains: Dict[int, TempDomain] = {}
        self._verifications: Dict[int, Verification] = {}
        self._reputations: Dict[int, EmailReputation] = {}
        self._users: Dict[int, User] = {}
        self._next_ids = {"temp_domain": 1, "verification": 1, "reputation": 1, "user": 1}

    def _next_id(self, table: str) -> int:
        value = self._next_ids[table]
        self._next_ids[table] = value + 1
        return value

    # temp domains
    async def get_temp_domain(self, domain_id: int) -> Optional[TempDomain]:
        return self._temp_domains.get(domain_id)

    async def find_temp_domain(self, domain: str) -> Optional[TempDomain]:
        for entry in self._temp_domains.values():
            if entry.domain == domain:
                return entry
        return None

    async def insert_temp_domain(self, domain: str, source: TempDomainSource) -> TempDomain:
        entry = TempDomain(id=self._next_id("temp_domain"), domain=domain, source=source, created_at=_now())
        self._temp_domains[entry.id] = entry
        return entry

    async def update_temp_domain(self, domain_id: int, domain: str) -> Optional[TempDomain]:
        entry = self._temp_domains.get(domain_id)
        if entry is None:
            return None
        entry = entry.model_copy(update={"domain": domain})
        self._temp_domains[domain_id] = entry
        return entry

    async def delete_temp_domain(self, domain_id: int) -> bool:
        return self._temp_domains.pop(domain_id, None) is not None

    async def count_temp_domains(self) -> int:
        return len(self._temp_domains)

    async def page_temp_domains(self, offset: int, limit: int) -> Tuple[List[TempDomain], int]:
        rows = sorted(self._temp_domains.values(), key=lambda d: d.id, reverse=True)
        return rows[offset:offset + limit], len(rows)

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
        row = Verification(
            id=self._next_id("verification"),
            email=email,
            is_temp_email=is_temp_email,
            trust_score=trust_score,
            domain_age=domain_age,
            has_mx_records=has_mx_records,
            pattern_match=pattern_match,
            user_id=user_id,
            created_at=_now(),
        )
        self._verifications[row.id] = row
        return row

    async def page_verifications(
        self, offset: int, limit: int, user_id: Optional[int] = None
    ) -> Tuple[List[Verification], int]:
        rows = [v for v in self._verifications.values() if user_id is None or v.user_id == user_id]
        rows.sort(key=lambda v: (v.created_at, v.id), reverse=True)
        return rows[offset:offset + limit], len(rows)

    # reputations
    async def find_reputation(self, target: str, is_full_email: bool) -> Optional[EmailReputation]:
        for rep in self._reputations.values():
            if rep.email == target and rep.is_full_email == is_full_email:
                return rep
        return None

    async def insert_reputation(self, reputation: EmailReputation) -> EmailReputation:
        reputation = reputation.model_copy(update={"id": self._next_id("reputation")})
        self._reputations[reputation.id] = reputation
        return reputation

    async def update_reputation(self, reputation: EmailReputation) -> EmailReputation:
        self._reputations[reputation.id] = reputation
        return reputation

    async def page_reputations(self, offset: int, limit: int) -> Tuple[List[EmailReputation], int]:
        # sorted() is stable, so ties keep insertion order
        rows = sorted(self._reputations.values(), key=lambda r: r.total_reports, reverse=True)
        return rows[offset:offset + limit], len(rows)

    # users
    async def get_user(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        for user in self._users.values():
            if user.username.lower() == username.lower():
                return user
        return None

    async def create_user(self, username: str, api_key: str, api_calls_remaining: int) -> User:
        user = User(
            id=self._next_id("user"),
            username=username,
            api_key=api_key,
            api_calls_remaining=api_calls_remaining,
        )
        self._users[user.id] = user
        return user

    async def save_user(self, user: User) -> User:
        self._users[user.id] = user
        return user
