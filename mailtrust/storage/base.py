# mailtrust/storage/base.py
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from ..schemas import EmailReputation, TempDomain, TempDomainSource, User, Verification


class Store(ABC):
    """
    Persistence contract shared by every backend. Rules (uniqueness,
    builtin protection, confidence math) live in the verifier layer; a store
    only reads and writes rows. Domains and reputation targets arrive
    already lowercased.
    """

    async def init(self) -> None:
        """Prepare the backend (create tables, open connections)."""

    async def close(self) -> None:
        """Release backend resources."""

    # temp domains
    @abstractmethod
    async def get_temp_domain(self, domain_id: int) -> Optional[TempDomain]: ...

    @abstractmethod
    async def find_temp_domain(self, domain: str) -> Optional[TempDomain]: ...

    @abstractmethod
    async def insert_temp_domain(self, domain: str, source: TempDomainSource) -> TempDomain: ...

    @abstractmethod
    async def update_temp_domain(self, domain_id: int, domain: str) -> Optional[TempDomain]: ...

    @abstractmethod
    async def delete_temp_domain(self, domain_id: int) -> bool: ...

    @abstractmethod
    async def count_temp_domains(self) -> int: ...

    @abstractmethod
    async def page_temp_domains(self, offset: int, limit: int) -> Tuple[List[TempDomain], int]:
        """Newest first (descending insertion order)."""

    # verification audit log
    @abstractmethod
    async def add_verification(
        self,
        email: str,
        is_temp_email: bool,
        trust_score: int,
        domain_age: str,
        has_mx_records: bool,
        pattern_match: str,
        user_id: Optional[int] = None,
    ) -> Verification: ...

    @abstractmethod
    async def page_verifications(
        self, offset: int, limit: int, user_id: Optional[int] = None
    ) -> Tuple[List[Verification], int]:
        """Most recent first, optionally filtered by user."""

    # reputations
    @abstractmethod
    async def find_reputation(self, target: str, is_full_email: bool) -> Optional[EmailReputation]: ...

    @abstractmethod
    async def insert_reputation(self, reputation: EmailReputation) -> EmailReputation: ...

    @abstractmethod
    async def update_reputation(self, reputation: EmailReputation) -> EmailReputation: ...

    @abstractmethod
    async def page_reputations(self, offset: int, limit: int) -> Tuple[List[EmailReputation], int]:
        """Ordered by total_reports descending."""

    # users
    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    async def create_user(self, username: str, api_key: str, api_calls_remaining: int) -> User: ...

    @abstractmethod
    async def save_user(self, user: User) -> User: ...
