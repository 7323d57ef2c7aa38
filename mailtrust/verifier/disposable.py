# mailtrust/verifier/disposable.py
import asyncio
import logging
from typing import Optional

from ..errors import ConflictError, ForbiddenError, InputError
from ..schemas import Page, TempDomain, TempDomainSource
from ..storage import Store
from ..utils.pagination import clamp_page_params, page_offset
from .patterns import matches_domain_pattern

LOG = logging.getLogger("mailtrust.registry")

# Seed list of known disposable providers, loaded as builtin entries at startup
BUILTIN_TEMP_DOMAINS = (
    "temp-mail.org", "tempmail.com", "throwawaymail.com", "mailinator.com",
    "guerrillamail.com", "yopmail.com", "dispostable.com", "trashmail.com",
    "tempmailer.com", "10minutemail.com", "mailnesia.com", "fake-email.com",
    "sharklasers.com", "guerrillamailblock.com", "emailondeck.com", "spamgourmet.com",
    "temp-mail.ru", "tempr.email", "getnada.com", "maildrop.cc",
    "anonbox.net", "mailnull.com", "discard.email", "mailbox.org",
    "mintemail.com", "mvrht.net", "tempail.com", "emailsensei.com",
    "disposablemail.com", "mailhazard.com", "mytemp.email", "burnermail.io",
    "temp-mail.io", "spambog.com", "blogtrot.com", "mohmal.com",
    "fakeinbox.com", "mailcatch.com", "tempmailaddress.com", "tempemails.io",
    "dizigg.com", "emailna.co", "tmpmail.org", "tmp-mail.org",
    "tmpeml.com", "tmpbox.net", "moakt.cc", "disbox.net",
    "tmpmail.net", "ezztt.com", "secmail.com", "mailtempto.com",
    "firemailbox.club", "etempmail.net", "emailnator.com", "inboxkitten.com",
    "email-fake.com", "tempmailo.com", "fakemail.net", "faketempmail.com",
    "mailgen.biz", "tempmail.ninja", "randomail.net", "mailpoof.com",
    "vomoto.com", "fakemailbox.com", "tenmail.org", "mailpect.com",
    "cmail.club", "tmailcloud.com", "tmail.io", "gmailcom.co",
    "dropmail.me", "altmails.com", "zipmail.in", "mymailpro.net",
    "trx365.net", "mail4.top", "fackmail.net", "emlhub.com",
    "tempmail.in", "instantemailaddress.com", "coolmailpro.com", "crazymailing.com",
    "smashmail.de", "wegwerfmail.de", "guerillamail.com", "guerillamail.net",
    "guerillamail.org", "incognitomail.org", "incognitomail.net", "cock.li",
    "bareed.ws", "zep-mail.com", "nowmail.com", "inboxalias.com",
    "flurished.com", "damnthespam.com", "wealthyarmpits.com", "greencafe24.com",
    "putosmail.com", "everybodygotmail.com", "getsharecal.com", "hatlasub.com",
)


def normalize_domain(domain: str) -> str:
    value = (domain or "").strip().lower()
    if not value or "@" in value or any(c.isspace() for c in value):
        raise InputError(f"Invalid domain: {domain!r}")
    return value


class TempDomainRegistry:
    """
    Known disposable domains: builtin seed entries plus user additions.
    Builtin entries are read-only. Writes are serialized so the duplicate
    check and the insert happen as one step.
    """

    def __init__(self, store: Store):
        self.store = store
        self._write_lock = asyncio.Lock()

    async def seed_builtin(self, domains=BUILTIN_TEMP_DOMAINS) -> int:
        """Insert builtin entries that are not stored yet; return how many were added."""
        added = 0
        async with self._write_lock:
            for domain in dict.fromkeys(d.lower() for d in domains):
                if await self.store.find_temp_domain(domain) is None:
                    await self.store.insert_temp_domain(domain, TempDomainSource.builtin)
                    added += 1
        if added:
            LOG.info("Seeded %d builtin temp domains", added)
        return added

    async def is_temp_domain(self, domain: str) -> bool:
        value = (domain or "").strip().lower()
        if not value:
            return False
        if await self.store.find_temp_domain(value) is not None:
            return True
        return matches_domain_pattern(value)

    async def get(self, domain_id: int) -> Optional[TempDomain]:
        return await self.store.get_temp_domain(domain_id)

    async def add(self, domain: str, source: TempDomainSource = TempDomainSource.user) -> TempDomain:
        value = normalize_domain(domain)
        async with self._write_lock:
            if await self.store.find_temp_domain(value) is not None:
                raise ConflictError(f"Domain already exists: {value}")
            return await self.store.insert_temp_domain(value, TempDomainSource(source))

    async def update(self, domain_id: int, new_domain: str) -> Optional[TempDomain]:
        """Rename a user entry. Returns None when the id is unknown."""
        value = normalize_domain(new_domain)
        async with self._write_lock:
            entry = await self.store.get_temp_domain(domain_id)
            if entry is None:
                return None
            if entry.source == TempDomainSource.builtin:
                raise ForbiddenError("Built-in domains cannot be modified")
            clash = await self.store.find_temp_domain(value)
            if clash is not None and clash.id != domain_id:
                raise ConflictError(f"Domain already exists: {value}")
            return await self.store.update_temp_domain(domain_id, value)

    async def delete(self, domain_id: int) -> bool:
        """Delete a user entry. Returns False when the id is unknown."""
        async with self._write_lock:
            entry = await self.store.get_temp_domain(domain_id)
            if entry is None:
                return False
            if entry.source == TempDomainSource.builtin:
                raise ForbiddenError("Built-in domains cannot be deleted")
            return await self.store.delete_temp_domain(domain_id)

    async def list_paginated(self, page: int = 1, limit: int = 20) -> Page[TempDomain]:
        page, limit = clamp_page_params(page, limit)
        items, total = await self.store.page_temp_domains(page_offset(page, limit), limit)
        return Page[TempDomain](items=items, total=total)

    async def count(self) -> int:
        return await self.store.count_temp_domains()
