# mailtrust/verifier/dns_engine.py
import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import List, Optional

import aiodns
import pycares

LOG = logging.getLogger("mailtrust.dns")

DEFAULT_MX_TIMEOUT = 2.0

NO_MX_PENALTY = 30
MX_FAILURE_PENALTY = 20

# resolver answers that mean "the domain has no MX records", not "lookup failed"
_NO_RECORD_CODES = {pycares.errno.ARES_ENODATA, pycares.errno.ARES_ENOTFOUND}


class MxErrorKind(str, enum.Enum):
    timeout = "timeout"
    error = "error"


@dataclass(frozen=True)
class MxCheck:
    """
    Outcome of an MX lookup. ok=False means the lookup itself did not
    complete (timeout or resolver failure); has_mx is then False too.
    """

    ok: bool
    hosts: tuple = ()
    error_kind: Optional[MxErrorKind] = None

    @property
    def has_mx(self) -> bool:
        return bool(self.hosts)

    @property
    def penalty(self) -> int:
        if not self.ok:
            return MX_FAILURE_PENALTY
        return 0 if self.hosts else NO_MX_PENALTY


class MxChecker:
    """
    Async MX lookup raced against a deadline. check() never raises:
    timeouts and resolver errors come back as MxCheck(ok=False).
    """

    def __init__(self, resolver=None, timeout: float = DEFAULT_MX_TIMEOUT):
        self._resolver = resolver
        self._own_resolver = resolver is None
        self._resolver_loop = None
        self.timeout = timeout

    @property
    def resolver(self):
        # aiodns binds to the loop it was created on
        if self._own_resolver:
            loop = asyncio.get_running_loop()
            if self._resolver is None or self._resolver_loop is not loop:
                self._resolver = aiodns.DNSResolver(loop=loop)
                self._resolver_loop = loop
        return self._resolver

    async def check(self, domain: str, timeout: Optional[float] = None) -> MxCheck:
        if not domain:
            return MxCheck(ok=True)
        timeout = self.timeout if timeout is None else timeout

        try:
            # aiodns may reject the name (e.g. IDNA encoding) before returning a future
            task = asyncio.ensure_future(self.resolver.query(domain, "MX"))
        except Exception as e:
            LOG.debug("MX lookup for %s could not start: %s", domain, e)
            return MxCheck(ok=False, error_kind=MxErrorKind.error)

        done, _ = await asyncio.wait({task}, timeout=timeout)
        if not done:
            task.cancel()
            LOG.debug("MX lookup for %s timed out after %.2fs", domain, timeout)
            return MxCheck(ok=False, error_kind=MxErrorKind.timeout)

        exc = task.exception()
        if exc is None:
            return MxCheck(ok=True, hosts=tuple(_ordered_hosts(task.result())))
        if isinstance(exc, aiodns.error.DNSError) and exc.args and exc.args[0] in _NO_RECORD_CODES:
            return MxCheck(ok=True)
        LOG.debug("MX lookup for %s failed: %s", domain, exc)
        return MxCheck(ok=False, error_kind=MxErrorKind.error)


def _ordered_hosts(records) -> List[str]:
    # records: objects with .priority and .host
    mxs = sorted(((r.priority, r.host.rstrip(".")) for r in records or []), key=lambda x: x[0])
    return [host for _, host in mxs]
