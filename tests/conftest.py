import asyncio

import aiodns
import pycares
import pytest

from mailtrust.storage import InMemoryStore
from mailtrust.verifier import (
    MxChecker,
    ReputationLedger,
    ScoringEngine,
    TempDomainRegistry,
    VerificationCache,
)

HANG = "hang"


class MxRecord:
    def __init__(self, host, priority):
        self.host = host
        self.priority = priority


class FakeResolver:
    """
    Stands in for aiodns.DNSResolver. answers maps a domain to a list of MX
    hosts, an exception instance to raise, or HANG to never answer.
    """

    def __init__(self, answers=None, default=("mx1.example.net.",)):
        self.answers = dict(answers or {})
        self.default = default
        self.calls = []

    async def query(self, domain, rtype):
        self.calls.append((domain, rtype))
        answer = self.answers.get(domain, self.default)
        if answer == HANG:
            await asyncio.sleep(3600)
        if isinstance(answer, BaseException):
            raise answer
        return [MxRecord(host, 10 * (i + 1)) for i, host in enumerate(answer)]


def no_data_error():
    return aiodns.error.DNSError(pycares.errno.ARES_ENODATA, "DNS server returned answer with no data")


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
async def registry(store):
    reg = TempDomainRegistry(store)
    await reg.seed_builtin()
    return reg


@pytest.fixture
def ledger(store):
    return ReputationLedger(store)


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def mx_checker(resolver):
    return MxChecker(resolver=resolver, timeout=0.05)


@pytest.fixture
def cache(clock):
    return VerificationCache(ttl_seconds=900, sweep_interval=60, clock=clock)


@pytest.fixture
def engine(registry, ledger, cache, mx_checker):
    return ScoringEngine(registry, ledger, cache=cache, mx_checker=mx_checker)
