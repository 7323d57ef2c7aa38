import asyncio

import pytest

from mailtrust.errors import ForbiddenError
from mailtrust.schemas import Plan, ReportType, TempDomainSource
from mailtrust.storage.sql import SqlStore
from mailtrust.verifier import ReputationLedger, TempDomainRegistry


@pytest.fixture
async def sql_store():
    store = SqlStore.from_url("sqlite+aiosqlite://", wait_retries=1, wait_delay=0)
    await store.init()
    yield store
    await store.close()


async def test_registry_on_sql(sql_store):
    registry = TempDomainRegistry(sql_store)
    added = await registry.seed_builtin()
    assert added == await registry.count()
    assert await registry.seed_builtin() == 0

    assert await registry.is_temp_domain("MAILINATOR.COM")
    entry = await registry.add("quickbox.io")
    assert entry.source == TempDomainSource.user

    builtin = await sql_store.find_temp_domain("mailinator.com")
    with pytest.raises(ForbiddenError):
        await registry.delete(builtin.id)

    renamed = await registry.update(entry.id, "slowbox.io")
    assert renamed.domain == "slowbox.io"
    page = await registry.list_paginated(page=1, limit=1)
    assert page.items[0].id == entry.id
    assert await registry.delete(entry.id)
    assert await registry.get(entry.id) is None


async def test_reputation_on_sql(sql_store):
    ledger = ReputationLedger(sql_store)
    await ledger.report("x@y.com", "legitimate", metadata="a")
    rep = await ledger.report("x@y.com", "spam", metadata="b")
    assert rep.report_type == ReportType.spam
    assert rep.total_reports == 2
    assert rep.confidence_score == 30
    assert rep.metadata == "a,b"

    fetched = await ledger.get_by_email("x@y.com")
    assert fetched.id == rep.id
    assert fetched.metadata == "a,b"
    assert await ledger.get_by_domain("y.com") is None

    await ledger.report("y.com", "spam")
    page = await ledger.most_reported()
    assert [r.email for r in page.items] == ["x@y.com", "y.com"]


async def test_verifications_and_users_on_sql(sql_store):
    user = await sql_store.create_user("demouser", "key", 10)
    assert user.plan == Plan.free
    assert (await sql_store.get_user_by_username("DemoUser")).id == user.id

    await sql_store.add_verification("a@b.com", False, 90, "Old (5+ years)", True, "No patterns detected")
    await sql_store.add_verification("c@d.com", True, 10, "New (<30 days)", False, "Known temporary email domain", user.id)

    items, total = await sql_store.page_verifications(0, 10)
    assert total == 2
    assert items[0].email == "c@d.com"
    mine, mine_total = await sql_store.page_verifications(0, 10, user_id=user.id)
    assert mine_total == 1
    assert mine[0].user_id == user.id

    saved = await sql_store.save_user(user.model_copy(update={"plan": Plan.premium, "api_calls_remaining": 1000}))
    assert saved.plan == Plan.premium
    assert (await sql_store.get_user(user.id)).api_calls_remaining == 1000


async def test_concurrent_reports_on_sql(sql_store):
    # each store call yields to the loop, so unserialized reports would interleave
    ledger = ReputationLedger(sql_store)
    await ledger.report("x@y.com", "spam")
    await asyncio.gather(*(ledger.report("x@y.com", "spam") for _ in range(10)))
    rep = await ledger.get_by_email("x@y.com")
    assert rep.total_reports == 11
    assert rep.report_count == 11
    assert rep.confidence_score == 100
