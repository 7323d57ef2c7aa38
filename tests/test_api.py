import httpx
import pytest

from mailtrust.config import Settings
from mailtrust.main import create_app
from mailtrust.routers.users import next_reset_date
from mailtrust.services.scoring import build_services
from mailtrust.verifier import MxChecker

from conftest import FakeResolver


@pytest.fixture
async def client():
    settings = Settings(STORAGE_BACKEND="memory", CACHE_BACKEND="memory")
    services = build_services(settings, mx_checker=MxChecker(resolver=FakeResolver(), timeout=0.05))
    app = create_app(settings, services=services)
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            yield c


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


async def test_verify_get_uses_camel_case(client):
    r = await client.get("/verify", params={"email": "user123@mailinator.com"})
    assert r.status_code == 200
    body = r.json()
    assert body["isTempEmail"] is True
    assert "Known temporary email domain" in body["patternMatch"]
    assert set(body) == {"email", "isTempEmail", "trustScore", "domainAge", "hasMxRecords", "patternMatch"}

    recent = (await client.get("/verifications/recent")).json()
    assert recent["total"] == 1
    assert recent["items"][0]["email"] == "user123@mailinator.com"


async def test_verify_get_rejects_malformed(client):
    r = await client.get("/verify", params={"email": "not-an-email"})
    assert r.status_code == 400
    assert "error" in r.json()


async def test_verify_post_consumes_quota(client):
    r = await client.post("/verify", json={"email": "someone@gmail.com"})
    assert r.status_code == 200
    body = r.json()
    assert body["trustScore"] >= 90
    assert body["reputationData"] is None
    assert body["apiCallsRemaining"] == 9
    assert body["apiCallsTotal"] == 10

    mine = (await client.get("/verifications/mine")).json()
    assert mine["total"] == 1


async def test_verify_post_invalid_email(client):
    r = await client.post("/verify", json={"email": "nope"})
    assert r.status_code == 400
    assert r.json()["error"] == "Please enter a valid email address"


async def test_bulk_then_quota_exhausted(client):
    r = await client.post("/verify/bulk", json={"emails": ["someone@gmail.com", "bad", "user123@mailinator.com"]})
    assert r.status_code == 200
    body = r.json()
    assert body["apiCallsRemaining"] == 0
    results = body["results"]
    assert len(results) == 3
    assert results[0]["trustScore"] >= 90
    assert results[1]["email"] == "bad"
    assert "error" in results[1]
    assert results[2]["isTempEmail"] is True

    r = await client.post("/verify", json={"email": "someone@gmail.com"})
    assert r.status_code == 403
    assert "API limit exceeded" in r.json()["error"]


async def test_bulk_limits(client):
    r = await client.post("/verify/bulk", json={"emails": [f"u{i}@example.com" for i in range(16)]})
    assert r.status_code == 400
    r = await client.post("/verify/bulk", json={"emails": []})
    assert r.status_code == 400
    usage = (await client.get("/user/usage")).json()
    assert usage["apiCallsRemaining"] == 10


async def test_temp_domain_crud(client):
    r = await client.post("/temp-domains", json={"domain": "QuickBox.io"})
    assert r.status_code == 201
    entry = r.json()
    assert entry["domain"] == "quickbox.io"
    assert entry["source"] == "user"

    assert (await client.post("/temp-domains", json={"domain": "quickbox.io"})).status_code == 409
    assert (await client.get("/is-temp-domain/quickbox.io")).json() == {"domain": "quickbox.io", "isTempDomain": True}

    r = await client.patch(f"/temp-domains/{entry['id']}", json={"domain": "slowbox.io"})
    assert r.status_code == 200
    assert r.json()["domain"] == "slowbox.io"

    listing = (await client.get("/temp-domains", params={"limit": 1})).json()
    assert listing["items"][0]["id"] == entry["id"]
    assert listing["total"] > 1

    assert (await client.delete(f"/temp-domains/{entry['id']}")).status_code == 204
    assert (await client.get(f"/temp-domains/{entry['id']}")).status_code == 404
    assert (await client.delete(f"/temp-domains/{entry['id']}")).status_code == 404


async def test_builtin_temp_domain_is_protected(client):
    listing = (await client.get("/temp-domains", params={"limit": 100})).json()
    builtin = next(d for d in listing["items"] if d["source"] == "builtin")
    r = await client.delete(f"/temp-domains/{builtin['id']}")
    assert r.status_code == 403
    r = await client.patch(f"/temp-domains/{builtin['id']}", json={"domain": "x.example"})
    assert r.status_code == 403


async def test_reputation_endpoints(client):
    for _ in range(4):
        r = await client.post("/reputation/report", json={"email": "jane@corp.example", "reportType": "spam"})
        assert r.status_code == 200
    rep = r.json()
    assert rep["totalReports"] == 4
    assert rep["confidenceScore"] == 100

    assert (await client.get("/reputation/email/jane@corp.example")).json()["reportType"] == "spam"
    assert (await client.get("/reputation/domain/corp.example")).json() == {"exists": False}

    r = await client.post("/reputation/report", json={"email": "jane@corp.example", "reportType": "bogus"})
    assert r.status_code == 400

    top = (await client.get("/reputation/most-reported")).json()
    assert top["items"][0]["email"] == "jane@corp.example"

    # the per-address overlay flags the address even though the engine alone would not
    r = await client.post("/verify", json={"email": "jane@corp.example"})
    body = r.json()
    assert body["isTempEmail"] is True
    assert body["reputationData"]["totalReports"] == 4


async def test_update_plan_and_reset(client):
    r = await client.post("/user/update-plan", json={"plan": "premium"})
    assert r.status_code == 200
    assert r.json()["user"]["apiCallsRemaining"] == 1000

    await client.post("/verify", json={"email": "someone@gmail.com"})
    usage = (await client.get("/user/usage")).json()
    assert usage["plan"] == "premium"
    assert usage["apiCallsUsed"] == 1

    r = await client.post("/user/reset-api-calls")
    assert r.json()["apiCallsRemaining"] == 1000

    assert (await client.post("/user/update-plan", json={"plan": "gold"})).status_code == 422


async def test_stats(client):
    await client.get("/verify", params={"email": "user123@mailinator.com"})
    await client.get("/verify", params={"email": "someone@gmail.com"})
    stats = (await client.get("/stats")).json()
    assert stats["emailsChecked"] == 2
    assert stats["tempEmailsDetected"] == 1
    assert stats["tempEmailRate"] == 50.0
    assert stats["totalDomains"] > 0


def test_next_reset_date_rolls_over_year():
    from datetime import datetime, timezone

    assert next_reset_date(datetime(2024, 12, 15, tzinfo=timezone.utc)).startswith("2025-01-01")
    assert next_reset_date(datetime(2024, 3, 31, tzinfo=timezone.utc)).startswith("2024-04-01")


def test_settings_cost_defaults_follow_engine(monkeypatch):
    from mailtrust.verifier import score_engine

    for name in ("VERIFY_COST", "BULK_VERIFY_COST", "MAX_BULK_EMAILS"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings()
    assert settings.VERIFY_COST == score_engine.VERIFY_COST
    assert settings.BULK_VERIFY_COST == score_engine.BULK_VERIFY_COST
    assert settings.MAX_BULK_EMAILS == score_engine.MAX_BULK_EMAILS
