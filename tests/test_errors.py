"""
Cross-cutting behaviour: the uniform error body, rate limiting, and the
password/token helpers the auth endpoints rely on.
"""
from datetime import timedelta

import pytest
from fakeredis import aioredis
from httpx import ASGITransport, AsyncClient

from app import rate_limit
from app.config import settings
from app.main import app
from app.rate_limit import limiter
from app.services import file_service
from app.security import (
    MAX_PASSWORD_BYTES,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


# ---------------------------------------------------------------------------
# Error body
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unknown_route_uses_error_body(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/nope")
    assert resp.status_code == 404
    body = resp.json()
    assert body["code"] == 404
    assert body["status"] == "BAD REQUEST"
    assert body["errors"] == []


@pytest.mark.asyncio
async def test_method_not_allowed_uses_error_body(async_client: AsyncClient):
    resp = await async_client.patch("/api/v1/articles")
    assert resp.status_code == 405
    assert resp.json()["code"] == 405


@pytest.mark.asyncio
async def test_unexpected_error_uses_error_body(monkeypatch):
    """An exception outside the known error types still renders the JSON body as a 500."""
    def _disk_full(path, content):
        raise OSError("No space left on device")

    monkeypatch.setattr(file_service, "_write_bytes", _disk_full)

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        credentials = {"email": "disk@example.com", "password": "secret123"}
        await client.post("/api/v1/auth/register", json=credentials)
        token = (await client.post("/api/v1/auth/login", json=credentials)).json()["access_token"]
        resp = await client.post(
            "/api/v1/files",
            files={"file": ("a.png", b"bytes", "image/png")},
            headers={"Authorization": f"Bearer {token}"},
        )

    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.json() == {
        "code": 500,
        "status": "BAD REQUEST",
        "message": "Something went wrong",
        "errors": [],
    }


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_rate_limit_blocks_after_limit(async_client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT", 2)
    monkeypatch.setattr(settings, "RATE_DELAY", 5)

    for _ in range(2):
        resp = await async_client.get("/api/v1/articles")
        assert resp.status_code == 200

    resp = await async_client.get("/api/v1/categories")
    assert resp.status_code == 429
    assert resp.json() == {
        "code": 429,
        "status": "BAD REQUEST",
        "message": "Too many requests",
        "errors": ["Too many requests from this IP, please try again after 5 minutes"],
    }


@pytest.mark.asyncio
async def test_health_is_not_rate_limited(async_client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT", 1)
    for _ in range(3):
        resp = await async_client.get("/health")
        assert resp.status_code == 200


@pytest.mark.asyncio
async def test_rate_limit_window_resets(monkeypatch):
    clock = [1000.0]
    monkeypatch.setattr(rate_limit.time, "monotonic", lambda: clock[0])
    monkeypatch.setattr(settings, "RATE_DELAY", 1)

    assert await limiter.hit("10.0.0.1") == 1
    assert await limiter.hit("10.0.0.1") == 2
    assert await limiter.hit("10.0.0.2") == 1

    clock[0] += 61
    assert await limiter.hit("10.0.0.1") == 1


@pytest.mark.asyncio
async def test_rate_limit_table_drops_expired_clients(monkeypatch):
    clock = [1000.0]
    monkeypatch.setattr(rate_limit.time, "monotonic", lambda: clock[0])
    monkeypatch.setattr(settings, "RATE_DELAY", 1)

    for i in range(100):
        await limiter.hit(f"10.1.0.{i}")
    assert len(limiter._windows) == 100

    clock[0] += 61
    await limiter.hit("10.2.0.1")
    assert list(limiter._windows) == ["10.2.0.1"]


@pytest.mark.asyncio
async def test_rate_limit_counts_in_redis_with_ttl(monkeypatch):
    monkeypatch.setattr(settings, "RATE_DELAY", 1)
    server = aioredis.FakeRedis(decode_responses=True)
    limiter._redis = server
    try:
        assert await limiter.hit("10.0.0.9") == 1
        assert await limiter.hit("10.0.0.9") == 2
        assert 0 < await server.ttl("ratelimit:10.0.0.9") <= 60
        assert limiter._windows == {}
    finally:
        limiter._redis = None
        await server.aclose()


# ---------------------------------------------------------------------------
# Security helpers
# ---------------------------------------------------------------------------

def test_password_hashing():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret123", "not-a-bcrypt-hash")


def test_password_over_bcrypt_limit_is_not_truncated():
    prefix = "a" * MAX_PASSWORD_BYTES
    hashed = hash_password(prefix)
    assert verify_password(prefix, hashed)
    assert not verify_password(prefix + "b", hashed)
    with pytest.raises(ValueError):
        hash_password(prefix + "b")


def test_access_token_round_trip():
    token = create_access_token("some-subject")
    assert decode_access_token(token) == "some-subject"


def test_expired_or_tampered_token():
    expired = create_access_token("subject", expires_delta=timedelta(minutes=-1))
    assert decode_access_token(expired) is None
    assert decode_access_token(create_access_token("subject") + "x") is None
