"""Tests for the health and status endpoints."""

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

MEMBER_ID = 2


@pytest.mark.asyncio
async def test_health_reports_database(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["db"] is True
    # Redis availability depends on the environment
    assert isinstance(data["redis"], bool)


class _FailingRedis:
    """Stand-in client whose ping fails, recording whether it was closed."""

    def __init__(self):
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True

    async def ping(self):
        raise ConnectionError("redis unavailable")


@pytest.mark.asyncio
async def test_health_closes_redis_client_on_failed_ping(async_client: AsyncClient, monkeypatch):
    from solaris.api.v1.endpoints import system

    client = _FailingRedis()
    monkeypatch.setattr(system.aioredis, "from_url", lambda *args, **kwargs: client)

    resp = await async_client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json() == {"db": True, "redis": False}
    assert client.closed is True


@pytest.mark.asyncio
async def test_status_counts(async_client: AsyncClient, act_as):
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    await async_client.post(
        "/api/v1/time-entries",
        json={"date_key": today, "entry": "08:00", "exit": "12:00", "user_id": MEMBER_ID},
    )
    await async_client.post("/api/v1/time-entries/clock-in", json={"time": "13:00"})

    act_as(MEMBER_ID)
    await async_client.post("/api/v1/absences", json={"date_key": "2025-09-01", "type": "vacation"})

    resp = await async_client.get("/api/v1/status")
    assert resp.status_code == 200
    assert resp.json() == {
        "total_users": 3,
        "today_entries": 2,
        "active_sessions": 1,
        "pending_absences": 1,
        "status": "operational",
    }
