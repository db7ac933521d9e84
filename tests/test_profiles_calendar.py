"""Tests for work profiles and calendar overrides."""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from solaris.models.work_profile import WorkProfile

ADMIN_ID = 1
MEMBER_ID = 2
TRAINER_ID = 3


# ── Work profiles ───────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_profile_seeded_with_defaults_on_first_read(async_client: AsyncClient, db_session, act_as):
    act_as(MEMBER_ID)
    resp = await async_client.get(f"/api/v1/profiles/{MEMBER_ID}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["user_id"] == MEMBER_ID
    assert data["weekly_hours"] == 40
    assert data["vacation_days_total"] == 22
    assert data["hours_adjustment"] == 0
    assert data["vacation_adjustment"] == 0

    # A second read reuses the same row
    await async_client.get(f"/api/v1/profiles/{MEMBER_ID}")
    count = await db_session.execute(
        select(func.count(WorkProfile.id)).where(WorkProfile.user_id == MEMBER_ID)
    )
    assert count.scalar() == 1


@pytest.mark.asyncio
async def test_member_cannot_read_other_profiles(async_client: AsyncClient, act_as):
    act_as(MEMBER_ID)
    assert (await async_client.get(f"/api/v1/profiles/{ADMIN_ID}")).status_code == 403
    assert (await async_client.get("/api/v1/profiles")).status_code == 403


@pytest.mark.asyncio
async def test_profile_of_unknown_user_is_404(async_client: AsyncClient):
    assert (await async_client.get("/api/v1/profiles/999")).status_code == 404


@pytest.mark.asyncio
async def test_admin_lists_all_profiles(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/profiles")
    assert resp.status_code == 200
    assert [p["user_id"] for p in resp.json()] == [ADMIN_ID, MEMBER_ID, TRAINER_ID]


@pytest.mark.asyncio
async def test_admin_partial_update(async_client: AsyncClient):
    resp = await async_client.patch(f"/api/v1/profiles/{MEMBER_ID}", json={"weekly_hours": 30})
    assert resp.status_code == 200
    data = resp.json()
    assert data["weekly_hours"] == 30
    assert data["vacation_days_total"] == 22

    resp = await async_client.patch(f"/api/v1/profiles/{MEMBER_ID}", json={"vacation_adjustment": -1.5})
    assert resp.json()["weekly_hours"] == 30
    assert resp.json()["vacation_adjustment"] == -1.5


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"weekly_hours": -1}, {"weekly_hours": 81}, {"vacation_days_total": 400}])
async def test_profile_bounds(async_client: AsyncClient, payload):
    resp = await async_client.patch(f"/api/v1/profiles/{MEMBER_ID}", json=payload)
    assert resp.status_code == 422


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field", ["weekly_hours", "vacation_days_total", "hours_adjustment", "vacation_adjustment"]
)
async def test_null_profile_field_rejected(async_client: AsyncClient, field):
    resp = await async_client.patch(f"/api/v1/profiles/{MEMBER_ID}", json={field: None})
    assert resp.status_code == 422

    # The stored profile is untouched
    resp = await async_client.get(f"/api/v1/profiles/{MEMBER_ID}")
    assert resp.json()[field] is not None


@pytest.mark.asyncio
async def test_member_cannot_update_profile(async_client: AsyncClient, act_as):
    act_as(MEMBER_ID)
    resp = await async_client.patch(f"/api/v1/profiles/{MEMBER_ID}", json={"weekly_hours": 10})
    assert resp.status_code == 403


# ── Calendar overrides ──────────────────────────────────────────────
@pytest.mark.asyncio
async def test_upsert_and_list_overrides(async_client: AsyncClient):
    resp = await async_client.put("/api/v1/calendar/overrides/2025-12-25", json={"note": "Christmas"})
    assert resp.status_code == 200
    assert resp.json()["is_non_working"] is True

    # Same key again updates in place
    resp = await async_client.put(
        "/api/v1/calendar/overrides/2025-12-25",
        json={"is_non_working": False, "note": "Office party"},
    )
    assert resp.json()["note"] == "Office party"
    assert resp.json()["is_non_working"] is False

    await async_client.put("/api/v1/calendar/overrides/2026-01-01", json={"note": "New year"})

    resp = await async_client.get("/api/v1/calendar/overrides")
    assert [o["date_key"] for o in resp.json()] == ["2025-12-25", "2026-01-01"]

    resp = await async_client.get("/api/v1/calendar/overrides", params={"year": 2025, "month": 12})
    assert [o["date_key"] for o in resp.json()] == ["2025-12-25"]


@pytest.mark.asyncio
async def test_list_needs_year_and_month_together(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/calendar/overrides", params={"year": 2025})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_bad_override_date_rejected(async_client: AsyncClient):
    resp = await async_client.put("/api/v1/calendar/overrides/2025-02-30", json={})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_delete_override(async_client: AsyncClient):
    await async_client.put("/api/v1/calendar/overrides/2025-12-26", json={})
    assert (await async_client.delete("/api/v1/calendar/overrides/2025-12-26")).status_code == 200
    assert (await async_client.delete("/api/v1/calendar/overrides/2025-12-26")).status_code == 404


@pytest.mark.asyncio
async def test_members_read_but_cannot_edit_calendar(async_client: AsyncClient, act_as):
    act_as(MEMBER_ID)
    assert (await async_client.get("/api/v1/calendar/overrides")).status_code == 200
    assert (await async_client.put("/api/v1/calendar/overrides/2025-12-25", json={})).status_code == 403
