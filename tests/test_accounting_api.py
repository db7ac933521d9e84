"""Tests for the monthly accounting endpoints."""

import pytest
from httpx import AsyncClient

ADMIN_ID = 1
MEMBER_ID = 2
TRAINER_ID = 3
URL = "/api/v1/accounting"


async def _work(client: AsyncClient, date_key: str, entry: str, exit: str, user_id: int = MEMBER_ID):
    resp = await client.post(
        "/api/v1/time-entries",
        json={"date_key": date_key, "entry": entry, "exit": exit, "user_id": user_id},
    )
    assert resp.status_code == 201


async def _absence(client: AsyncClient, **fields):
    payload = {"user_id": MEMBER_ID, "status": "approved"}
    payload.update(fields)
    resp = await client.post("/api/v1/absences", json=payload)
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_monthly_summary_with_paid_permit(async_client: AsyncClient):
    await _work(async_client, "2025-03-03", "09:00", "17:00")
    await _absence(
        async_client,
        date_key="2025-03-04",
        end_date="2025-03-05",
        type="special_permit",
        resolution_type="paid",
    )

    resp = await async_client.get(f"{URL}/monthly/2025/3", params={"user_id": MEMBER_ID})
    assert resp.status_code == 200
    data = resp.json()
    assert data["user_id"] == MEMBER_ID
    assert data["name"] == "Mia Member"
    assert data["working_days"] == 21
    assert data["expected_hours"] == 168
    assert data["real_hours"] == 8
    assert data["paid_permit_hours"] == 16
    assert data["worked_hours"] == 24
    assert data["remaining_hours"] == 144
    assert data["balance_hours"] == -144
    assert len(data["days"]) == 31
    assert data["days"][2] == {
        "date_key": "2025-03-03",
        "entry": "09:00",
        "exit": "17:00",
        "hours": 8.0,
        "status": "present",
        "is_working_day": True,
    }


@pytest.mark.asyncio
async def test_holiday_lowers_expected_hours(async_client: AsyncClient):
    before = (await async_client.get(f"{URL}/monthly/2025/3")).json()["expected_hours"]
    await async_client.put("/api/v1/calendar/overrides/2025-03-19", json={"note": "Local holiday"})
    after = (await async_client.get(f"{URL}/monthly/2025/3")).json()
    assert before - after["expected_hours"] == 8
    assert after["working_days"] == 20


@pytest.mark.asyncio
async def test_rejected_and_pending_requests(async_client: AsyncClient):
    await _absence(async_client, date_key="2025-03-10", end_date="2025-03-11",
                   type="special_permit", resolution_type="paid", status="rejected")
    await _absence(async_client, date_key="2025-06-02", end_date="2025-06-06", type="vacation", status="rejected")
    await _absence(async_client, date_key="2025-07-01", type="vacation", status="pending")

    data = (await async_client.get(f"{URL}/monthly/2025/3", params={"user_id": MEMBER_ID})).json()
    assert data["paid_permit_hours"] == 0
    assert data["vacation"]["raw_used"] == 1
    assert data["vacation"]["remaining"] == 21


@pytest.mark.asyncio
async def test_member_sees_only_own_accounting(async_client: AsyncClient, act_as):
    act_as(MEMBER_ID)
    assert (await async_client.get(f"{URL}/monthly/2025/3")).json()["user_id"] == MEMBER_ID
    assert (await async_client.get(f"{URL}/monthly/2025/3", params={"user_id": ADMIN_ID})).status_code == 403
    assert (await async_client.get(f"{URL}/vacation", params={"user_id": ADMIN_ID})).status_code == 403
    assert (await async_client.get(f"{URL}/team/2025/3")).status_code == 403
    assert (await async_client.get(f"{URL}/adjustments/{MEMBER_ID}/2025/3")).status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["monthly/2025/13", "monthly/1999/1", "team/2025/0"])
async def test_out_of_range_month_rejected(async_client: AsyncClient, path):
    assert (await async_client.get(f"{URL}/{path}")).status_code == 422


@pytest.mark.asyncio
async def test_vacation_summary(async_client: AsyncClient):
    await _absence(async_client, date_key="2025-07-07", end_date="2025-07-11", type="vacation")
    resp = await async_client.get(f"{URL}/vacation", params={"user_id": MEMBER_ID})
    assert resp.status_code == 200
    assert resp.json() == {
        "user_id": MEMBER_ID,
        "total": 22,
        "raw_used": 5,
        "adjustment": 0.0,
        "used": 5.0,
        "remaining": 17.0,
    }


@pytest.mark.asyncio
async def test_monthly_csv_export(async_client: AsyncClient):
    await _work(async_client, "2025-02-03", "08:00", "16:30")
    resp = await async_client.get(f"{URL}/monthly/2025/2/csv", params={"user_id": MEMBER_ID})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "hours_2_2025-02.csv" in resp.headers["content-disposition"]

    lines = resp.text.strip().splitlines()
    assert lines[0] == "date,entry,exit,hours,status,working_day"
    assert "2025-02-01,,,0.0,,no" in lines
    assert "2025-02-03,08:00,16:30,8.5,present,yes" in lines
    assert lines[-1] == "worked_hours,,,8.5,,"
    # header + 28 days + two totals
    assert len(lines) == 31


@pytest.mark.asyncio
async def test_adjustment_round_trip(async_client: AsyncClient):
    await _work(async_client, "2025-03-03", "08:07", "16:41")
    await _work(async_client, "2025-03-04", "09:13", "17:02")
    await _absence(async_client, date_key="2025-05-05", end_date="2025-05-07", type="vacation")

    snapshot = (await async_client.get(f"{URL}/adjustments/{MEMBER_ID}/2025/3")).json()
    assert snapshot["raw_worked_hours"] == 16.4
    assert snapshot["raw_vacation_used"] == 3
    assert snapshot["displayed_worked_hours"] == 16.4

    resp = await async_client.put(
        f"{URL}/adjustments/{MEMBER_ID}",
        json={
            "year": 2025,
            "month": 3,
            "displayed_worked_hours": 133.3,
            "displayed_vacation_used": 7,
            "raw_worked_hours": snapshot["raw_worked_hours"],
            "raw_vacation_used": snapshot["raw_vacation_used"],
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["update"] == {"hours_adjustment": 116.9, "vacation_adjustment": 4.0}
    assert body["profile"]["hours_adjustment"] == 116.9

    data = (await async_client.get(f"{URL}/monthly/2025/3", params={"user_id": MEMBER_ID})).json()
    assert data["raw_worked_hours"] == 16.4
    assert data["worked_hours"] == 133.3
    assert data["vacation"]["used"] == 7
    assert data["vacation"]["remaining"] == 15


@pytest.mark.asyncio
async def test_adjustment_recomputes_raw_when_not_sent(async_client: AsyncClient):
    await _work(async_client, "2025-03-03", "09:00", "17:00")
    resp = await async_client.put(
        f"{URL}/adjustments/{MEMBER_ID}",
        json={"year": 2025, "month": 3, "displayed_worked_hours": 10, "weekly_hours": 20},
    )
    assert resp.status_code == 200
    assert resp.json()["update"] == {"weekly_hours": 20, "hours_adjustment": 2.0}

    data = (await async_client.get(f"{URL}/monthly/2025/3", params={"user_id": MEMBER_ID})).json()
    assert data["worked_hours"] == 10
    assert data["expected_hours"] == 84


@pytest.mark.asyncio
async def test_adjustment_requires_admin(async_client: AsyncClient, act_as):
    act_as(MEMBER_ID)
    resp = await async_client.put(
        f"{URL}/adjustments/{MEMBER_ID}",
        json={"year": 2025, "month": 3, "displayed_worked_hours": 200},
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_team_overview(async_client: AsyncClient):
    await _work(async_client, "2025-03-03", "09:00", "17:00", user_id=MEMBER_ID)
    await _work(async_client, "2025-03-03", "08:00", "12:00", user_id=TRAINER_ID)
    await async_client.patch(f"/api/v1/profiles/{TRAINER_ID}", json={"weekly_hours": 20})

    resp = await async_client.get(f"{URL}/team/2025/3")
    assert resp.status_code == 200
    data = resp.json()
    assert data["working_days"] == 21
    by_id = {u["user_id"]: u for u in data["users"]}
    assert set(by_id) == {ADMIN_ID, MEMBER_ID, TRAINER_ID}
    assert by_id[MEMBER_ID]["worked_hours"] == 8
    assert by_id[TRAINER_ID]["worked_hours"] == 4
    assert by_id[TRAINER_ID]["expected_hours"] == 84
    assert by_id[ADMIN_ID]["worked_hours"] == 0
    assert all(u["days"] == [] for u in data["users"])
