"""Tests for the notification inbox and the events that fill it."""

import pytest
from httpx import AsyncClient

ADMIN_ID = 1
MEMBER_ID = 2
TRAINER_ID = 3
URL = "/api/v1/notifications"


async def _inbox(client: AsyncClient, **params) -> list[dict]:
    resp = await client.get(URL, params=params)
    assert resp.status_code == 200
    return resp.json()


async def _messages(client: AsyncClient) -> list[str]:
    return [n["message"] for n in await _inbox(client)]


# ── Inbox ───────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_todo_assignment_fills_inbox(async_client: AsyncClient, act_as):
    await async_client.post(
        "/api/v1/todos", json={"title": "Order toner", "assigned_to": [MEMBER_ID, ADMIN_ID]}
    )

    # The creator does not notify themselves
    assert await _inbox(async_client) == []

    act_as(MEMBER_ID)
    inbox = await _inbox(async_client)
    assert len(inbox) == 1
    assert inbox[0]["user_id"] == MEMBER_ID
    assert inbox[0]["message"] == 'You have been assigned a new to-do: "Order toner"'
    assert inbox[0]["read"] is False


@pytest.mark.asyncio
async def test_mark_read_and_unread_filter(async_client: AsyncClient, act_as):
    for title in ("First", "Second"):
        await async_client.post("/api/v1/todos", json={"title": title, "assigned_to": [MEMBER_ID]})

    act_as(MEMBER_ID)
    inbox = await _inbox(async_client)
    assert inbox[0]["message"].endswith('"Second"')
    assert inbox[1]["message"].endswith('"First"')

    resp = await async_client.post(f"{URL}/{inbox[1]['id']}/read")
    assert resp.status_code == 200
    assert resp.json()["read"] is True

    unread = await _inbox(async_client, unread_only=True)
    assert [n["id"] for n in unread] == [inbox[0]["id"]]


@pytest.mark.asyncio
async def test_mark_all_read(async_client: AsyncClient, act_as):
    for title in ("A", "B", "C"):
        await async_client.post("/api/v1/todos", json={"title": title, "assigned_to": [MEMBER_ID, TRAINER_ID]})

    act_as(MEMBER_ID)
    resp = await async_client.post(f"{URL}/read-all")
    assert resp.status_code == 200
    assert resp.json() == {"updated": 3}
    assert await _inbox(async_client, unread_only=True) == []

    # Nothing left to mark
    assert (await async_client.post(f"{URL}/read-all")).json() == {"updated": 0}

    # Other inboxes are untouched
    act_as(TRAINER_ID)
    assert len(await _inbox(async_client, unread_only=True)) == 3


@pytest.mark.asyncio
async def test_cannot_mark_someone_elses_notification(async_client: AsyncClient, act_as):
    await async_client.post("/api/v1/todos", json={"title": "Private", "assigned_to": [MEMBER_ID]})
    act_as(MEMBER_ID)
    notification_id = (await _inbox(async_client))[0]["id"]

    act_as(TRAINER_ID)
    assert await _inbox(async_client) == []
    assert (await async_client.post(f"{URL}/{notification_id}/read")).status_code == 403
    assert (await async_client.post(f"{URL}/999/read")).status_code == 404


# ── Request events ──────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_absence_request_and_decision(async_client: AsyncClient, act_as):
    act_as(MEMBER_ID)
    resp = await async_client.post(
        "/api/v1/absences",
        json={"date_key": "2025-07-07", "end_date": "2025-07-11", "type": "vacation"},
    )
    absence_id = resp.json()["id"]

    act_as(ADMIN_ID)
    assert await _messages(async_client) == ["New vacation request from Mia Member for 2025-07-07 to 2025-07-11"]
    await async_client.post(f"/api/v1/absences/{absence_id}/resolve", json={"status": "approved"})

    act_as(MEMBER_ID)
    assert await _messages(async_client) == ["Your vacation request for 2025-07-07 to 2025-07-11 was approved"]


@pytest.mark.asyncio
async def test_admin_recorded_absence_does_not_notify_admins(async_client: AsyncClient):
    await async_client.post(
        "/api/v1/absences",
        json={"date_key": "2025-07-07", "type": "absence", "user_id": MEMBER_ID, "status": "approved"},
    )
    assert await _inbox(async_client) == []


@pytest.mark.asyncio
async def test_training_request_and_reschedule(async_client: AsyncClient, act_as):
    act_as(MEMBER_ID)
    training_id = (
        await async_client.post("/api/v1/trainings", json={"requested_date_key": "2025-05-12"})
    ).json()["id"]

    act_as(TRAINER_ID)
    assert await _messages(async_client) == ["New training request from Mia Member for 2025-05-12"]
    await async_client.put(
        f"/api/v1/trainings/{training_id}/status",
        json={"status": "rescheduled", "scheduled_date_key": "2025-05-19"},
    )

    act_as(MEMBER_ID)
    assert await _messages(async_client) == ["Your training request for 2025-05-12 was rescheduled to 2025-05-19"]


@pytest.mark.asyncio
async def test_meeting_decision_reaches_creator_and_participants(async_client: AsyncClient, act_as):
    act_as(MEMBER_ID)
    meeting_id = (
        await async_client.post(
            "/api/v1/meetings", json={"title": "Sprint planning", "participants": [TRAINER_ID]}
        )
    ).json()["id"]

    act_as(ADMIN_ID)
    assert await _messages(async_client) == ['New meeting request "Sprint planning" from Mia Member']
    await async_client.post(
        f"/api/v1/meetings/{meeting_id}/resolve",
        json={"status": "scheduled", "scheduled_date_key": "2025-04-08", "scheduled_time": "10:30"},
    )

    expected = ['Meeting "Sprint planning" scheduled for 2025-04-08 10:30']
    act_as(MEMBER_ID)
    assert await _messages(async_client) == expected
    act_as(TRAINER_ID)
    assert await _messages(async_client) == expected
