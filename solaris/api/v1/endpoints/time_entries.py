"""
Time entry CRUD + clock-in / clock-out / break endpoints.

- Members read and write only their own entries.
- Admins may list, record and correct entries for anyone.
- Clock operations always act on the caller, using the local wall clock
  (``TIMEZONE_OFFSET``) unless an explicit ``time`` is sent.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solaris.api.v1.deps import (ensure_self_or_admin, get_current_active_user,
                                 get_db, local_now)
from solaris.core.accounting import (BREAK_END_MARKER, BREAK_START_MARKER,
                                     BREAK_STATUS, calculate_hours,
                                     consolidate_day)
from solaris.models.time_entry import TimeEntry
from solaris.models.user import User
from solaris.schemas.common import DeleteResponse, check_date_key
from solaris.schemas.time_entry import (ClockRequest, ClockResponse,
                                        ConsolidatedDayRead, TimeEntryCreate,
                                        TimeEntryRead, TimeEntryUpdate)

router = APIRouter(prefix="/time-entries", tags=["time-entries"])
logger = logging.getLogger(__name__)


# ── Helpers ─────────────────────────────────────────────────────────
async def _get_entry_or_404(db: AsyncSession, entry_id: int) -> TimeEntry:
    result = await db.execute(select(TimeEntry).where(TimeEntry.id == entry_id))
    entry = result.scalar_one_or_none()
    if entry is None:
        raise HTTPException(status_code=404, detail="Time entry not found")
    return entry


async def _day_entries(db: AsyncSession, user_id: int, date_key: str) -> list[TimeEntry]:
    result = await db.execute(
        select(TimeEntry)
        .where(TimeEntry.user_id == user_id, TimeEntry.date_key == date_key)
        .order_by(TimeEntry.id.asc())
    )
    return list(result.scalars().all())


async def _open_entry(db: AsyncSession, user_id: int, date_key: str) -> TimeEntry | None:
    """Latest span of the day that has an entry but no exit yet (row locked)."""
    result = await db.execute(
        select(TimeEntry)
        .where(
            TimeEntry.user_id == user_id,
            TimeEntry.date_key == date_key,
            TimeEntry.entry.is_not(None),
            TimeEntry.exit.is_(None),
        )
        .order_by(TimeEntry.id.desc())
        .limit(1)
        .with_for_update()
    )
    return result.scalar_one_or_none()


def _append_note(note: str | None, marker: str) -> str:
    return f"{note} {marker}".strip() if note else marker


def _today_hours(entries: list[TimeEntry], now_hhmm: str) -> float:
    """Consolidated hours so far today; an open span counts up to now."""
    consolidated = consolidate_day(entries)
    if consolidated is None or consolidated.entry is None:
        return 0.0
    if any(e.entry and not e.exit for e in entries):
        return round(calculate_hours(consolidated.entry, now_hhmm), 2)
    return round(consolidated.hours, 2)


async def _clock_response(
    db: AsyncSession, event: str, time_str: str, entry: TimeEntry
) -> ClockResponse:
    today = await _day_entries(db, entry.user_id, entry.date_key)
    return ClockResponse(
        success=True,
        event=event,
        time=time_str,
        entry=TimeEntryRead.model_validate(entry),
        today_hours=_today_hours(today, time_str),
    )


def _resolve_clock(body: ClockRequest | None) -> tuple[str, str]:
    now = local_now()
    time_str = body.time if body and body.time else now.strftime("%H:%M")
    return now.strftime("%Y-%m-%d"), time_str


# ── CRUD ────────────────────────────────────────────────────────────
@router.get("", response_model=list[TimeEntryRead])
async def list_time_entries(
    start: str | None = Query(default=None, description="First date key, inclusive"),
    end: str | None = Query(default=None, description="Last date key, inclusive"),
    user_id: int | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[TimeEntry]:
    """List entries ordered by date. Members always get their own only."""
    for value in (start, end):
        try:
            check_date_key(value)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

    if not current_user.is_admin:
        if user_id is not None:
            ensure_self_or_admin(user_id, current_user)
        user_id = current_user.id

    query = select(TimeEntry).order_by(TimeEntry.date_key.asc(), TimeEntry.id.asc())
    if user_id is not None:
        query = query.where(TimeEntry.user_id == user_id)
    if start:
        query = query.where(TimeEntry.date_key >= start)
    if end:
        query = query.where(TimeEntry.date_key <= end)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("", response_model=TimeEntryRead, status_code=201)
async def create_time_entry(
    body: TimeEntryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> TimeEntry:
    """Record a span manually. Admins may set ``user_id`` to record for others."""
    user_id = body.user_id if body.user_id is not None else current_user.id
    ensure_self_or_admin(user_id, current_user)

    entry = TimeEntry(
        user_id=user_id,
        date_key=body.date_key,
        entry=body.entry,
        exit=body.exit,
        status=body.status or "present",
        note=body.note,
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    logger.info("Created time entry %d for user %d on %s", entry.id, user_id, entry.date_key)
    return entry


@router.get("/day/{date_key}", response_model=ConsolidatedDayRead)
async def get_consolidated_day(
    date_key: str,
    user_id: int | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ConsolidatedDayRead:
    """All spans of one user's day collapsed into a single entry / exit."""
    try:
        check_date_key(date_key)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    target = user_id if user_id is not None else current_user.id
    ensure_self_or_admin(target, current_user)

    consolidated = consolidate_day(await _day_entries(db, target, date_key))
    if consolidated is None:
        raise HTTPException(status_code=404, detail="No time entries for this day")

    return ConsolidatedDayRead(
        date_key=consolidated.date_key,
        user_id=target,
        entry=consolidated.entry,
        exit=consolidated.exit,
        status=consolidated.status,
        note=consolidated.note,
        hours=round(consolidated.hours, 2),
        entry_ids=list(consolidated.entry_ids),
    )


@router.patch("/{entry_id}", response_model=TimeEntryRead)
async def update_time_entry(
    entry_id: int,
    body: TimeEntryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> TimeEntry:
    entry = await _get_entry_or_404(db, entry_id)
    ensure_self_or_admin(entry.user_id, current_user)

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(entry, field, value)

    await db.commit()
    await db.refresh(entry)
    logger.info("Updated time entry %d: %s", entry_id, sorted(body.model_fields_set))
    return entry


@router.delete("/{entry_id}", response_model=DeleteResponse)
async def delete_time_entry(
    entry_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> DeleteResponse:
    entry = await _get_entry_or_404(db, entry_id)
    ensure_self_or_admin(entry.user_id, current_user)

    await db.delete(entry)
    await db.commit()
    logger.info("Deleted time entry %d (user %d, %s)", entry_id, entry.user_id, entry.date_key)
    return DeleteResponse(success=True, message="Time entry deleted")


# ── Clock ───────────────────────────────────────────────────────────
@router.post("/clock-in", response_model=ClockResponse, status_code=201)
async def clock_in(
    body: ClockRequest | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ClockResponse:
    """Open a new span for today. Rejected while a span is still open."""
    date_key, time_str = _resolve_clock(body)

    if await _open_entry(db, current_user.id, date_key) is not None:
        raise HTTPException(status_code=409, detail="Already clocked in")

    entry = TimeEntry(
        user_id=current_user.id,
        date_key=date_key,
        entry=time_str,
        status="present",
        note=body.note if body else None,
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    logger.info("Clock-in for user %d at %s %s", current_user.id, date_key, time_str)
    return await _clock_response(db, "CLOCK_IN", time_str, entry)


@router.post("/clock-out", response_model=ClockResponse)
async def clock_out(
    body: ClockRequest | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ClockResponse:
    """Close today's open span. A running break is ended with it."""
    date_key, time_str = _resolve_clock(body)

    entry = await _open_entry(db, current_user.id, date_key)
    if entry is None:
        raise HTTPException(status_code=409, detail="Not clocked in")

    if entry.status == BREAK_STATUS:
        entry.note = _append_note(entry.note, f"{BREAK_END_MARKER}{time_str}")
        entry.status = "present"
    if body and body.note:
        entry.note = _append_note(entry.note, body.note)
    entry.exit = time_str

    await db.commit()
    await db.refresh(entry)
    logger.info("Clock-out for user %d at %s %s", current_user.id, date_key, time_str)
    return await _clock_response(db, "CLOCK_OUT", time_str, entry)


@router.post("/break/start", response_model=ClockResponse)
async def break_start(
    body: ClockRequest | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ClockResponse:
    """Mark the open span as on a paid break."""
    date_key, time_str = _resolve_clock(body)

    entry = await _open_entry(db, current_user.id, date_key)
    if entry is None:
        raise HTTPException(status_code=409, detail="Not clocked in")
    if entry.status == BREAK_STATUS:
        raise HTTPException(status_code=409, detail="Break already started")

    entry.status = BREAK_STATUS
    entry.note = _append_note(entry.note, f"{BREAK_START_MARKER}{time_str}")

    await db.commit()
    await db.refresh(entry)
    logger.info("Break start for user %d at %s %s", current_user.id, date_key, time_str)
    return await _clock_response(db, "BREAK_START", time_str, entry)


@router.post("/break/end", response_model=ClockResponse)
async def break_end(
    body: ClockRequest | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ClockResponse:
    date_key, time_str = _resolve_clock(body)

    entry = await _open_entry(db, current_user.id, date_key)
    if entry is None:
        raise HTTPException(status_code=409, detail="Not clocked in")
    if entry.status != BREAK_STATUS:
        raise HTTPException(status_code=409, detail="No break in progress")

    entry.status = "present"
    entry.note = _append_note(entry.note, f"{BREAK_END_MARKER}{time_str}")

    await db.commit()
    await db.refresh(entry)
    logger.info("Break end for user %d at %s %s", current_user.id, date_key, time_str)
    return await _clock_response(db, "BREAK_END", time_str, entry)
