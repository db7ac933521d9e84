"""
Calendar override endpoints — company holidays and day notes.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solaris.api.v1.deps import get_current_active_user, get_db, require_admin
from solaris.core.accounting import month_range_keys
from solaris.models.calendar_override import CalendarOverride
from solaris.models.user import User
from solaris.schemas.common import DeleteResponse, check_date_key
from solaris.schemas.profile import CalendarOverrideRead, CalendarOverrideUpsert

router = APIRouter(prefix="/calendar", tags=["calendar"])
logger = logging.getLogger(__name__)


def _validated_key(date_key: str) -> str:
    try:
        return check_date_key(date_key)  # type: ignore[return-value]
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


async def load_overrides(
    db: AsyncSession, year: int | None = None, month: int | None = None
) -> list[CalendarOverride]:
    query = select(CalendarOverride).order_by(CalendarOverride.date_key.asc())
    if year is not None and month is not None:
        start, end = month_range_keys(year, month)
        query = query.where(CalendarOverride.date_key >= start, CalendarOverride.date_key <= end)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.get("/overrides", response_model=list[CalendarOverrideRead])
async def list_overrides(
    year: int | None = Query(default=None, ge=2000, le=2100),
    month: int | None = Query(default=None, ge=1, le=12),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[CalendarOverride]:
    """All overrides, or those of one month when both ``year`` and ``month`` are given."""
    if (year is None) != (month is None):
        raise HTTPException(status_code=422, detail="Pass both year and month, or neither")
    return await load_overrides(db, year, month)


@router.put("/overrides/{date_key}", response_model=CalendarOverrideRead)
async def upsert_override(
    date_key: str,
    body: CalendarOverrideUpsert,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> CalendarOverride:
    """Mark a day as a holiday, or annotate it."""
    date_key = _validated_key(date_key)
    result = await db.execute(select(CalendarOverride).where(CalendarOverride.date_key == date_key))
    override = result.scalar_one_or_none()
    if override is None:
        override = CalendarOverride(date_key=date_key)
        db.add(override)

    override.is_non_working = body.is_non_working
    override.note = body.note

    await db.commit()
    await db.refresh(override)
    logger.info("Calendar override %s set (non-working=%s)", date_key, override.is_non_working)
    return override


@router.delete("/overrides/{date_key}", response_model=DeleteResponse)
async def delete_override(
    date_key: str,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DeleteResponse:
    date_key = _validated_key(date_key)
    result = await db.execute(select(CalendarOverride).where(CalendarOverride.date_key == date_key))
    override = result.scalar_one_or_none()
    if override is None:
        raise HTTPException(status_code=404, detail="Calendar override not found")

    await db.delete(override)
    await db.commit()
    logger.info("Calendar override %s removed", date_key)
    return DeleteResponse(success=True, message=f"Override for {date_key} removed")
