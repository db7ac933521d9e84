"""
Health and status endpoints.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from solaris.api.v1.deps import get_current_active_user, get_db, local_now
from solaris.core.config import settings
from solaris.models.absence import AbsenceRequest
from solaris.models.time_entry import TimeEntry
from solaris.models.user import User
from solaris.schemas.common import HealthResponse, StatusResponse

router = APIRouter(tags=["system"])
logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Public health check — DB and Redis connectivity."""
    result = HealthResponse(db=False, redis=False)

    try:
        await db.execute(select(1))
        result.db = True
    except Exception as e:
        logger.error("Health check DB failure: %s", e)

    try:
        async with aioredis.from_url(settings.REDIS_URL) as r:
            await r.ping()
        result.redis = True
    except Exception as e:
        logger.error("Health check Redis failure: %s", e)

    return result


@router.get("/status", response_model=StatusResponse)
async def system_status(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> StatusResponse:
    """Active users, today's entries, open clock sessions and pending requests."""
    today_str = local_now().strftime("%Y-%m-%d")

    user_count = await db.execute(
        select(func.count(User.id)).where(User.is_active.is_(True))
    )
    entry_count = await db.execute(
        select(func.count(TimeEntry.id)).where(TimeEntry.date_key == today_str)
    )
    open_count = await db.execute(
        select(func.count(TimeEntry.id)).where(
            TimeEntry.date_key == today_str,
            TimeEntry.entry.is_not(None),
            TimeEntry.exit.is_(None),
        )
    )
    pending_count = await db.execute(
        select(func.count(AbsenceRequest.id)).where(AbsenceRequest.status == "pending")
    )

    return StatusResponse(
        total_users=user_count.scalar() or 0,
        today_entries=entry_count.scalar() or 0,
        active_sessions=open_count.scalar() or 0,
        pending_absences=pending_count.scalar() or 0,
        status="operational",
    )
