"""
Work profile endpoints — weekly hours, vacation allowance and the
admin adjustment deltas, one row per user.

A profile is created with the configured defaults the first time it is
read, so callers never see a "missing profile" error.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from solaris.api.v1.deps import (ensure_self_or_admin, get_current_active_user,
                                 get_db, get_user_or_404, require_admin)
from solaris.core.config import settings
from solaris.models.user import User
from solaris.models.work_profile import WorkProfile
from solaris.schemas.profile import WorkProfileRead, WorkProfileUpdate

router = APIRouter(prefix="/profiles", tags=["profiles"])
logger = logging.getLogger(__name__)


async def get_or_create_profile(db: AsyncSession, user_id: int) -> WorkProfile:
    """Fetch a user's profile, creating it with defaults if absent."""
    result = await db.execute(select(WorkProfile).where(WorkProfile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if profile is not None:
        return profile

    try:
        profile = WorkProfile(
            user_id=user_id,
            weekly_hours=settings.DEFAULT_WEEKLY_HOURS,
            vacation_days_total=settings.DEFAULT_VACATION_DAYS,
            hours_adjustment=0.0,
            vacation_adjustment=0.0,
        )
        db.add(profile)
        await db.commit()
        await db.refresh(profile)
        logger.info("Created default work profile for user %d", user_id)
    except IntegrityError:
        await db.rollback()
        result = await db.execute(select(WorkProfile).where(WorkProfile.user_id == user_id))
        profile = result.scalar_one()
        logger.info("Race condition handled for profile of user %d", user_id)
    return profile


async def apply_profile_update(
    db: AsyncSession, user_id: int, changes: dict
) -> WorkProfile:
    """Merge a partial update into the profile (last write wins)."""
    profile = await get_or_create_profile(db, user_id)
    for field, value in changes.items():
        setattr(profile, field, value)
    await db.commit()
    await db.refresh(profile)
    logger.info("Work profile of user %d updated: %s", user_id, changes)
    return profile


@router.get("", response_model=list[WorkProfileRead])
async def list_profiles(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> list[WorkProfile]:
    """Profiles of every active user, seeding missing ones."""
    result = await db.execute(
        select(User.id).where(User.is_active.is_(True)).order_by(User.id)
    )
    return [await get_or_create_profile(db, uid) for uid in result.scalars().all()]


@router.get("/{user_id}", response_model=WorkProfileRead)
async def get_profile(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> WorkProfile:
    ensure_self_or_admin(user_id, current_user)
    await get_user_or_404(db, user_id)
    return await get_or_create_profile(db, user_id)


@router.patch("/{user_id}", response_model=WorkProfileRead)
async def update_profile(
    user_id: int,
    body: WorkProfileUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> WorkProfile:
    """Set weekly hours, vacation allowance or the raw adjustment deltas."""
    await get_user_or_404(db, user_id)
    return await apply_profile_update(db, user_id, body.model_dump(exclude_unset=True))
