"""
Notification inbox endpoints.

Other routers call ``add_notifications`` inside their own transaction,
so an inbox row is only stored if the triggering change commits.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from solaris.api.v1.deps import get_current_active_user, get_db
from solaris.core.config import settings
from solaris.models.notification import Notification
from solaris.models.user import User
from solaris.schemas.notification import MarkAllReadResponse, NotificationRead

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


def add_notifications(
    db: AsyncSession,
    user_ids: Iterable[int],
    message: str,
    *,
    exclude: int | None = None,
) -> list[int]:
    """Queue one inbox row per recipient; the caller commits."""
    recipients = [uid for uid in dict.fromkeys(user_ids) if uid != exclude]
    for uid in recipients:
        db.add(Notification(user_id=uid, message=message[:500], read=False))
    if recipients:
        logger.info("Queued notification for users %s: %s", recipients, message)
    return recipients


async def admin_ids(db: AsyncSession) -> list[int]:
    result = await db.execute(
        select(User.id).where(User.role == "admin", User.is_active.is_(True)).order_by(User.id)
    )
    return list(result.scalars().all())


async def training_manager_ids(db: AsyncSession) -> list[int]:
    condition = User.is_training_manager.is_(True)
    if settings.TRAINING_MANAGER_EMAIL:
        condition = or_(condition, User.email == settings.TRAINING_MANAGER_EMAIL.strip().lower())
    result = await db.execute(
        select(User.id).where(condition, User.is_active.is_(True)).order_by(User.id)
    )
    return list(result.scalars().all())


@router.get("", response_model=list[NotificationRead])
async def list_notifications(
    unread_only: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[Notification]:
    """The caller's own inbox, newest first."""
    query = select(Notification).where(Notification.user_id == current_user.id)
    if unread_only:
        query = query.where(Notification.read.is_(False))
    result = await db.execute(
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return list(result.scalars().all())


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MarkAllReadResponse:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == current_user.id, Notification.read.is_(False))
        .values(read=True)
    )
    await db.commit()
    logger.info("User %d marked %d notification(s) read", current_user.id, result.rowcount)
    return MarkAllReadResponse(updated=result.rowcount or 0)


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Notification:
    result = await db.execute(select(Notification).where(Notification.id == notification_id))
    notification = result.scalar_one_or_none()
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    if notification.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to access another user's notifications",
        )

    notification.read = True
    await db.commit()
    await db.refresh(notification)
    return notification
