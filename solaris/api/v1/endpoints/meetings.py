"""
Meeting request endpoints.

Members propose a meeting with a preferred day / slot and participants;
an admin schedules or rejects it.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solaris.api.v1.deps import (ensure_users_exist, get_current_active_user,
                                 get_db, require_admin)
from solaris.api.v1.endpoints.notifications import add_notifications, admin_ids
from solaris.models.collaboration import MeetingRequest
from solaris.models.user import User
from solaris.schemas.collaboration import (MeetingCreate, MeetingRead,
                                           MeetingResolve)
from solaris.schemas.common import DeleteResponse

router = APIRouter(prefix="/meetings", tags=["meetings"])
logger = logging.getLogger(__name__)


async def _get_meeting_or_404(db: AsyncSession, meeting_id: int) -> MeetingRequest:
    result = await db.execute(select(MeetingRequest).where(MeetingRequest.id == meeting_id))
    meeting = result.scalar_one_or_none()
    if meeting is None:
        raise HTTPException(status_code=404, detail="Meeting request not found")
    return meeting


@router.get("", response_model=list[MeetingRead])
async def list_meetings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[MeetingRequest]:
    """Admins see all; others see meetings they created or are invited to."""
    result = await db.execute(
        select(MeetingRequest).order_by(MeetingRequest.created_at.desc(), MeetingRequest.id.desc())
    )
    meetings = list(result.scalars().all())
    if current_user.is_admin:
        return meetings
    # participants is a JSON list, filtered here for portability across backends
    return [
        m for m in meetings
        if m.created_by == current_user.id or current_user.id in (m.participants or [])
    ]


@router.post("", response_model=MeetingRead, status_code=201)
async def create_meeting(
    body: MeetingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MeetingRequest:
    participants = list(dict.fromkeys(body.participants))
    await ensure_users_exist(db, participants)

    meeting = MeetingRequest(
        created_by=current_user.id,
        title=body.title,
        description=body.description,
        preferred_date_key=body.preferred_date_key,
        preferred_slot=body.preferred_slot,
        participants=participants,
        status="pending",
        attachments=[a.model_dump() for a in body.attachments],
    )
    db.add(meeting)
    add_notifications(
        db,
        await admin_ids(db),
        f'New meeting request "{meeting.title}" from {current_user.name or current_user.email}',
        exclude=current_user.id,
    )
    await db.commit()
    await db.refresh(meeting)
    logger.info("Meeting request %d '%s' by user %d", meeting.id, meeting.title, current_user.id)
    return meeting


@router.post("/{meeting_id}/resolve", response_model=MeetingRead)
async def resolve_meeting(
    meeting_id: int,
    body: MeetingResolve,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> MeetingRequest:
    """Schedule (date + optional time) or reject a pending meeting."""
    meeting = await _get_meeting_or_404(db, meeting_id)
    if meeting.status != "pending":
        raise HTTPException(status_code=409, detail=f"Meeting already {meeting.status}")

    meeting.status = body.status
    meeting.response_message = body.response_message
    if body.status == "scheduled":
        meeting.scheduled_date_key = body.scheduled_date_key
        meeting.scheduled_time = body.scheduled_time
        when = " ".join(filter(None, [meeting.scheduled_date_key, meeting.scheduled_time]))
        message = f'Meeting "{meeting.title}" scheduled for {when}'
    else:
        message = f'Meeting "{meeting.title}" was rejected'
    add_notifications(db, [meeting.created_by, *(meeting.participants or [])], message, exclude=admin.id)

    await db.commit()
    await db.refresh(meeting)
    logger.info("Meeting request %d %s by admin %d", meeting_id, meeting.status, admin.id)
    return meeting


@router.delete("/{meeting_id}", response_model=DeleteResponse)
async def delete_meeting(
    meeting_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> DeleteResponse:
    meeting = await _get_meeting_or_404(db, meeting_id)
    if not current_user.is_admin and meeting.created_by != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the organiser or an admin may delete this meeting",
        )

    await db.delete(meeting)
    await db.commit()
    logger.info("Deleted meeting request %d", meeting_id)
    return DeleteResponse(success=True, message="Meeting request deleted")
