"""
Absence / vacation / special-permit request endpoints.

Visibility: admins see every request; members see their own plus any
approved request (the team calendar shows who is away).
Status moves one way only: pending -> approved | rejected.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete as sa_delete
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from solaris.api.v1.deps import (get_current_active_user, get_db,
                                 get_user_or_404, require_admin)
from solaris.api.v1.endpoints.notifications import add_notifications, admin_ids
from solaris.models.absence import AbsenceRequest
from solaris.models.user import User
from solaris.schemas.absence import (AbsenceCreate, AbsenceRead,
                                     AbsenceResolve, AbsenceUpdate)
from solaris.schemas.common import DeleteResponse, check_date_key

router = APIRouter(prefix="/absences", tags=["absences"])
logger = logging.getLogger(__name__)


async def _get_absence_or_404(db: AsyncSession, absence_id: int) -> AbsenceRequest:
    result = await db.execute(select(AbsenceRequest).where(AbsenceRequest.id == absence_id))
    absence = result.scalar_one_or_none()
    if absence is None:
        raise HTTPException(status_code=404, detail="Absence request not found")
    return absence


def _label(absence: AbsenceRequest) -> str:
    return absence.type.replace("_", " ")


def _span(absence: AbsenceRequest) -> str:
    if absence.end_date and absence.end_date != absence.date_key:
        return f"{absence.date_key} to {absence.end_date}"
    return absence.date_key


def _ensure_creator_or_admin(absence: AbsenceRequest, current_user: User) -> None:
    if not current_user.is_admin and absence.created_by != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the requester or an admin may change this request",
        )


@router.get("", response_model=list[AbsenceRead])
async def list_absences(
    user_id: int | None = None,
    type: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[AbsenceRequest]:
    """Newest first."""
    query = select(AbsenceRequest).order_by(
        AbsenceRequest.created_at.desc(), AbsenceRequest.id.desc()
    )
    if not current_user.is_admin:
        query = query.where(
            or_(
                AbsenceRequest.created_by == current_user.id,
                AbsenceRequest.status == "approved",
            )
        )
    if user_id is not None:
        query = query.where(AbsenceRequest.created_by == user_id)
    if type:
        query = query.where(AbsenceRequest.type == type)
    if status_filter:
        query = query.where(AbsenceRequest.status == status_filter)

    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("", response_model=AbsenceRead, status_code=201)
async def create_absence(
    body: AbsenceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> AbsenceRequest:
    """File a request. Admins may record one for someone else, already resolved."""
    if not current_user.is_admin and (
        body.user_id not in (None, current_user.id) or body.status or body.resolution_type
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins may record requests for others or pre-resolve them",
        )

    target_id = body.user_id if body.user_id is not None else current_user.id
    if target_id != current_user.id:
        await get_user_or_404(db, target_id)

    request_status = body.status or "pending"
    reason = body.reason or ("Recorded by admin" if request_status == "approved" else "")

    absence = AbsenceRequest(
        created_by=target_id,
        date_key=body.date_key,
        end_date=body.end_date,
        reason=reason,
        type=body.type,
        status=request_status,
        resolution_type=body.resolution_type,
        makeup_preference=body.makeup_preference,
        attachments=[a.model_dump() for a in body.attachments],
    )
    db.add(absence)
    if request_status == "pending":
        add_notifications(
            db,
            await admin_ids(db),
            f"New {_label(absence)} request from {current_user.name or current_user.email} for {_span(absence)}",
            exclude=current_user.id,
        )
    await db.commit()
    await db.refresh(absence)
    logger.info(
        "Created %s request %d for user %d (%s, status=%s)",
        absence.type, absence.id, target_id, absence.date_key, absence.status,
    )
    return absence


@router.delete("/by-date", response_model=DeleteResponse)
async def delete_absences_by_date(
    date_key: str,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DeleteResponse:
    """Drop every request of ``user_id`` starting on ``date_key``."""
    try:
        check_date_key(date_key)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    result = await db.execute(
        sa_delete(AbsenceRequest).where(
            AbsenceRequest.date_key == date_key,
            AbsenceRequest.created_by == user_id,
        )
    )
    await db.commit()
    logger.info("Deleted %d absence request(s) for user %d on %s", result.rowcount, user_id, date_key)
    return DeleteResponse(success=True, message=f"Deleted {result.rowcount} request(s)")


@router.patch("/{absence_id}", response_model=AbsenceRead)
async def update_absence(
    absence_id: int,
    body: AbsenceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> AbsenceRequest:
    """Edit dates, reason or attachments while the request is still pending."""
    absence = await _get_absence_or_404(db, absence_id)
    _ensure_creator_or_admin(absence, current_user)
    if absence.status != "pending":
        raise HTTPException(status_code=409, detail="Only pending requests can be edited")

    changes = body.model_dump(exclude_unset=True)
    start = changes.get("date_key", absence.date_key)
    end = changes.get("end_date", absence.end_date)
    if end is not None and end < start:
        raise HTTPException(status_code=422, detail="end_date must not be before date_key")
    if changes.get("makeup_preference") and absence.type != "special_permit":
        changes["makeup_preference"] = False

    for field, value in changes.items():
        setattr(absence, field, value)

    await db.commit()
    await db.refresh(absence)
    logger.info("Updated absence request %d: %s", absence_id, sorted(changes))
    return absence


@router.post("/{absence_id}/resolve", response_model=AbsenceRead)
async def resolve_absence(
    absence_id: int,
    body: AbsenceResolve,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> AbsenceRequest:
    """Approve or reject a pending request. Resolved requests are final."""
    absence = await _get_absence_or_404(db, absence_id)
    if absence.status != "pending":
        raise HTTPException(
            status_code=409,
            detail=f"Request already {absence.status}",
        )

    absence.status = body.status
    absence.response_message = body.response_message
    if body.resolution_type:
        absence.resolution_type = body.resolution_type
    add_notifications(
        db,
        [absence.created_by],
        f"Your {_label(absence)} request for {_span(absence)} was {body.status}",
        exclude=admin.id,
    )

    await db.commit()
    await db.refresh(absence)
    logger.info(
        "Absence request %d %s by admin %d (resolution=%s)",
        absence_id, absence.status, admin.id, absence.resolution_type,
    )
    return absence


@router.delete("/{absence_id}", response_model=DeleteResponse)
async def delete_absence(
    absence_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> DeleteResponse:
    """Requesters may withdraw pending requests; admins may delete any."""
    absence = await _get_absence_or_404(db, absence_id)
    _ensure_creator_or_admin(absence, current_user)
    if not current_user.is_admin and absence.status != "pending":
        raise HTTPException(status_code=409, detail="Only pending requests can be withdrawn")

    await db.delete(absence)
    await db.commit()
    logger.info("Deleted absence request %d (user %d)", absence_id, absence.created_by)
    return DeleteResponse(success=True, message="Absence request deleted")
