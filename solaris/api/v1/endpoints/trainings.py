"""
Training request endpoints.

Any member may request a session; the training manager sees every
request and decides on it. Comments form a thread on the request.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solaris.api.v1.deps import (get_current_active_user, get_db,
                                 is_training_manager, require_training_manager)
from solaris.api.v1.endpoints.notifications import (add_notifications,
                                                     training_manager_ids)
from solaris.models.training import TrainingRequest
from solaris.models.user import User
from solaris.schemas.common import DeleteResponse
from solaris.schemas.training import (TrainingCommentCreate, TrainingCreate,
                                      TrainingRead, TrainingStatusUpdate)

router = APIRouter(prefix="/trainings", tags=["trainings"])
logger = logging.getLogger(__name__)


async def _get_training_or_404(db: AsyncSession, training_id: int) -> TrainingRequest:
    result = await db.execute(select(TrainingRequest).where(TrainingRequest.id == training_id))
    training = result.scalar_one_or_none()
    if training is None:
        raise HTTPException(status_code=404, detail="Training request not found")
    return training


def _ensure_requester_or_manager(training: TrainingRequest, current_user: User) -> None:
    if training.user_id != current_user.id and not is_training_manager(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the requester or the training manager may do this",
        )


def _comment(user_id: int, text: str) -> dict:
    return {"by": user_id, "text": text, "at": datetime.now(timezone.utc).isoformat()}


@router.get("", response_model=list[TrainingRead])
async def list_trainings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[TrainingRequest]:
    query = select(TrainingRequest).order_by(
        TrainingRequest.requested_date_key.asc(), TrainingRequest.id.asc()
    )
    if not is_training_manager(current_user):
        query = query.where(TrainingRequest.user_id == current_user.id)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("", response_model=TrainingRead, status_code=201)
async def create_training(
    body: TrainingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> TrainingRequest:
    """Request a session; it is tentatively scheduled on the requested day."""
    comments = [_comment(current_user.id, body.comment.strip())] if body.comment and body.comment.strip() else []
    training = TrainingRequest(
        user_id=current_user.id,
        requested_date_key=body.requested_date_key,
        scheduled_date_key=body.requested_date_key,
        status="pending",
        comments=comments,
        attachments=[a.model_dump() for a in body.attachments],
    )
    db.add(training)
    add_notifications(
        db,
        await training_manager_ids(db),
        f"New training request from {current_user.name or current_user.email} for {training.requested_date_key}",
        exclude=current_user.id,
    )
    await db.commit()
    await db.refresh(training)
    logger.info("Training request %d by user %d for %s", training.id, current_user.id, training.requested_date_key)
    return training


@router.post("/{training_id}/comments", response_model=TrainingRead)
async def add_training_comment(
    training_id: int,
    body: TrainingCommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> TrainingRequest:
    training = await _get_training_or_404(db, training_id)
    _ensure_requester_or_manager(training, current_user)

    # JSON columns only persist on reassignment
    training.comments = [*(training.comments or []), _comment(current_user.id, body.text)]

    await db.commit()
    await db.refresh(training)
    logger.info("Comment on training request %d by user %d", training_id, current_user.id)
    return training


@router.put("/{training_id}/status", response_model=TrainingRead)
async def update_training_status(
    training_id: int,
    body: TrainingStatusUpdate,
    db: AsyncSession = Depends(get_db),
    manager: User = Depends(require_training_manager),
) -> TrainingRequest:
    """Accept, reject or move a session to another day."""
    training = await _get_training_or_404(db, training_id)

    training.status = body.status
    if body.scheduled_date_key:
        training.scheduled_date_key = body.scheduled_date_key

    message = f"Your training request for {training.requested_date_key} was {training.status}"
    if training.status == "rescheduled":
        message += f" to {training.scheduled_date_key}"
    add_notifications(db, [training.user_id], message, exclude=manager.id)

    await db.commit()
    await db.refresh(training)
    logger.info(
        "Training request %d set to %s (scheduled %s) by user %d",
        training_id, training.status, training.scheduled_date_key, manager.id,
    )
    return training


@router.delete("/{training_id}", response_model=DeleteResponse)
async def delete_training(
    training_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> DeleteResponse:
    training = await _get_training_or_404(db, training_id)
    _ensure_requester_or_manager(training, current_user)

    await db.delete(training)
    await db.commit()
    logger.info("Deleted training request %d", training_id)
    return DeleteResponse(success=True, message="Training request deleted")
