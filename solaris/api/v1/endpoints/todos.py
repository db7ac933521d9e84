"""
Team to-do endpoints.

Shared tasks with per-assignee completion, tags and a comment thread.
Assignees get an inbox notification when they are added.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solaris.api.v1.deps import (ensure_users_exist, get_current_active_user,
                                 get_db)
from solaris.api.v1.endpoints.notifications import add_notifications
from solaris.models.collaboration import Todo
from solaris.models.user import User
from solaris.schemas.collaboration import (TodoCommentCreate, TodoCreate,
                                           TodoRead, TodoUpdate)
from solaris.schemas.common import DeleteResponse

router = APIRouter(prefix="/todos", tags=["todos"])
logger = logging.getLogger(__name__)


async def _get_todo_or_404(db: AsyncSession, todo_id: int) -> Todo:
    result = await db.execute(select(Todo).where(Todo.id == todo_id))
    todo = result.scalar_one_or_none()
    if todo is None:
        raise HTTPException(status_code=404, detail="To-do not found")
    return todo


def _can_see(todo: Todo, user: User) -> bool:
    return user.is_admin or todo.created_by == user.id or user.id in (todo.assigned_to or [])


def _ensure_creator_or_admin(todo: Todo, user: User) -> None:
    if not user.is_admin and todo.created_by != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the creator or an admin may change this to-do",
        )


@router.get("", response_model=list[TodoRead])
async def list_todos(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[Todo]:
    result = await db.execute(select(Todo).order_by(Todo.created_at.desc(), Todo.id.desc()))
    return [t for t in result.scalars().all() if _can_see(t, current_user)]


@router.post("", response_model=TodoRead, status_code=201)
async def create_todo(
    body: TodoCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Todo:
    await ensure_users_exist(db, body.assigned_to)

    todo = Todo(
        title=body.title,
        description=body.description,
        created_by=current_user.id,
        assigned_to=body.assigned_to,
        due_date_key=body.due_date_key,
        tags=body.tags,
        completed_by=[],
        comments=[],
        attachments=[a.model_dump() for a in body.attachments],
    )
    db.add(todo)
    add_notifications(
        db, todo.assigned_to, f'You have been assigned a new to-do: "{todo.title}"', exclude=current_user.id
    )
    await db.commit()
    await db.refresh(todo)
    logger.info("To-do %d '%s' created by user %d for %s", todo.id, todo.title, current_user.id, todo.assigned_to)
    return todo


@router.patch("/{todo_id}", response_model=TodoRead)
async def update_todo(
    todo_id: int,
    body: TodoUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Todo:
    """Edit title, description, assignees, due date or tags."""
    todo = await _get_todo_or_404(db, todo_id)
    _ensure_creator_or_admin(todo, current_user)

    changes = body.model_dump(exclude_unset=True)
    if "assigned_to" in changes:
        await ensure_users_exist(db, changes["assigned_to"])
        added = [uid for uid in changes["assigned_to"] if uid not in (todo.assigned_to or [])]
        # Completion marks only count for current assignees
        todo.completed_by = [uid for uid in (todo.completed_by or []) if uid in changes["assigned_to"]]
        add_notifications(
            db,
            added,
            f'You have been assigned a new to-do: "{changes.get("title", todo.title)}"',
            exclude=current_user.id,
        )

    for field, value in changes.items():
        setattr(todo, field, value)

    await db.commit()
    await db.refresh(todo)
    logger.info("Updated to-do %d: %s", todo_id, sorted(changes))
    return todo


@router.post("/{todo_id}/toggle", response_model=TodoRead)
async def toggle_todo(
    todo_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Todo:
    """Mark the to-do done (or not done) for the calling assignee."""
    todo = await _get_todo_or_404(db, todo_id)
    if current_user.id not in (todo.assigned_to or []):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only assignees may complete this to-do",
        )

    done = list(todo.completed_by or [])
    if current_user.id in done:
        done.remove(current_user.id)
    else:
        done.append(current_user.id)
    todo.completed_by = done

    await db.commit()
    await db.refresh(todo)
    logger.info("To-do %d completion toggled by user %d", todo_id, current_user.id)
    return todo


@router.post("/{todo_id}/comments", response_model=TodoRead)
async def add_todo_comment(
    todo_id: int,
    body: TodoCommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Todo:
    todo = await _get_todo_or_404(db, todo_id)
    if not _can_see(todo, current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to comment here")

    comment = {
        "id": uuid.uuid4().hex,
        "user_id": current_user.id,
        "text": body.text,
        "attachments": [a.model_dump() for a in body.attachments],
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    todo.comments = [*(todo.comments or []), comment]

    await db.commit()
    await db.refresh(todo)
    logger.info("Comment on to-do %d by user %d", todo_id, current_user.id)
    return todo


@router.delete("/{todo_id}", response_model=DeleteResponse)
async def delete_todo(
    todo_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> DeleteResponse:
    todo = await _get_todo_or_404(db, todo_id)
    _ensure_creator_or_admin(todo, current_user)

    await db.delete(todo)
    await db.commit()
    logger.info("Deleted to-do %d", todo_id)
    return DeleteResponse(success=True, message="To-do deleted")
