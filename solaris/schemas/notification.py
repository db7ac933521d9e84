"""Pydantic schemas for the notification inbox."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class NotificationRead(BaseModel):
    id: int
    user_id: int
    message: str
    read: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


class MarkAllReadResponse(BaseModel):
    updated: int
