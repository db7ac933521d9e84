"""Pydantic schemas for training requests."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from solaris.schemas.common import Attachment, check_date_key

VALID_TRAINING_STATUSES = ["pending", "accepted", "rescheduled", "rejected"]


class TrainingComment(BaseModel):
    by: int
    text: str
    at: str


class TrainingCreate(BaseModel):
    requested_date_key: str
    comment: str | None = None
    attachments: list[Attachment] = Field(default_factory=list)

    @field_validator("requested_date_key")
    @classmethod
    def _date(cls, v: str) -> str:
        return check_date_key(v)  # type: ignore[return-value]


class TrainingCommentCreate(BaseModel):
    text: str

    @field_validator("text")
    @classmethod
    def _text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment must not be empty")
        return v


class TrainingStatusUpdate(BaseModel):
    status: str
    scheduled_date_key: str | None = None

    @field_validator("status")
    @classmethod
    def _status(cls, v: str) -> str:
        if v not in VALID_TRAINING_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(VALID_TRAINING_STATUSES)}")
        return v

    @field_validator("scheduled_date_key")
    @classmethod
    def _date(cls, v: str | None) -> str | None:
        return check_date_key(v)

    @model_validator(mode="after")
    def _reschedule_needs_date(self) -> TrainingStatusUpdate:
        if self.status == "rescheduled" and not self.scheduled_date_key:
            raise ValueError("A rescheduled training needs scheduled_date_key")
        return self


class TrainingRead(BaseModel):
    id: int
    user_id: int
    requested_date_key: str
    scheduled_date_key: str | None
    status: str
    comments: list[TrainingComment] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
    created_at: datetime | None

    model_config = {"from_attributes": True}
