"""Pydantic schemas for meeting requests and team to-dos."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from solaris.schemas.common import Attachment, check_clock, check_date_key


# ── Meetings ────────────────────────────────────────────────────────
class MeetingCreate(BaseModel):
    title: str
    description: str | None = None
    preferred_date_key: str | None = None
    preferred_slot: str | None = None  # morning | afternoon | free text
    participants: list[int] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title must not be empty")
        if len(v) > 200:
            raise ValueError("Title must not exceed 200 characters")
        return v

    @field_validator("preferred_date_key")
    @classmethod
    def _date(cls, v: str | None) -> str | None:
        return check_date_key(v)


class MeetingResolve(BaseModel):
    status: str  # scheduled | rejected
    scheduled_date_key: str | None = None
    scheduled_time: str | None = None
    response_message: str | None = None

    @field_validator("status")
    @classmethod
    def _status(cls, v: str) -> str:
        if v not in ("scheduled", "rejected"):
            raise ValueError("Status must be 'scheduled' or 'rejected'")
        return v

    @field_validator("scheduled_date_key")
    @classmethod
    def _date(cls, v: str | None) -> str | None:
        return check_date_key(v)

    @field_validator("scheduled_time")
    @classmethod
    def _time(cls, v: str | None) -> str | None:
        return check_clock(v)

    @model_validator(mode="after")
    def _schedule_needs_date(self) -> MeetingResolve:
        if self.status == "scheduled" and not self.scheduled_date_key:
            raise ValueError("A scheduled meeting needs scheduled_date_key")
        return self


class MeetingRead(BaseModel):
    id: int
    created_by: int
    title: str
    description: str | None
    preferred_date_key: str | None
    preferred_slot: str | None
    participants: list[int] = Field(default_factory=list)
    status: str
    scheduled_date_key: str | None
    scheduled_time: str | None
    response_message: str | None
    attachments: list[Attachment] = Field(default_factory=list)
    created_at: datetime | None

    model_config = {"from_attributes": True}


# ── Todos ───────────────────────────────────────────────────────────
class TodoComment(BaseModel):
    id: str
    user_id: int
    text: str
    attachments: list[Attachment] = Field(default_factory=list)
    created_at: str


def _check_todo_title(v: str | None) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("Title must not be empty")
    return v


def _check_assignees(v: list[int] | None) -> list[int]:
    if not v:
        raise ValueError("A to-do needs at least one assignee")
    return list(dict.fromkeys(v))


def _clean_tags(v: list[str] | None) -> list[str]:
    """Trimmed, de-duplicated, blanks dropped."""
    if v is None:
        raise ValueError("Tags may be omitted but not set to null")
    return list(dict.fromkeys(t.strip() for t in v if t.strip()))


class TodoCreate(BaseModel):
    title: str
    description: str | None = None
    assigned_to: list[int]
    due_date_key: str | None = None
    tags: list[str] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        return _check_todo_title(v)

    @field_validator("due_date_key")
    @classmethod
    def _date(cls, v: str | None) -> str | None:
        return check_date_key(v)

    @field_validator("assigned_to")
    @classmethod
    def _assignees(cls, v: list[int]) -> list[int]:
        return _check_assignees(v)

    @field_validator("tags")
    @classmethod
    def _tags(cls, v: list[str]) -> list[str]:
        return _clean_tags(v)


class TodoUpdate(BaseModel):
    """Partial edit by the creator or an admin."""

    title: str | None = None
    description: str | None = None
    assigned_to: list[int] | None = None
    due_date_key: str | None = None
    tags: list[str] | None = None

    @field_validator("title")
    @classmethod
    def _title(cls, v: str | None) -> str:
        return _check_todo_title(v)

    @field_validator("due_date_key")
    @classmethod
    def _date(cls, v: str | None) -> str | None:
        return check_date_key(v)

    @field_validator("assigned_to")
    @classmethod
    def _assignees(cls, v: list[int] | None) -> list[int]:
        return _check_assignees(v)

    @field_validator("tags")
    @classmethod
    def _tags(cls, v: list[str] | None) -> list[str]:
        return _clean_tags(v)

    @model_validator(mode="after")
    def _not_empty(self) -> TodoUpdate:
        if not self.model_fields_set:
            raise ValueError("Nothing to update")
        return self


class TodoCommentCreate(BaseModel):
    text: str
    attachments: list[Attachment] = Field(default_factory=list)

    @field_validator("text")
    @classmethod
    def _text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment must not be empty")
        return v


class TodoRead(BaseModel):
    id: int
    title: str
    description: str | None
    created_by: int
    assigned_to: list[int] = Field(default_factory=list)
    due_date_key: str | None
    tags: list[str] = Field(default_factory=list)
    completed_by: list[int] = Field(default_factory=list)
    comments: list[TodoComment] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
    created_at: datetime | None

    model_config = {"from_attributes": True}
