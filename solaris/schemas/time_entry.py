"""Pydantic schemas for time entries and the clock."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator, model_validator

from solaris.schemas.common import check_clock, check_date_key

VALID_ENTRY_STATUSES = {"present", "vacation", "vacation-request", "absent", "break_paid"}


def _check_status(v: str | None) -> str | None:
    if v is not None and v not in VALID_ENTRY_STATUSES:
        raise ValueError(f"Status must be one of: {sorted(VALID_ENTRY_STATUSES)}")
    return v


class TimeEntryCreate(BaseModel):
    date_key: str
    user_id: int | None = None  # admins may record for someone else
    entry: str | None = None
    exit: str | None = None
    status: str | None = "present"
    note: str | None = None

    @field_validator("date_key")
    @classmethod
    def _date(cls, v: str) -> str:
        return check_date_key(v)  # type: ignore[return-value]

    @field_validator("entry", "exit")
    @classmethod
    def _clock(cls, v: str | None) -> str | None:
        return check_clock(v)

    @field_validator("status")
    @classmethod
    def _status(cls, v: str | None) -> str | None:
        return _check_status(v)


class TimeEntryUpdate(BaseModel):
    entry: str | None = None
    exit: str | None = None
    status: str | None = None
    note: str | None = None

    @field_validator("entry", "exit")
    @classmethod
    def _clock(cls, v: str | None) -> str | None:
        return check_clock(v)

    @field_validator("status")
    @classmethod
    def _status(cls, v: str | None) -> str | None:
        return _check_status(v)

    @model_validator(mode="after")
    def _not_empty(self) -> TimeEntryUpdate:
        if not self.model_fields_set:
            raise ValueError("Nothing to update")
        return self


class TimeEntryRead(BaseModel):
    id: int
    user_id: int
    date_key: str
    entry: str | None
    exit: str | None
    status: str | None
    note: str | None
    inserted_at: datetime | None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ClockRequest(BaseModel):
    """Optional explicit wall-clock time; defaults to now in local time."""

    time: str | None = None
    note: str | None = None

    @field_validator("time")
    @classmethod
    def _clock(cls, v: str | None) -> str | None:
        return check_clock(v)


class ClockResponse(BaseModel):
    success: bool
    event: str  # CLOCK_IN | CLOCK_OUT | BREAK_START | BREAK_END
    time: str
    entry: TimeEntryRead
    today_hours: float = 0.0


class ConsolidatedDayRead(BaseModel):
    date_key: str
    user_id: int
    entry: str | None
    exit: str | None
    status: str | None
    note: str | None
    hours: float
    entry_ids: list[int]
