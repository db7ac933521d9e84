"""Pydantic schemas for absence / vacation / special-permit requests."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from solaris.schemas.common import Attachment, check_date_key

VALID_ABSENCE_TYPES = ["vacation", "absence", "special_permit"]
VALID_ABSENCE_STATUSES = ["pending", "approved", "rejected"]
VALID_RESOLUTION_TYPES = ["makeup", "paid", "deducted"]


class AbsenceCreate(BaseModel):
    date_key: str
    end_date: str | None = None
    type: str = "absence"
    reason: str | None = None
    makeup_preference: bool = False
    attachments: list[Attachment] = Field(default_factory=list)
    # Admin-only: record directly for another user, already resolved.
    user_id: int | None = None
    status: str | None = None
    resolution_type: str | None = None

    @field_validator("date_key", "end_date")
    @classmethod
    def _date(cls, v: str | None) -> str | None:
        return check_date_key(v)

    @field_validator("type")
    @classmethod
    def _type(cls, v: str) -> str:
        if v not in VALID_ABSENCE_TYPES:
            raise ValueError(f"Type must be one of: {', '.join(VALID_ABSENCE_TYPES)}")
        return v

    @field_validator("status")
    @classmethod
    def _status(cls, v: str | None) -> str | None:
        if v is not None and v not in VALID_ABSENCE_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(VALID_ABSENCE_STATUSES)}")
        return v

    @field_validator("resolution_type")
    @classmethod
    def _resolution(cls, v: str | None) -> str | None:
        if v is not None and v not in VALID_RESOLUTION_TYPES:
            raise ValueError(f"Resolution must be one of: {', '.join(VALID_RESOLUTION_TYPES)}")
        return v

    @model_validator(mode="after")
    def _range(self) -> AbsenceCreate:
        if self.end_date is not None and self.end_date < self.date_key:
            raise ValueError("end_date must not be before date_key")
        if self.makeup_preference and self.type != "special_permit":
            self.makeup_preference = False
        return self


class AbsenceUpdate(BaseModel):
    """Creator edits while the request is still pending."""

    date_key: str | None = None
    end_date: str | None = None
    reason: str | None = None
    makeup_preference: bool | None = None
    attachments: list[Attachment] | None = None

    @field_validator("date_key", "end_date")
    @classmethod
    def _date(cls, v: str | None) -> str | None:
        return check_date_key(v)

    @field_validator("date_key", "attachments")
    @classmethod
    def _not_null(cls, v: object) -> object:
        if v is None:
            raise ValueError("Field may be omitted but not set to null")
        return v


class AbsenceResolve(BaseModel):
    status: str
    response_message: str | None = None
    resolution_type: str | None = None

    @field_validator("status")
    @classmethod
    def _status(cls, v: str) -> str:
        if v not in ("approved", "rejected"):
            raise ValueError("Status must be 'approved' or 'rejected'")
        return v

    @field_validator("resolution_type")
    @classmethod
    def _resolution(cls, v: str | None) -> str | None:
        if v is not None and v not in VALID_RESOLUTION_TYPES:
            raise ValueError(f"Resolution must be one of: {', '.join(VALID_RESOLUTION_TYPES)}")
        return v


class AbsenceRead(BaseModel):
    id: int
    created_by: int
    created_at: datetime | None
    date_key: str
    end_date: str | None
    reason: str | None
    type: str
    status: str
    resolution_type: str | None
    response_message: str | None
    makeup_preference: bool | None = False
    attachments: list[Attachment] = Field(default_factory=list)

    model_config = {"from_attributes": True}
