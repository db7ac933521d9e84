"""Pydantic schemas for work profiles and calendar overrides."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


# ── Work profile ───────────────────────────────────────────────────
class WorkProfileRead(BaseModel):
    user_id: int
    weekly_hours: float
    vacation_days_total: int
    hours_adjustment: float
    vacation_adjustment: float
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class WorkProfileUpdate(BaseModel):
    weekly_hours: float | None = Field(default=None, ge=0, le=80)
    vacation_days_total: int | None = Field(default=None, ge=0, le=366)
    hours_adjustment: float | None = None
    vacation_adjustment: float | None = None

    @field_validator("weekly_hours", "vacation_days_total", "hours_adjustment", "vacation_adjustment")
    @classmethod
    def _not_null(cls, v: float | None) -> float | None:
        # Omitted fields stay unchanged; an explicit null is rejected
        if v is None:
            raise ValueError("Field may be omitted but not set to null")
        return v


# ── Calendar overrides ─────────────────────────────────────────────
class CalendarOverrideUpsert(BaseModel):
    is_non_working: bool = True
    note: str | None = None


class CalendarOverrideRead(BaseModel):
    date_key: str
    is_non_working: bool
    note: str | None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
