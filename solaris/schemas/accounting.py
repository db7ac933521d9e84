"""Pydantic schemas for monthly accounting summaries and adjustments."""

from __future__ import annotations

from pydantic import BaseModel, Field

from solaris.schemas.profile import WorkProfileRead


class DayRowRead(BaseModel):
    date_key: str
    entry: str | None
    exit: str | None
    hours: float
    status: str | None
    is_working_day: bool


class VacationSummary(BaseModel):
    user_id: int
    total: int
    raw_used: int
    adjustment: float
    used: float
    remaining: float


class MonthlySummaryResponse(BaseModel):
    user_id: int
    name: str | None = None
    year: int
    month: int
    weekly_hours: float
    working_days: int
    expected_hours: float
    real_hours: float
    paid_permit_hours: float
    hours_adjustment: float
    raw_worked_hours: float
    worked_hours: float
    remaining_hours: float
    balance_hours: float
    vacation: VacationSummary
    days: list[DayRowRead] = Field(default_factory=list)


class TeamMonthlyResponse(BaseModel):
    year: int
    month: int
    working_days: int
    users: list[MonthlySummaryResponse]


class AdjustmentSnapshot(BaseModel):
    """Raw (pre-adjustment) figures captured when the editor opens."""

    user_id: int
    year: int
    month: int
    raw_worked_hours: float
    raw_vacation_used: float
    hours_adjustment: float
    vacation_adjustment: float
    displayed_worked_hours: float
    displayed_vacation_used: float


class AdjustmentRequest(BaseModel):
    year: int = Field(ge=2000, le=2100)
    month: int = Field(ge=1, le=12)
    displayed_worked_hours: float | None = None
    displayed_vacation_used: float | None = Field(default=None, ge=0)
    # Raw values as seen when the editor opened; recomputed now if omitted.
    raw_worked_hours: float | None = None
    raw_vacation_used: float | None = None
    weekly_hours: float | None = Field(default=None, ge=0, le=80)
    vacation_days_total: int | None = Field(default=None, ge=0, le=366)


class AdjustmentResponse(BaseModel):
    user_id: int
    update: dict[str, float | int]
    profile: WorkProfileRead
