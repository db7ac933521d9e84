"""Shared field validators and small response schemas."""

from __future__ import annotations

import re
from datetime import date

from pydantic import BaseModel

_DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def check_date_key(v: str | None) -> str | None:
    """Accept only canonical ``YYYY-MM-DD`` keys that name a real day."""
    if v is None:
        return v
    v = v.strip()
    if not _DATE_KEY_RE.match(v):
        raise ValueError("Date must use the YYYY-MM-DD format")
    try:
        date.fromisoformat(v)
    except ValueError as exc:
        raise ValueError(f"Invalid calendar date: {v}") from exc
    return v


def check_clock(v: str | None) -> str | None:
    """Accept ``HH:MM`` (24h); seconds are dropped if present."""
    if v is None or v == "":
        return None
    v = v.strip()[:5]
    if not _CLOCK_RE.match(v):
        raise ValueError("Time must use the HH:MM 24-hour format")
    return v


class Attachment(BaseModel):
    name: str
    url: str
    type: str | None = None
    size: int | None = None


class LogoutResponse(BaseModel):
    message: str


class DeleteResponse(BaseModel):
    success: bool
    message: str


class HealthResponse(BaseModel):
    db: bool
    redis: bool


class StatusResponse(BaseModel):
    total_users: int
    today_entries: int
    active_sessions: int
    pending_absences: int
    status: str
