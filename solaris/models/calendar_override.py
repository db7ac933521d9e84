"""
CalendarOverride model — company holidays and day annotations.

Sparse table keyed by date. Only rows with ``is_non_working`` set are
excluded from expected-hours counts; the rest just carry a note.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from solaris.db.base import Base


class CalendarOverride(Base):
    __tablename__ = "calendar_overrides"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    date_key: str = Column(String(10), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    is_non_working: bool = Column(Boolean, nullable=False, default=True)  # type: ignore[assignment]
    note: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
