"""
WorkProfile model — per-user accounting configuration.

One row per user. ``hours_adjustment`` and ``vacation_adjustment`` are
signed deltas an admin stores instead of rewriting history: displayed
totals are always the recomputed totals plus the adjustment.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer

from solaris.db.base import Base


class WorkProfile(Base):
    __tablename__ = "user_profiles"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True
    )
    weekly_hours: float = Column(Float, nullable=False, default=40.0)  # type: ignore[assignment]
    vacation_days_total: int = Column(Integer, nullable=False, default=22)  # type: ignore[assignment]
    hours_adjustment: float = Column(Float, nullable=False, default=0.0)  # type: ignore[assignment]
    vacation_adjustment: float = Column(Float, nullable=False, default=0.0)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
