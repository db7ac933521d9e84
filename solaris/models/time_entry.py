"""
TimeEntry model — one clock-in / clock-out span for a user on a date.

Several rows may exist for the same (user, date); a lunch break, for
instance, leaves two spans behind.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String

from solaris.db.base import Base


class TimeEntry(Base):
    __tablename__ = "time_entries"
    __table_args__ = (Index("ix_time_entries_user_date", "user_id", "date_key"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False)  # type: ignore[assignment]
    date_key: str = Column(String(10), nullable=False, index=True)  # type: ignore[assignment]  # YYYY-MM-DD
    entry: str | None = Column(String(5), nullable=True)  # type: ignore[assignment]  # HH:MM
    exit: str | None = Column(String(5), nullable=True)  # type: ignore[assignment]  # HH:MM
    status: str | None = Column(String(20), nullable=True, default="present")  # type: ignore[assignment]
    # present | vacation | vacation-request | absent | break_paid
    note: str | None = Column(String(1000), nullable=True)  # type: ignore[assignment]
    inserted_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime | None = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        nullable=True,
        onupdate=lambda: datetime.now(timezone.utc),
    )
