"""
AbsenceRequest model — vacation, unpaid absence or special permit.

A request covers a single date (``end_date`` empty) or an inclusive
range. Status moves one way only: pending → approved | rejected.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (JSON, Boolean, Column, DateTime, ForeignKey, Index,
                        Integer, String)

from solaris.db.base import Base


class AbsenceRequest(Base):
    __tablename__ = "absence_requests"
    __table_args__ = (Index("ix_absence_created_by_date", "created_by", "date_key"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    created_by: int = Column(Integer, ForeignKey("users.id"), nullable=False)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    date_key: str = Column(String(10), nullable=False)  # type: ignore[assignment]  # YYYY-MM-DD
    end_date: str | None = Column(String(10), nullable=True)  # type: ignore[assignment]
    reason: str | None = Column(String(1000), nullable=True)  # type: ignore[assignment]
    type: str = Column(String(20), nullable=False, default="absence")  # type: ignore[assignment]
    # vacation | absence | special_permit
    status: str = Column(String(20), nullable=False, default="pending")  # type: ignore[assignment]
    # pending | approved | rejected
    resolution_type: str | None = Column(String(20), nullable=True)  # type: ignore[assignment]
    # makeup | paid | deducted (special permits only)
    response_message: str | None = Column(String(1000), nullable=True)  # type: ignore[assignment]
    makeup_preference: bool = Column(Boolean, default=False)  # type: ignore[assignment]
    attachments: list = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
