"""
TrainingRequest model — sessions coordinated by the training manager.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String

from solaris.db.base import Base


class TrainingRequest(Base):
    __tablename__ = "training_requests"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # type: ignore[assignment]
    requested_date_key: str = Column(String(10), nullable=False)  # type: ignore[assignment]
    scheduled_date_key: str | None = Column(String(10), nullable=True)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False, default="pending")  # type: ignore[assignment]
    # pending | accepted | rescheduled | rejected
    comments: list = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    # [{"by": user_id, "text": str, "at": iso timestamp}, ...]
    attachments: list = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
