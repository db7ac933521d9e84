"""
Meeting requests & team to-dos.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String

from solaris.db.base import Base


class MeetingRequest(Base):
    __tablename__ = "meeting_requests"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    created_by: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # type: ignore[assignment]
    title: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    description: str | None = Column(String(2000), nullable=True)  # type: ignore[assignment]
    preferred_date_key: str | None = Column(String(10), nullable=True)  # type: ignore[assignment]
    preferred_slot: str | None = Column(String(50), nullable=True)  # type: ignore[assignment]
    participants: list = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False, default="pending")  # type: ignore[assignment]
    # pending | scheduled | rejected
    scheduled_date_key: str | None = Column(String(10), nullable=True)  # type: ignore[assignment]
    scheduled_time: str | None = Column(String(5), nullable=True)  # type: ignore[assignment]
    response_message: str | None = Column(String(1000), nullable=True)  # type: ignore[assignment]
    attachments: list = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )


class Todo(Base):
    __tablename__ = "todos"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    title: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    description: str | None = Column(String(2000), nullable=True)  # type: ignore[assignment]
    created_by: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # type: ignore[assignment]
    assigned_to: list = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    due_date_key: str | None = Column(String(10), nullable=True)  # type: ignore[assignment]
    tags: list = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    completed_by: list = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    comments: list = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    attachments: list = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
