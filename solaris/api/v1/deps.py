"""
FastAPI dependencies — auth guards, ownership checks and database session.

Row-level rules (who may see or edit whose records) live here and in the
endpoint modules; the accounting layer trusts whatever rows it is given.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solaris.core.config import settings
from solaris.core.security import decode_access_token, token_user_id
from solaris.db.session import async_session_factory
from solaris.models.user import User

# auto_error=False so we can fall back to the HttpOnly cookie
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode JWT from Header OR Cookie, look up user."""
    final_token = token
    if not final_token and access_token:
        # Cookie is stored as "Bearer <token>"
        if access_token.startswith("Bearer "):
            final_token = access_token.split(" ", 1)[1]
        else:
            final_token = access_token

    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not final_token:
        raise credentials_exc

    user_id = token_user_id(decode_access_token(final_token))
    if user_id is None:
        raise credentials_exc

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise credentials_exc
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Reject inactive accounts."""
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user account")
    return current_user


async def require_admin(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Only allow admin role to proceed."""
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user


def is_training_manager(user: User) -> bool:
    if user.is_training_manager:
        return True
    manager_email = settings.TRAINING_MANAGER_EMAIL
    return bool(manager_email) and user.email == manager_email.strip().lower()


async def require_training_manager(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Only the designated training manager may schedule trainings."""
    if not is_training_manager(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Training manager privileges required",
        )
    return current_user


# ── Ownership helpers ───────────────────────────────────────────────
def ensure_self_or_admin(user_id: int, current_user: User) -> None:
    """Members may only touch their own records; admins touch anyone's."""
    if current_user.role != "admin" and current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to access another user's records",
        )


async def get_user_or_404(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


async def ensure_users_exist(db: AsyncSession, user_ids: list[int]) -> None:
    """422 if any referenced user id is unknown."""
    if not user_ids:
        return
    result = await db.execute(select(User.id).where(User.id.in_(user_ids)))
    missing = set(user_ids) - set(result.scalars().all())
    if missing:
        raise HTTPException(status_code=422, detail=f"Unknown user id(s): {sorted(missing)}")


# ── Local wall clock ────────────────────────────────────────────────
def local_timezone(tz_offset: str | None = None) -> timezone:
    """Parse a ``+HH:MM`` / ``-HH:MM`` offset into a fixed timezone."""
    tz_offset = (tz_offset or settings.TIMEZONE_OFFSET).strip()
    sign = -1 if tz_offset.startswith("-") else 1
    offset_parts = tz_offset.lstrip("+-").split(":")
    offset_hours = int(offset_parts[0])
    offset_mins = int(offset_parts[1]) if len(offset_parts) > 1 else 0
    return timezone(timedelta(hours=sign * offset_hours, minutes=sign * offset_mins))


def local_now() -> datetime:
    return datetime.now(timezone.utc).astimezone(local_timezone())
