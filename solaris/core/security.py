"""
Credentials for Solaris team members.

Passwords are stored as bcrypt hashes. Sessions are a pair of signed
JWTs whose ``sub`` is the user id: a short-lived access token and a
refresh token, told apart by the ``type`` claim.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from jose import JWTError, jwt
from passlib.context import CryptContext

from solaris.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_ALGORITHM = settings.ALGORITHM
_SECRET = settings.SECRET_KEY


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


# ── JWT tokens ──────────────────────────────────────────────────────
def _encode(user_id: int, token_type: str, lifetime: timedelta) -> str:
    claims = {
        "sub": str(user_id),
        "type": token_type,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, _SECRET, algorithm=_ALGORITHM)


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(user_id, "access", lifetime)


def create_refresh_token(user_id: int) -> str:
    return _encode(user_id, "refresh", timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def issue_tokens(user_id: int) -> TokenPair:
    """Fresh access + refresh tokens, used on login and on every refresh."""
    return TokenPair(create_access_token(user_id), create_refresh_token(user_id))


def _decode(token: str, token_type: str) -> dict | None:
    try:
        payload = jwt.decode(token, _SECRET, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != token_type:
        return None
    return payload


def decode_access_token(token: str) -> dict | None:
    return _decode(token, "access")


def decode_refresh_token(token: str) -> dict | None:
    return _decode(token, "refresh")


def token_user_id(payload: dict | None) -> int | None:
    """The user id a decoded token refers to, or ``None`` if it is unusable."""
    if payload is None:
        return None
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.isdigit():
        return None
    return int(subject)
