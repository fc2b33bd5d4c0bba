# app/core/security.py
import hashlib
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext
from pydantic import BaseModel

from app.core.config import settings
from app.core.errors import Unauthenticated

# PBKDF2-HMAC-SHA256 avoids the bcrypt backend issues
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ALGORITHM = "HS256"

ACCESS = "access"
REFRESH = "refresh"
PASSWORD_RESET = "password-reset"


class TokenData(BaseModel):
    id: str
    email: Optional[str] = None
    role: Optional[str] = None
    type: str = ACCESS


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def _encode(payload: dict, secret: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = dict(payload)
    to_encode.update({"iat": now, "exp": now + expires_delta})
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def create_access_token(user_id: str, email: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    delta = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode({"id": user_id, "email": email, "role": role, "type": ACCESS}, settings.SECRET_KEY, delta)


def create_refresh_token(user_id: str, email: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    delta = expires_delta or timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES)
    return _encode({"id": user_id, "email": email, "role": role, "type": REFRESH}, settings.REFRESH_SECRET_KEY, delta)


def create_reset_token(user_id: str) -> str:
    delta = timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    return _encode({"id": user_id, "purpose": PASSWORD_RESET}, settings.SECRET_KEY, delta)


def hash_token(token: str) -> str:
    """SHA-256 digest stored instead of the raw reset token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def decode_access_token(token: str) -> TokenData:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise Unauthenticated("Invalid or expired token. Please log in again.") from exc
    if payload.get("type") != ACCESS or not payload.get("id"):
        raise Unauthenticated("Invalid token. Please log in again.")
    return TokenData(**{k: payload.get(k) for k in ("id", "email", "role", "type")})


def decode_refresh_token(token: str) -> TokenData:
    try:
        payload = jwt.decode(token, settings.REFRESH_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise Unauthenticated("Invalid or expired refresh token") from exc
    if payload.get("type") != REFRESH or not payload.get("id"):
        raise Unauthenticated("Invalid refresh token")
    return TokenData(**{k: payload.get(k) for k in ("id", "email", "role", "type")})


def decode_reset_token(token: str) -> Optional[str]:
    """Return the user id a reset token was issued for, or None when invalid."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if payload.get("purpose") != PASSWORD_RESET:
        return None
    return payload.get("id")
