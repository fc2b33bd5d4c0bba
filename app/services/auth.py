# app/services/auth.py
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from app.core.config import settings
from app.core.errors import Conflict, Unauthenticated, ValidationFailed
from app.core.security import (
    create_access_token,
    create_refresh_token,
    create_reset_token,
    decode_refresh_token,
    decode_reset_token,
    hash_password,
    hash_token,
    verify_password,
)
from app.db.mongo import now
from app.models.user import RegisterIn, User
from app.repositories import users as users_repo
from app.services import login_limiter

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent"


@dataclass
class Session:
    user: User
    token: str
    refresh_token: str

    def public(self) -> dict:
        return {"user": self.user.public(), "token": self.token, "refreshToken": self.refresh_token}


def issue_session(user: User) -> Session:
    return Session(
        user=user,
        token=create_access_token(user.id, user.email, user.role),
        refresh_token=create_refresh_token(user.id, user.email, user.role),
    )


async def register(data: RegisterIn) -> Session:
    if await users_repo.get_user_by_email(data.email):
        raise Conflict("An account with this email already exists")
    user = await users_repo.create_user(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        password_hash=hash_password(data.password),
        role=data.role,
    )
    logger.info("Registered user %s with role %s", user.id, user.role)
    return issue_session(user)


async def login(email: str, password: str, client_ip: str) -> Session:
    await login_limiter.record_attempt(client_ip)
    user = await users_repo.get_user_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login attempt from %s", client_ip)
        raise Unauthenticated("Invalid email or password")
    if not user.is_active:
        raise Unauthenticated("Account is deactivated. Please contact support.")
    await login_limiter.reset(client_ip)
    when = now()
    await users_repo.touch_last_login(user.id, when)
    user = user.model_copy(update={"last_login": when})
    logger.info("User %s logged in", user.id)
    return issue_session(user)


async def refresh(refresh_token: str) -> Session:
    data = decode_refresh_token(refresh_token)
    user = await users_repo.get_user(data.id)
    if user is None or not user.is_active:
        raise Unauthenticated("Invalid refresh token")
    return issue_session(user)


async def forgot_password(email: str) -> Optional[str]:
    """
    Store the hash of a fresh reset token for ``email`` and return the raw
    token (None for unknown emails). Callers never send it to the client;
    delivery happens out of band.
    """
    user = await users_repo.get_user_by_email(email)
    if user is None:
        logger.info("Password reset requested for unknown email")
        return None
    token = create_reset_token(user.id)
    expires = datetime.now(timezone.utc) + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    await users_repo.update_user(user.id, {
        "password_reset_token": hash_token(token),
        "password_reset_expires": expires,
    })
    logger.info("Password reset token issued for user %s", user.id)
    return token


async def reset_password(token: str, new_password: str) -> Session:
    user_id = decode_reset_token(token)
    if not user_id:
        raise ValidationFailed("Invalid or expired reset token")
    user = await users_repo.get_user_by_reset_token(hash_token(token))
    if (
        user is None
        or user.id != user_id
        or user.password_reset_expires is None
        or user.password_reset_expires <= datetime.now(timezone.utc)
    ):
        raise ValidationFailed("Invalid or expired reset token")
    user = await users_repo.update_user(user.id, {
        "password_hash": hash_password(new_password),
        "password_reset_token": None,
        "password_reset_expires": None,
    })
    logger.info("Password reset completed for user %s", user.id)
    return issue_session(user)


async def change_password(user: User, current_password: str, new_password: str) -> None:
    # the request-scoped user may not carry the hash
    stored = await users_repo.get_user(user.id)
    if stored is None or not verify_password(current_password, stored.password_hash):
        raise ValidationFailed("Current password is incorrect")
    await users_repo.update_user(user.id, {"password_hash": hash_password(new_password)})
    logger.info("Password changed for user %s", user.id)
