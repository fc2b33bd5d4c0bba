# app/api/v1/auth.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.errors import Forbidden, Unauthenticated
from app.core.security import decode_access_token
from app.models.user import ForgotPasswordIn, LoginIn, RefreshIn, RegisterIn, ResetPasswordIn, Role, User
from app.repositories import jobs as jobs_repo
from app.repositories import users as users_repo
from app.services import auth as auth_service
from app.utils.responses import ok

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# auto_error off so failures go through the error envelope
security = HTTPBearer(auto_error=False)


async def _user_from_token(token: str) -> User:
    td = decode_access_token(token)
    user = await users_repo.get_user(td.id)
    if user is None:
        raise Unauthenticated("The user belonging to this token no longer exists")
    if not user.is_active:
        raise Unauthenticated("Account is deactivated. Please contact support.")
    return user


async def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> User:
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Access denied. No token provided.")
    return await _user_from_token(credentials.credentials)


async def get_optional_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> Optional[User]:
    """Resolve the actor when a valid token is sent; anonymous otherwise."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return await _user_from_token(credentials.credentials)
    except Unauthenticated:
        return None


def require_roles(*roles: Role):
    allowed = {Role(r).value for r in roles}

    async def _dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise Forbidden(f"Access denied. Required role: {' or '.join(sorted(allowed))}")
        return user

    return _dependency


def client_ip(request: Request) -> str:
    """
    Address of the caller. ``X-Forwarded-For`` is read only when proxies are
    configured, and then from the right: each trusted hop appends the address
    it received the request from, anything further left is client supplied.
    """
    hops = settings.TRUSTED_PROXY_HOPS
    forwarded = request.headers.get("x-forwarded-for")
    if hops > 0 and forwarded:
        chain = [part.strip() for part in forwarded.split(",") if part.strip()]
        if chain:
            return chain[-min(hops, len(chain))]
    return request.client.host if request.client else "unknown"


@router.post("/register", status_code=201)
async def register(payload: RegisterIn):
    session = await auth_service.register(payload)
    return ok("User registered successfully", session.public())


@router.post("/login")
async def login(payload: LoginIn, request: Request):
    session = await auth_service.login(payload.email, payload.password, client_ip(request))
    return ok("Login successful", session.public())


@router.post("/refresh-token")
async def refresh_token(payload: RefreshIn):
    session = await auth_service.refresh(payload.refresh_token)
    return ok("Token refreshed successfully", {"token": session.token, "refreshToken": session.refresh_token})


@router.post("/forgot-password")
async def forgot_password(payload: ForgotPasswordIn):
    await auth_service.forgot_password(payload.email)
    return ok(auth_service.FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password")
async def reset_password(payload: ResetPasswordIn):
    session = await auth_service.reset_password(payload.token, payload.password)
    return ok("Password reset successful", session.public())


async def saved_jobs_of(user: User) -> List:
    out = []
    for job_id in user.saved_jobs:
        job = await jobs_repo.get_job(job_id)
        if job is not None:
            out.append(job)
    return out


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return ok("Profile retrieved successfully", {"user": user, "savedJobs": await saved_jobs_of(user)})


@router.post("/logout")
async def logout(user: User = Depends(get_current_user)):
    logger.info("User %s logged out", user.id)
    return ok("Logout successful")
