# app/models/user.py
import re
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from app.models.common import CamelModel

# at least one lower, one upper, one digit and one special character
_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]+$")
PASSWORD_RULE = (
    "Password must contain at least one uppercase letter, one lowercase letter, "
    "one number and one special character"
)


class Role(str, Enum):
    CANDIDATE = "candidate"
    EMPLOYER = "employer"
    ADMIN = "admin"


def check_password_strength(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not _PASSWORD_RE.match(value):
        raise ValueError(PASSWORD_RULE)
    return value


class Profile(CamelModel):
    phone: Optional[str] = None
    location: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    skills: List[str] = Field(default_factory=list)
    experience: Optional[str] = None
    education: Optional[str] = None
    avatar: Optional[str] = None


class RegisterIn(CamelModel):
    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str
    role: Role = Role.CANDIDATE

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def _strong_password(cls, v: str) -> str:
        return check_password_strength(v)

    @field_validator("role")
    @classmethod
    def _self_service_role(cls, v):
        if v == Role.ADMIN.value:
            raise ValueError("Role must be either candidate or employer")
        return v


class LoginIn(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()


class RefreshIn(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordIn(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()


class ResetPasswordIn(CamelModel):
    token: str = Field(..., min_length=1)
    password: str

    @field_validator("password")
    @classmethod
    def _strong_password(cls, v: str) -> str:
        return check_password_strength(v)


class ChangePasswordIn(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _strong_password(cls, v: str) -> str:
        return check_password_strength(v)


class ProfileUpdateIn(CamelModel):
    first_name: Optional[str] = Field(None, min_length=2, max_length=50)
    last_name: Optional[str] = Field(None, min_length=2, max_length=50)
    profile: Optional[Profile] = None


class User(CamelModel):
    """A stored account. Credential and reset fields never leave the server."""

    id: str
    first_name: str
    last_name: str
    email: str
    role: Role = Role.CANDIDATE
    password_hash: Optional[str] = Field(None, exclude=True)
    password_reset_token: Optional[str] = Field(None, exclude=True)
    password_reset_expires: Optional[datetime] = Field(None, exclude=True)
    is_active: bool = True
    is_email_verified: bool = False
    profile: Profile = Field(default_factory=Profile)
    saved_jobs: List[str] = Field(default_factory=list)
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
