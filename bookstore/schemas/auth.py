"""Request/response schemas for auth and user profile endpoints."""

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from bookstore.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from bookstore.schemas.common import CamelModel

_USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
EMAIL_MAX_LEN = 255


def validate_email_format(value: str) -> str:
    """Trim and lower-case an email; reject anything without local@domain.tld."""
    value = value.strip().lower()
    if len(value) > EMAIL_MAX_LEN or not _EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email format.")
    return value


class RegisterRequest(CamelModel):
    """New account credentials."""

    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    email: str = Field(..., max_length=EMAIL_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not _USERNAME_PATTERN.match(v):
            raise ValueError("Username may contain only letters, digits and underscores.")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return validate_email_format(v)


class LoginRequest(CamelModel):
    """Credentials for login."""

    username: str = Field(..., min_length=1, max_length=USERNAME_MAX_LEN)
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)


class RefreshRequest(CamelModel):
    refresh_token: str | None = Field(default=None, description="Refresh token from login")


class CheckUsernameRequest(CamelModel):
    username: str | None = None


class CheckEmailRequest(CamelModel):
    email: str | None = None


class UpdateUserRequest(CamelModel):
    """Self-service profile update; omitted fields stay unchanged."""

    email: str | None = Field(default=None, max_length=EMAIL_MAX_LEN)
    password: str | None = Field(
        default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return validate_email_format(v)


class UserResponse(CamelModel):
    """Public view of a user (no password hash)."""

    id: int
    username: str
    email: str
    role: str
    created_at: datetime | None = None


class AuthResponse(CamelModel):
    """Token pair returned after login or refresh."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Seconds until the access token expires")
    user: UserResponse


class CurrentUser(BaseModel):
    """Authenticated identity (id, username, role) attached to the request by the gate."""

    id: int
    username: str
    role: str

    class Config:
        from_attributes = True
