"""Request/response schemas for profile and admin user endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, HttpUrl

from app.core.security import PASSWORD_MAX_LEN, USERNAME_MAX_LEN, USERNAME_MIN_LEN
from app.schemas.auth import CamelModel, UserPublic


class NotificationPreferences(CamelModel):
    email: bool | None = None
    airdrop_reminders: bool | None = None


class PreferencesUpdate(CamelModel):
    theme: Literal["light", "dark", "system"] | None = None
    default_currency: str | None = Field(default=None, pattern=r"^[A-Za-z]{3}$")
    notifications: NotificationPreferences | None = None


class ProfileUpdateRequest(CamelModel):
    """Only the fields present in the body are changed."""

    first_name: str | None = Field(default=None, min_length=1, max_length=50)
    last_name: str | None = Field(default=None, min_length=1, max_length=50)
    username: str | None = Field(
        default=None,
        min_length=USERNAME_MIN_LEN,
        max_length=USERNAME_MAX_LEN,
        pattern=r"^[A-Za-z0-9_]+$",
    )
    avatar: HttpUrl | None = None
    bio: str | None = Field(default=None, max_length=500)
    preferences: PreferencesUpdate | None = None


class DeactivateAccountRequest(CamelModel):
    confirm_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)


class RoleUpdateRequest(CamelModel):
    role: Literal["user", "admin"]


class AdminUserView(UserPublic):
    """User entry for admin views (still no password or token hashes)."""

    is_active: bool
    failed_login_attempts: int = 0
    locked_until: datetime | None = None
    updated_at: datetime | None = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class UsersListData(BaseModel):
    users: list[AdminUserView]


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    status: str = "success"
    results: int
    pagination: Pagination
    data: UsersListData


class AdminUserData(BaseModel):
    user: AdminUserView


class AdminUserResponse(BaseModel):
    status: str = "success"
    message: str | None = None
    data: AdminUserData
