"""Request/response schemas for auth endpoints. JSON field names are camelCase."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

from app.core.security import PASSWORD_MAX_LEN, USERNAME_MAX_LEN, USERNAME_MIN_LEN


class CamelModel(BaseModel):
    """Base for API payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SignupRequest(CamelModel):
    """New account. Password strength is checked by the auth service."""

    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    confirm_password: str = Field(..., max_length=PASSWORD_MAX_LEN)
    username: str | None = Field(
        default=None,
        min_length=USERNAME_MIN_LEN,
        max_length=USERNAME_MAX_LEN,
        pattern=r"^[A-Za-z0-9_]+$",
    )

    @model_validator(mode="after")
    def passwords_match(self) -> "SignupRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(CamelModel):
    """Credentials for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    confirm_password: str = Field(..., max_length=PASSWORD_MAX_LEN)

    @model_validator(mode="after")
    def passwords_match(self) -> "ResetPasswordRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UpdatePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    confirm_password: str = Field(..., max_length=PASSWORD_MAX_LEN)

    @model_validator(mode="after")
    def passwords_match(self) -> "UpdatePasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserPublic(CamelModel):
    """Profile fields safe to return to the account owner (no password or token hashes)."""

    id: int
    first_name: str
    last_name: str
    full_name: str
    email: str
    username: str | None = None
    avatar: str | None = None
    bio: str | None = None
    role: str
    is_email_verified: bool
    preferences: dict[str, Any] = Field(default_factory=dict)
    last_login_at: datetime | None = None
    created_at: datetime | None = None


class UserData(BaseModel):
    user: UserPublic


class AuthResponse(BaseModel):
    """Session token plus the authenticated user."""

    status: str = "success"
    message: str
    token: str
    data: UserData


class MessageResponse(BaseModel):
    status: str = "success"
    message: str


class MeResponse(BaseModel):
    status: str = "success"
    data: UserData
