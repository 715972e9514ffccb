"""ORM model for user accounts (credentials, lockout state and single-use token hashes)."""

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text, func

from app.core.clock import as_utc, utc_now
from app.models.base import Base

ROLES = ("user", "admin")

DEFAULT_PREFERENCES = {
    "theme": "system",
    "notifications": {"email": True, "airdropReminders": True},
    "defaultCurrency": "USD",
}


def default_preferences() -> dict:
    return {
        "theme": DEFAULT_PREFERENCES["theme"],
        "notifications": dict(DEFAULT_PREFERENCES["notifications"]),
        "defaultCurrency": DEFAULT_PREFERENCES["defaultCurrency"],
    }


class User(Base):
    """
    User account for session authentication and role-based access control.

    role: 'admin' or 'user'. Accounts are never hard-deleted; closing an account
    clears is_active and rewrites email/username so the unique slots are freed.
    Only sha256 digests of reset/verification tokens are stored.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(320), nullable=False, unique=True, index=True)
    username = Column(String(64), nullable=True, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    avatar = Column(Text, nullable=True)
    bio = Column(String(500), nullable=True)
    role = Column(String(32), nullable=False, default="user")
    is_active = Column(Boolean, nullable=False, default=True)
    is_email_verified = Column(Boolean, nullable=False, default=False)
    preferences = Column(JSON, nullable=False, default=default_preferences)

    email_verification_token = Column(String(64), nullable=True, index=True)
    email_verification_expires_at = Column(DateTime(timezone=True), nullable=True)
    password_reset_token = Column(String(64), nullable=True, index=True)
    password_reset_expires_at = Column(DateTime(timezone=True), nullable=True)
    password_changed_at = Column(DateTime(timezone=True), nullable=True)

    failed_login_attempts = Column(Integer, nullable=False, default=0)
    locked_until = Column(DateTime(timezone=True), nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=utc_now,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_locked(self) -> bool:
        locked_until = as_utc(self.locked_until)
        return locked_until is not None and locked_until > utc_now()
