"""Password-reset and email-verification tokens: random, single use, hashed at rest."""

import hashlib
import secrets
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.core.clock import utc_now
from app.models import User

if TYPE_CHECKING:
    from app.core.config import Settings

TOKEN_BYTES = 32


class TokenKind(str, Enum):
    PASSWORD_RESET = "password_reset"
    EMAIL_VERIFICATION = "email_verification"


# kind -> (hash column, expiry column) on User
_COLUMNS = {
    TokenKind.PASSWORD_RESET: ("password_reset_token", "password_reset_expires_at"),
    TokenKind.EMAIL_VERIFICATION: (
        "email_verification_token",
        "email_verification_expires_at",
    ),
}


def hash_token(plain_token: str) -> str:
    return hashlib.sha256(plain_token.encode("utf-8")).hexdigest()


class SingleUseTokenManager:
    """
    Issues and consumes reset/verification tokens.

    Only sha256(token) and an expiry are written to the user row; issuing again
    overwrites the previous token of the same kind. Callers commit the session.
    """

    def __init__(
        self,
        reset_ttl: timedelta = timedelta(minutes=10),
        verification_ttl: timedelta = timedelta(hours=24),
    ) -> None:
        self._ttl = {
            TokenKind.PASSWORD_RESET: reset_ttl,
            TokenKind.EMAIL_VERIFICATION: verification_ttl,
        }

    @classmethod
    def from_settings(cls, settings: "Settings") -> "SingleUseTokenManager":
        return cls(
            reset_ttl=timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
            verification_ttl=timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS),
        )

    def issue(self, kind: TokenKind, user: User, now: datetime | None = None) -> str:
        """Store a fresh token hash on the user and return the plaintext for delivery."""
        plain = secrets.token_hex(TOKEN_BYTES)
        hash_col, expires_col = _COLUMNS[kind]
        setattr(user, hash_col, hash_token(plain))
        setattr(user, expires_col, (now or utc_now()) + self._ttl[kind])
        return plain

    def issue_reset_token(self, user: User, now: datetime | None = None) -> str:
        return self.issue(TokenKind.PASSWORD_RESET, user, now)

    def issue_email_verification_token(self, user: User, now: datetime | None = None) -> str:
        return self.issue(TokenKind.EMAIL_VERIFICATION, user, now)

    def consume(
        self,
        db: Session,
        kind: TokenKind,
        plain_token: str,
        now: datetime | None = None,
    ) -> User | None:
        """
        Return the active user holding this unexpired token and clear it, or None.

        Wrong, expired and already-used tokens are indistinguishable to the caller.
        """
        if not plain_token:
            return None
        hash_col, expires_col = _COLUMNS[kind]
        user = (
            db.query(User)
            .filter(
                getattr(User, hash_col) == hash_token(plain_token),
                getattr(User, expires_col) > (now or utc_now()),
                User.is_active.is_(True),
            )
            .first()
        )
        if user is None:
            return None
        setattr(user, hash_col, None)
        setattr(user, expires_col, None)
        return user
