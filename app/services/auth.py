"""Authentication service: signup, login, password lifecycle, email verification, gating.

Composes the password hasher, session token issuer, single-use token manager and
lockout policy. Every mutation is an explicit read-modify-write on the user row
followed by a commit; nothing is re-hashed implicitly on save.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from app.core.clock import utc_now
from app.core.exceptions import (
    AccountLockedError,
    DuplicateEmailError,
    DuplicateUsernameError,
    EmailAlreadyVerifiedError,
    EmailNotVerifiedError,
    ForbiddenError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    TransientError,
    UnauthenticatedError,
    WeakPasswordError,
)
from app.core.security import (
    TokenIssuer,
    TokenRejectedError,
    changed_password_after,
    get_token_issuer,
    hash_password,
    password_policy_violations,
    verify_password,
)
from app.models import User
from app.services.lockout import LockoutPolicy
from app.services.single_use_tokens import SingleUseTokenManager, TokenKind
from app.services.tags import create_default_tags

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    """An authenticated user plus a freshly issued session token."""

    user: User
    token: str
    verification_token: str | None = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def ensure_strong_password(password: str, field: str = "password") -> None:
    problems = password_policy_violations(password)
    if problems:
        raise WeakPasswordError(errors=[{"field": field, "message": p} for p in problems])


@lru_cache(maxsize=4)
def _dummy_password_hash(rounds: int | None) -> str:
    """Hash compared against when the email is unknown, so both login failures cost one bcrypt check."""
    return hash_password("not-a-real-password", rounds)


class AuthService:
    def __init__(
        self,
        db: Session,
        token_issuer: TokenIssuer,
        lockout: LockoutPolicy | None = None,
        single_use_tokens: SingleUseTokenManager | None = None,
        bcrypt_rounds: int | None = None,
    ) -> None:
        self.db = db
        self.token_issuer = token_issuer
        self.lockout = lockout or LockoutPolicy()
        self.single_use_tokens = single_use_tokens or SingleUseTokenManager()
        self.bcrypt_rounds = bcrypt_rounds

    @classmethod
    def from_settings(cls, db: Session, settings: "Settings") -> "AuthService":
        return cls(
            db,
            token_issuer=get_token_issuer(),
            lockout=LockoutPolicy.from_settings(settings),
            single_use_tokens=SingleUseTokenManager.from_settings(settings),
            bcrypt_rounds=settings.BCRYPT_ROUNDS,
        )

    # -- persistence helpers -------------------------------------------------

    def _commit(self) -> None:
        try:
            self.db.commit()
        except (OperationalError, PoolTimeoutError) as e:
            self.db.rollback()
            logger.error("Store unavailable during commit: %s", e)
            raise TransientError() from e

    def find_active_by_email(self, email: str) -> User | None:
        return (
            self.db.query(User)
            .filter(func.lower(User.email) == normalize_email(email), User.is_active.is_(True))
            .first()
        )

    def _email_taken(self, email: str) -> bool:
        return (
            self.db.query(User.id).filter(func.lower(User.email) == normalize_email(email)).first()
            is not None
        )

    def _username_taken(self, username: str) -> bool:
        return self.db.query(User.id).filter(User.username == username).first() is not None

    def _set_password(self, user: User, new_password: str, now: datetime) -> None:
        user.password_hash = hash_password(new_password, self.bcrypt_rounds)
        user.password_changed_at = now
        user.password_reset_token = None
        user.password_reset_expires_at = None

    def _issue_session(self, user: User) -> str:
        return self.token_issuer.issue(user.id, user.role)

    # -- operations ----------------------------------------------------------

    def signup(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        username: str | None = None,
    ) -> AuthResult:
        """
        Create an account and return it with a session token.

        The account starts unverified; a verification token is returned for delivery
        and the session is usable immediately (see require_email_verification).
        """
        ensure_strong_password(password)
        email = normalize_email(email)
        username = username.strip() if username and username.strip() else None

        if self._email_taken(email):
            raise DuplicateEmailError()
        if username and self._username_taken(username):
            raise DuplicateUsernameError()

        user = User(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email=email,
            username=username,
            password_hash=hash_password(password, self.bcrypt_rounds),
            role="user",
            is_active=True,
            is_email_verified=False,
            failed_login_attempts=0,
        )
        verification_token = self.single_use_tokens.issue_email_verification_token(user)
        self.db.add(user)
        try:
            self._commit()
        except IntegrityError as e:
            self.db.rollback()
            if self._email_taken(email):
                raise DuplicateEmailError() from e
            raise DuplicateUsernameError() from e
        self.db.refresh(user)

        try:
            create_default_tags(self.db, user.id)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Creating default tags failed for user_id=%s", user.id)

        logger.info("User signed up", extra={"user_id": user.id})
        return AuthResult(
            user=user,
            token=self._issue_session(user),
            verification_token=verification_token,
        )

    def login(self, email: str, password: str, now: datetime | None = None) -> AuthResult:
        """
        Check credentials. Unknown email and wrong password both raise
        InvalidCredentialsError; a locked account raises AccountLockedError without
        checking the password.
        """
        now = now or utc_now()
        user = self.find_active_by_email(email)
        if user is None:
            verify_password(password, _dummy_password_hash(self.bcrypt_rounds))
            raise InvalidCredentialsError()
        if self.lockout.is_locked(user, now):
            logger.info("Login rejected for locked account", extra={"user_id": user.id})
            raise AccountLockedError()

        if not verify_password(password, user.password_hash):
            self.lockout.on_failed_attempt(user, now)
            self._commit()
            logger.info(
                "Login failed",
                extra={"user_id": user.id, "failed_attempts": user.failed_login_attempts},
            )
            raise InvalidCredentialsError()

        self.lockout.on_success(user)
        user.last_login_at = now
        self._commit()
        logger.info("Login succeeded", extra={"user_id": user.id})
        return AuthResult(user=user, token=self._issue_session(user))

    def change_password(self, user: User, current_password: str, new_password: str) -> AuthResult:
        """Replace the password. Every session issued before now stops verifying."""
        ensure_strong_password(new_password, field="newPassword")
        if not verify_password(current_password, user.password_hash):
            raise IncorrectPasswordError()
        self._set_password(user, new_password, utc_now())
        self._commit()
        logger.info("Password changed", extra={"user_id": user.id})
        return AuthResult(user=user, token=self._issue_session(user))

    def forgot_password(self, email: str) -> str | None:
        """
        Issue a reset token for an active account and return it for delivery.
        Returns None when there is no such account; callers respond identically.
        """
        user = self.find_active_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return None
        token = self.single_use_tokens.issue_reset_token(user)
        self._commit()
        logger.info("Password reset token issued", extra={"user_id": user.id})
        return token

    def reset_password(self, plain_token: str, new_password: str) -> AuthResult:
        ensure_strong_password(new_password)
        user = self.single_use_tokens.consume(self.db, TokenKind.PASSWORD_RESET, plain_token)
        if user is None:
            raise InvalidOrExpiredTokenError()
        self._set_password(user, new_password, utc_now())
        self.lockout.on_success(user)
        self._commit()
        logger.info("Password reset", extra={"user_id": user.id})
        return AuthResult(user=user, token=self._issue_session(user))

    def verify_email(self, plain_token: str) -> User:
        user = self.single_use_tokens.consume(self.db, TokenKind.EMAIL_VERIFICATION, plain_token)
        if user is None:
            raise InvalidOrExpiredTokenError()
        user.is_email_verified = True
        self._commit()
        logger.info("Email verified", extra={"user_id": user.id})
        return user

    def resend_verification(self, user: User) -> str:
        if user.is_email_verified:
            raise EmailAlreadyVerifiedError()
        token = self.single_use_tokens.issue_email_verification_token(user)
        self._commit()
        return token

    def authenticate(self, token: str) -> User:
        """Resolve a session token to its active user or raise UnauthenticatedError."""
        try:
            claims = self.token_issuer.verify(token)
        except TokenRejectedError as e:
            raise UnauthenticatedError(e.message) from e

        user = self.db.get(User, claims.user_id)
        if user is None:
            raise UnauthenticatedError("The user belonging to this token no longer exists.")
        if not user.is_active:
            raise UnauthenticatedError("Your account has been deactivated.")
        if changed_password_after(user.password_changed_at, claims.issued_at):
            raise UnauthenticatedError("User recently changed password. Please log in again.")
        return user


def restrict_to(required_roles: Iterable[str], user: User) -> User:
    if user.role not in set(required_roles):
        raise ForbiddenError()
    return user


def require_email_verification(user: User) -> User:
    if not user.is_email_verified:
        raise EmailNotVerifiedError()
    return user
