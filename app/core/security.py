"""Password hashing, password policy and JWT session token issuance/verification."""

import re
import string
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

import bcrypt
import jwt

from app.core.clock import as_utc, utc_now
from app.core.config import settings


# Min/max lengths for input validation.
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 72
# bcrypt only reads the first 72 bytes of its input.
PASSWORD_MAX_BYTES = 72
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 30
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # The policy rejects longer passwords; slicing keeps bcrypt from raising on unchecked input.
    pw_bytes = plain_password.encode("utf-8")[:PASSWORD_MAX_BYTES]
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash. Malformed hashes verify as False."""
    if not hashed:
        return False
    pw_bytes = plain_password.encode("utf-8")[:PASSWORD_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def password_policy_violations(password: str) -> list[str]:
    """Return the unmet password rules (empty when the password is acceptable)."""
    problems: list[str] = []
    if len(password) < PASSWORD_MIN_LEN:
        problems.append(f"Password must be at least {PASSWORD_MIN_LEN} characters long.")
    if len(password) > PASSWORD_MAX_LEN:
        problems.append(f"Password must be at most {PASSWORD_MAX_LEN} characters long.")
    elif len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        problems.append(f"Password must be at most {PASSWORD_MAX_BYTES} bytes long.")
    if not any(c.isupper() for c in password):
        problems.append("Password must contain an uppercase letter.")
    if not any(c.islower() for c in password):
        problems.append("Password must contain a lowercase letter.")
    if not any(c in string.digits for c in password):
        problems.append("Password must contain a number.")
    if not any(not c.isalnum() and not c.isspace() for c in password):
        problems.append("Password must contain a special character.")
    return problems


class TokenRejectedError(Exception):
    """Raised when a session token cannot be accepted."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TokenExpiredError(TokenRejectedError):
    """Signature is valid but the token is past its expiry."""


class TokenInvalidError(TokenRejectedError):
    """Bad signature, malformed payload or missing claims."""


@dataclass(frozen=True)
class SessionClaims:
    user_id: int
    role: str
    issued_at: datetime
    expires_at: datetime


class TokenIssuer:
    """
    Issues and verifies stateless HS256 session tokens.

    The signing key is injected at construction; an empty key is rejected here so a
    misconfigured process fails at startup rather than on the first request.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", ttl: timedelta = timedelta(days=7)) -> None:
        if not secret or not secret.strip():
            raise ValueError("Token signing secret must be set and non-empty")
        if ttl <= timedelta(0):
            raise ValueError("Token TTL must be positive")
        self._secret = secret
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, user_id: int, role: str, now: datetime | None = None) -> str:
        """Create a signed token with sub, role, iat and exp."""
        now = now or utc_now()
        expire = now + self.ttl
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "role": role,
            # Sub-second iat so a token minted right after a password change outlives it.
            "iat": now.timestamp(),
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> SessionClaims:
        """
        Decode and validate a token.
        Raises TokenExpiredError when expired, TokenInvalidError for anything else.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Your token has expired. Please log in again.") from e
        except jwt.PyJWTError as e:
            raise TokenInvalidError("Invalid token. Please log in again.") from e

        role = payload.get("role")
        try:
            user_id = int(payload["sub"])
            issued_at = datetime.fromtimestamp(float(payload["iat"]), UTC)
            expires_at = datetime.fromtimestamp(float(payload["exp"]), UTC)
        except (TypeError, ValueError, OverflowError) as e:
            raise TokenInvalidError("Invalid token payload.") from e
        if not isinstance(role, str) or not role:
            raise TokenInvalidError("Invalid token payload.")
        return SessionClaims(user_id=user_id, role=role, issued_at=issued_at, expires_at=expires_at)


def changed_password_after(password_changed_at: datetime | None, issued_at: datetime) -> bool:
    """True when the password was changed after the token was issued."""
    changed = as_utc(password_changed_at)
    if changed is None:
        return False
    return issued_at < changed


@lru_cache
def get_token_issuer() -> TokenIssuer:
    """Process-wide issuer built once from settings."""
    return TokenIssuer(
        secret=settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
        ttl=timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    )
