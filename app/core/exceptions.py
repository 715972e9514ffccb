"""Application error kinds and their HTTP mapping.

Services raise these; handlers registered in app.main render them as
``{"status", "code", "message", "errors"}`` JSON bodies.
"""

from typing import Any

from fastapi import status


class AppError(Exception):
    """Base error carrying an HTTP status, a stable code and a client-safe message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    default_message: str = "Something went wrong."

    def __init__(
        self,
        message: str | None = None,
        *,
        errors: list[dict[str, Any]] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.errors = errors
        self.headers = headers
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return False


class DuplicateEmailError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "DUPLICATE_EMAIL"
    default_message = "User with this email already exists."


class DuplicateUsernameError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "DUPLICATE_USERNAME"
    default_message = "Username is already taken."


class WeakPasswordError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "WEAK_PASSWORD"
    default_message = (
        "Password must be at least 8 characters and contain an uppercase letter, "
        "a lowercase letter, a number and a symbol."
    )


class InvalidCredentialsError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password."


class AccountLockedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "ACCOUNT_LOCKED"
    default_message = "Account temporarily locked due to too many failed login attempts."


class IncorrectPasswordError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INCORRECT_PASSWORD"
    default_message = "Your current password is incorrect."


class InvalidOrExpiredTokenError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_OR_EXPIRED_TOKEN"
    default_message = "Token is invalid or has expired."


class EmailNotVerifiedError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "EMAIL_NOT_VERIFIED"
    default_message = "Please verify your email address to access this feature."


class EmailAlreadyVerifiedError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "EMAIL_ALREADY_VERIFIED"
    default_message = "Email is already verified."


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "BAD_REQUEST"
    default_message = "Request could not be processed."


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_message = "You do not have permission to perform this action."


class UnauthenticatedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"
    default_message = "You are not logged in. Please log in to get access."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found."


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Resource already exists."


class RateLimitedError(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "RATE_LIMITED"
    default_message = "Too many requests, please try again later."

    def __init__(self, message: str | None = None, *, retry_after: int) -> None:
        self.retry_after = max(1, int(retry_after))
        super().__init__(message, headers={"Retry-After": str(self.retry_after)})


class TransientError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "TRANSIENT"
    default_message = "Service temporarily unavailable, please retry."

    def __init__(self, message: str | None = None, *, retry_after: int = 5) -> None:
        super().__init__(message, headers={"Retry-After": str(retry_after)})

    @property
    def retryable(self) -> bool:
        return True
