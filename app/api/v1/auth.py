"""Auth endpoints and auth dependencies (get_current_user, require_roles, rate_limit)."""

from collections.abc import Callable
from datetime import timedelta
from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.clock import utc_now
from app.core.config import get_settings
from app.core.database import get_db
from app.core.exceptions import UnauthenticatedError
from app.models import User
from app.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MeResponse,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    UpdatePasswordRequest,
    UserData,
    UserPublic,
)
from app.services.auth import AuthResult, AuthService, require_email_verification, restrict_to
from app.services.mailer import send_password_reset_email, send_verification_email
from app.services.rate_limit import RateLimiter, build_rate_limiter, fingerprint

router = APIRouter()
security = HTTPBearer(auto_error=False)


# -- dependencies -------------------------------------------------------------


def get_auth_service(db: Annotated[Session, Depends(get_db)]) -> AuthService:
    return AuthService.from_settings(db, get_settings())


@lru_cache
def get_rate_limiter() -> RateLimiter:
    """Process-wide limiter; counters are shared by every request in this process."""
    return build_rate_limiter(get_settings())


def _client_key(request: Request) -> str:
    client_host = request.client.host if request.client else None
    return fingerprint(client_host, request.headers.get("user-agent"))


def rate_limit(rule_name: str) -> Callable[..., None]:
    """Dependency factory: count this request against rule_name for the caller's fingerprint."""

    def _check(
        request: Request,
        limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
    ) -> None:
        limiter.check(rule_name, _client_key(request))

    return _check


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> User:
    """Dependency: require a valid session (Bearer header or session cookie)."""
    token = credentials.credentials if credentials else None
    if not token:
        token = request.cookies.get(get_settings().SESSION_COOKIE_NAME)
    if not token:
        raise UnauthenticatedError()
    return service.authenticate(token)


def require_roles(*roles: str) -> Callable[..., User]:
    """Dependency factory: 403 unless the current user has one of roles."""

    def _require(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        return restrict_to(roles, current_user)

    return _require


require_admin = require_roles("admin")


def require_verified_email(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    """Dependency for features that need a verified email address."""
    return require_email_verification(current_user)


# -- helpers ------------------------------------------------------------------


def _set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    max_age = settings.JWT_EXPIRE_MINUTES * 60
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=max_age,
        expires=utc_now() + timedelta(seconds=max_age),
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )


def _auth_response(response: Response, result: AuthResult, message: str) -> AuthResponse:
    _set_session_cookie(response, result.token)
    return AuthResponse(
        message=message,
        token=result.token,
        data=UserData(user=UserPublic.model_validate(result.user)),
    )


# -- routes -------------------------------------------------------------------


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("signup"))],
)
def signup(
    body: SignupRequest,
    response: Response,
    background_tasks: BackgroundTasks,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """Register an account. The session is usable before the email is verified."""
    result = service.signup(
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        password=body.password,
        username=body.username,
    )
    if result.verification_token:
        background_tasks.add_task(
            send_verification_email, get_settings(), result.user.email, result.verification_token
        )
    return _auth_response(
        response,
        result,
        "User registered successfully! Please check your email to verify your account.",
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[Depends(rate_limit("login"))],
)
def login(
    body: LoginRequest,
    response: Response,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """
    Authenticate with email and password; returns a session token.
    Send it back as `Authorization: Bearer <token>` or rely on the session cookie.
    """
    result = service.login(body.email, body.password)
    return _auth_response(response, result, "Logged in successfully")


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response) -> MessageResponse:
    """Clear the session cookie. Tokens are stateless; clients drop theirs too."""
    settings = get_settings()
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )
    return MessageResponse(message="Logged out successfully")


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit("forgot_password"))],
)
def forgot_password(
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    """Always 200, whether or not the account exists."""
    token = service.forgot_password(body.email)
    if token:
        background_tasks.add_task(
            send_password_reset_email, get_settings(), str(body.email).lower(), token
        )
    return MessageResponse(
        message="If an account exists for that email, a password reset link has been sent."
    )


@router.patch("/reset-password/{token}", response_model=AuthResponse)
def reset_password(
    token: str,
    body: ResetPasswordRequest,
    response: Response,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    result = service.reset_password(token, body.password)
    return _auth_response(response, result, "Password reset successfully")


@router.patch("/update-password", response_model=AuthResponse)
def update_password(
    body: UpdatePasswordRequest,
    response: Response,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """Change password; sessions issued earlier stop working, a new one is returned."""
    result = service.change_password(current_user, body.current_password, body.new_password)
    return _auth_response(response, result, "Password updated successfully")


@router.post("/verify-email/{token}", response_model=MessageResponse)
def verify_email(
    token: str,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    service.verify_email(token)
    return MessageResponse(message="Email verified successfully!")


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> MessageResponse:
    limiter.check("resend_verification", _client_key(request))
    token = service.resend_verification(current_user)
    background_tasks.add_task(send_verification_email, get_settings(), current_user.email, token)
    return MessageResponse(message="Verification email sent!")


@router.get("/me", response_model=MeResponse)
def me(current_user: Annotated[User, Depends(get_current_user)]) -> MeResponse:
    """Return the caller's own profile (never the password hash)."""
    return MeResponse(data=UserData(user=UserPublic.model_validate(current_user)))
