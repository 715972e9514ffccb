"""Profile, account closure and admin user management endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user, require_admin
from app.core.config import get_settings
from app.core.database import get_db
from app.models import User
from app.schemas.auth import MeResponse, MessageResponse, UserData, UserPublic
from app.schemas.user import (
    AdminUserData,
    AdminUserResponse,
    AdminUserView,
    DeactivateAccountRequest,
    Pagination,
    ProfileUpdateRequest,
    RoleUpdateRequest,
    UsersListData,
    UsersListResponse,
)
from app.services import users as user_service

router = APIRouter()


@router.get("/profile", response_model=MeResponse)
def get_profile(current_user: Annotated[User, Depends(get_current_user)]) -> MeResponse:
    return MeResponse(data=UserData(user=UserPublic.model_validate(current_user)))


@router.put("/profile", response_model=MeResponse)
def update_profile(
    body: ProfileUpdateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MeResponse:
    """Update only the fields present in the body; preferences are merged."""
    changes = body.model_dump(exclude_unset=True, exclude_none=True, mode="json")
    if body.preferences is not None:
        # Stored preferences keep the camelCase keys clients send.
        changes["preferences"] = body.preferences.model_dump(
            by_alias=True, exclude_none=True, mode="json"
        )
    user = user_service.update_profile(db, current_user, changes)
    return MeResponse(data=UserData(user=UserPublic.model_validate(user)))


@router.delete("/account", response_model=MessageResponse)
def deactivate_account(
    body: DeactivateAccountRequest,
    response: Response,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Soft-delete the caller's account after re-checking the password."""
    user_service.deactivate_account(db, current_user, body.confirm_password)
    settings = get_settings()
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )
    return MessageResponse(message="Account deactivated successfully")


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    search: Annotated[str | None, Query(max_length=100)] = None,
) -> UsersListResponse:
    """List active users (admin only), newest first."""
    users, pagination = user_service.list_users(db, page=page, limit=limit, search=search)
    return UsersListResponse(
        results=len(users),
        pagination=Pagination(**pagination),
        data=UsersListData(users=[AdminUserView.model_validate(u) for u in users]),
    )


@router.get("/{user_id}", response_model=AdminUserResponse)
def get_user(
    user_id: int,
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> AdminUserResponse:
    user = user_service.get_user(db, user_id)
    return AdminUserResponse(data=AdminUserData(user=AdminUserView.model_validate(user)))


@router.patch("/{user_id}/role", response_model=AdminUserResponse)
def update_user_role(
    user_id: int,
    body: RoleUpdateRequest,
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> AdminUserResponse:
    user = user_service.update_role(db, user_id, body.role)
    return AdminUserResponse(
        message="User role updated successfully",
        data=AdminUserData(user=AdminUserView.model_validate(user)),
    )
