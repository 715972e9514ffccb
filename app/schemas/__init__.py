"""Pydantic request/response schemas."""

from app.schemas.airdrop import (
    AirdropCreateRequest,
    AirdropItem,
    AirdropResponse,
    AirdropsListResponse,
    AirdropStatsResponse,
    AirdropUpdateRequest,
)
from app.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MeResponse,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    UpdatePasswordRequest,
    UserPublic,
)
from app.schemas.health import HealthResponse
from app.schemas.tag import TagCreateRequest, TagItem, TagsListResponse, TagUpdateRequest
from app.schemas.task import (
    TaskBulkCreateRequest,
    TaskCreateRequest,
    TaskItem,
    TaskResponse,
    TasksListResponse,
    TaskStatsResponse,
    TaskUpdateRequest,
    TodayTasksResponse,
)
from app.schemas.user import (
    AdminUserResponse,
    AdminUserView,
    DeactivateAccountRequest,
    ProfileUpdateRequest,
    RoleUpdateRequest,
    UsersListResponse,
)

__all__ = [
    "AdminUserResponse",
    "AdminUserView",
    "AirdropCreateRequest",
    "AirdropItem",
    "AirdropResponse",
    "AirdropStatsResponse",
    "AirdropUpdateRequest",
    "AirdropsListResponse",
    "AuthResponse",
    "DeactivateAccountRequest",
    "ForgotPasswordRequest",
    "HealthResponse",
    "LoginRequest",
    "MeResponse",
    "MessageResponse",
    "ProfileUpdateRequest",
    "ResetPasswordRequest",
    "RoleUpdateRequest",
    "SignupRequest",
    "TagCreateRequest",
    "TagItem",
    "TagUpdateRequest",
    "TagsListResponse",
    "TaskBulkCreateRequest",
    "TaskCreateRequest",
    "TaskItem",
    "TaskResponse",
    "TaskStatsResponse",
    "TaskUpdateRequest",
    "TasksListResponse",
    "TodayTasksResponse",
    "UpdatePasswordRequest",
    "UserPublic",
    "UsersListResponse",
]
