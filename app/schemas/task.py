"""Request/response schemas for tasks."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, StringConstraints

from app.schemas.auth import CamelModel
from app.schemas.tag import TagName
from app.schemas.user import Pagination

TaskPriority = Literal["Low", "Medium", "High"]
TaskCategory = Literal["Testnet", "Mainnet", "Social", "DeFi", "Gaming", "NFT", "Bridge", "Staking"]
TaskDifficulty = Literal["Easy", "Medium", "Hard"]

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
ProjectName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class TaskFields(CamelModel):
    project: ProjectName | None = None
    description: str | None = Field(default=None, max_length=1000)
    notes: str | None = Field(default=None, max_length=500)
    priority: TaskPriority | None = None
    category: TaskCategory | None = None
    difficulty: TaskDifficulty | None = None
    estimated_time: int | None = Field(default=None, ge=1, le=1440)
    is_daily: bool | None = None
    completed: bool | None = None
    due_date: datetime | None = None
    reward: str | None = Field(default=None, max_length=100)
    airdrop_id: int | None = Field(default=None, ge=1)
    tags: list[TagName] | None = Field(default=None, max_length=20)


class TaskCreateRequest(TaskFields):
    """project may be left out when airdropId is given; the airdrop's name is used."""

    title: Title


class TaskUpdateRequest(TaskFields):
    title: Title | None = None


class TaskBulkCreateRequest(BaseModel):
    tasks: list[TaskCreateRequest] = Field(..., min_length=1, max_length=50)


class AirdropSummary(CamelModel):
    id: int
    name: str


class TaskItem(CamelModel):
    id: int
    title: str
    description: str | None = None
    project: str
    completed: bool
    completed_at: datetime | None = None
    is_daily: bool
    priority: str
    category: str
    difficulty: str
    due_date: datetime | None = None
    notes: str | None = None
    estimated_time: int
    reward: str | None = None
    tags: list[str] = []
    airdrop_id: int | None = None
    airdrop: AirdropSummary | None = None
    status: str
    days_remaining: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TaskData(BaseModel):
    task: TaskItem


class TaskResponse(BaseModel):
    status: str = "success"
    message: str | None = None
    data: TaskData


class TasksData(BaseModel):
    tasks: list[TaskItem]


class TasksListResponse(BaseModel):
    status: str = "success"
    results: int
    pagination: Pagination
    data: TasksData


class TasksResponse(BaseModel):
    status: str = "success"
    message: str | None = None
    results: int
    data: TasksData


class CompletionSummary(CamelModel):
    total: int
    completed: int
    pending: int
    completion_percentage: int


class TodayTasksData(CamelModel):
    tasks: list[TaskItem]
    daily_tasks: list[TaskItem]
    other_tasks: list[TaskItem]
    statistics: CompletionSummary


class TodayTasksResponse(BaseModel):
    status: str = "success"
    data: TodayTasksData


class CategoryCount(CamelModel):
    category: str
    count: int


class ProjectCount(CamelModel):
    project: str
    count: int


class TaskStats(CamelModel):
    total: int
    completed: int
    pending: int
    daily: int
    today_completed: int
    completion_percentage: int
    by_category: list[CategoryCount]
    by_project: list[ProjectCount]


class TaskStatsResponse(BaseModel):
    status: str = "success"
    data: TaskStats
