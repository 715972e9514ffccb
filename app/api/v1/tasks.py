"""Task endpoints (authenticated; every query is scoped to the caller)."""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.models import User
from app.schemas.auth import MessageResponse
from app.schemas.task import (
    CompletionSummary,
    TaskBulkCreateRequest,
    TaskCategory,
    TaskCreateRequest,
    TaskData,
    TaskItem,
    TaskResponse,
    TasksData,
    TasksListResponse,
    TasksResponse,
    TaskStats,
    TaskStatsResponse,
    TaskUpdateRequest,
    TodayTasksData,
    TodayTasksResponse,
)
from app.schemas.user import Pagination
from app.services import tasks as task_service

router = APIRouter()

SortField = Literal["createdAt", "updatedAt", "dueDate", "title", "project"]


def _items(tasks) -> list[TaskItem]:
    return [TaskItem.model_validate(t) for t in tasks]


def _one(task, message: str | None = None) -> TaskResponse:
    return TaskResponse(message=message, data=TaskData(task=TaskItem.model_validate(task)))


@router.get("", response_model=TasksListResponse)
def list_tasks(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    completed: bool | None = None,
    is_daily: Annotated[bool | None, Query(alias="isDaily")] = None,
    project: Annotated[str | None, Query(max_length=100)] = None,
    category: TaskCategory | None = None,
    sort_by: Annotated[SortField, Query(alias="sortBy")] = "createdAt",
    sort_order: Annotated[Literal["asc", "desc"], Query(alias="sortOrder")] = "desc",
) -> TasksListResponse:
    tasks, pagination = task_service.list_tasks(
        db,
        current_user.id,
        page=page,
        limit=limit,
        completed=completed,
        is_daily=is_daily,
        project=project,
        category=category,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return TasksListResponse(
        results=len(tasks),
        pagination=Pagination(**pagination),
        data=TasksData(tasks=_items(tasks)),
    )


@router.get("/today", response_model=TodayTasksResponse)
def todays_tasks(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> TodayTasksResponse:
    """Daily tasks plus tasks created today (UTC), split into daily and other."""
    tasks = task_service.todays_tasks(db, current_user.id)
    return TodayTasksResponse(
        data=TodayTasksData(
            tasks=_items(tasks),
            daily_tasks=_items(t for t in tasks if t.is_daily),
            other_tasks=_items(t for t in tasks if not t.is_daily),
            statistics=CompletionSummary(**task_service.completion_summary(tasks)),
        )
    )


@router.get("/daily", response_model=TasksResponse)
def daily_tasks(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> TasksResponse:
    tasks = task_service.daily_tasks(db, current_user.id)
    return TasksResponse(results=len(tasks), data=TasksData(tasks=_items(tasks)))


@router.get("/stats", response_model=TaskStatsResponse)
def task_stats(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> TaskStatsResponse:
    return TaskStatsResponse(data=TaskStats(**task_service.task_stats(db, current_user.id)))


@router.post("/bulk", response_model=TasksResponse, status_code=status.HTTP_201_CREATED)
def create_tasks(
    body: TaskBulkCreateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> TasksResponse:
    """Create several tasks at once; one bad airdrop reference rejects the whole batch."""
    items = [t.model_dump(exclude_unset=True, exclude_none=True) for t in body.tasks]
    tasks = task_service.create_tasks(db, current_user.id, items)
    return TasksResponse(
        message=f"{len(tasks)} tasks created successfully",
        results=len(tasks),
        data=TasksData(tasks=_items(tasks)),
    )


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> TaskResponse:
    return _one(task_service.get_task(db, current_user.id, task_id))


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    body: TaskCreateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> TaskResponse:
    data = body.model_dump(exclude_unset=True, exclude_none=True)
    task = task_service.create_task(db, current_user.id, data)
    return _one(task, "Task created successfully")


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    body: TaskUpdateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> TaskResponse:
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    task = task_service.update_task(db, current_user.id, task_id, changes)
    return _one(task, "Task updated successfully")


@router.patch("/{task_id}/toggle", response_model=TaskResponse)
def toggle_task(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> TaskResponse:
    task = task_service.toggle_task(db, current_user.id, task_id)
    state = "completed" if task.completed else "pending"
    return _one(task, f"Task marked as {state}")


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    task_service.delete_task(db, current_user.id, task_id)
    return MessageResponse(message="Task deleted successfully")
