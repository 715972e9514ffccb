"""A user's airdrop tasks: listing, today's and daily views, stats, completion toggling."""

import logging
import math
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.clock import as_utc, utc_now
from app.core.exceptions import BadRequestError, NotFoundError
from app.models import Airdrop, Task
from app.services.tags import normalize_tag_list, record_tag_usage

logger = logging.getLogger(__name__)

TASK_FIELDS = (
    "title",
    "description",
    "project",
    "is_daily",
    "priority",
    "category",
    "difficulty",
    "due_date",
    "notes",
    "estimated_time",
    "reward",
    "tags",
    "airdrop_id",
)

SORT_COLUMNS = {
    "createdAt": Task.created_at,
    "updatedAt": Task.updated_at,
    "dueDate": Task.due_date,
    "title": Task.title,
    "project": Task.project,
}

MAX_BULK_TASKS = 50
TOP_PROJECTS = 10


def day_bounds(now: datetime) -> tuple[datetime, datetime]:
    """[midnight, next midnight) in UTC around now."""
    start = as_utc(now).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def completion_summary(tasks: Iterable[Task]) -> dict[str, int]:
    tasks = list(tasks)
    total = len(tasks)
    completed = sum(1 for t in tasks if t.completed)
    return {
        "total": total,
        "completed": completed,
        "pending": total - completed,
        "completion_percentage": _percent(completed, total),
    }


def _percent(part: int, whole: int) -> int:
    if not whole:
        return 0
    return math.floor(part * 100 / whole + 0.5)


def _linked_airdrop(db: Session, airdrop_id: int) -> Airdrop:
    airdrop = (
        db.query(Airdrop)
        .filter(Airdrop.id == airdrop_id, Airdrop.is_active.is_(True))
        .first()
    )
    if airdrop is None:
        raise BadRequestError(
            "Invalid airdrop reference.",
            errors=[{"field": "airdropId", "message": "Airdrop does not exist."}],
        )
    return airdrop


def _set_completed(task: Task, completed: bool, now: datetime) -> None:
    if completed and not task.completed:
        task.completed_at = now
    elif not completed:
        task.completed_at = None
    task.completed = completed


def _new_task(db: Session, user_id: int, data: dict[str, Any], now: datetime) -> Task:
    fields = {k: v for k, v in data.items() if k in TASK_FIELDS}
    if fields.get("airdrop_id") is not None:
        airdrop = _linked_airdrop(db, fields["airdrop_id"])
        if not fields.get("project"):
            fields["project"] = airdrop.name
    if not fields.get("project"):
        raise BadRequestError(
            "Project name is required.",
            errors=[{"field": "project", "message": "Project name is required."}],
        )
    if "due_date" in fields:
        fields["due_date"] = as_utc(fields["due_date"])
    fields["tags"] = normalize_tag_list(fields.get("tags"))
    task = Task(user_id=user_id, completed=False, **fields)
    _set_completed(task, bool(data.get("completed")), now)
    db.add(task)
    record_tag_usage(db, user_id, added=task.tags)
    return task


def list_tasks(
    db: Session,
    user_id: int,
    page: int = 1,
    limit: int = 50,
    completed: bool | None = None,
    is_daily: bool | None = None,
    project: str | None = None,
    category: str | None = None,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> tuple[list[Task], dict[str, int]]:
    """The user's tasks matching the filters, with a pagination block (page, limit, total, pages)."""
    query = db.query(Task).filter(Task.user_id == user_id)
    if completed is not None:
        query = query.filter(Task.completed.is_(completed))
    if is_daily is not None:
        query = query.filter(Task.is_daily.is_(is_daily))
    if project:
        query = query.filter(Task.project == project)
    if category:
        query = query.filter(Task.category == category)
    total = query.count()
    column = SORT_COLUMNS[sort_by]
    ordering = column.asc() if sort_order == "asc" else column.desc()
    tasks = (
        query.order_by(ordering, Task.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    pagination = {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }
    return tasks, pagination


def todays_tasks(db: Session, user_id: int, now: datetime | None = None) -> list[Task]:
    """Daily tasks plus anything created today (UTC); open tasks first."""
    start, end = day_bounds(now or utc_now())
    return (
        db.query(Task)
        .filter(
            Task.user_id == user_id,
            or_(Task.is_daily.is_(True), (Task.created_at >= start) & (Task.created_at < end)),
        )
        .order_by(Task.completed.asc(), Task.created_at.desc(), Task.id.desc())
        .all()
    )


def daily_tasks(db: Session, user_id: int) -> list[Task]:
    return (
        db.query(Task)
        .filter(Task.user_id == user_id, Task.is_daily.is_(True))
        .order_by(Task.completed.asc(), Task.created_at.desc(), Task.id.desc())
        .all()
    )


def task_stats(db: Session, user_id: int, now: datetime | None = None) -> dict[str, Any]:
    start, _ = day_bounds(now or utc_now())
    mine = db.query(Task).filter(Task.user_id == user_id)
    total = mine.count()
    completed = mine.filter(Task.completed.is_(True)).count()
    daily = mine.filter(Task.is_daily.is_(True)).count()
    today_completed = mine.filter(
        Task.completed.is_(True), Task.completed_at >= start
    ).count()
    by_category = (
        db.query(Task.category, func.count(Task.id))
        .filter(Task.user_id == user_id)
        .group_by(Task.category)
        .order_by(Task.category.asc())
        .all()
    )
    task_count = func.count(Task.id)
    by_project = (
        db.query(Task.project, task_count)
        .filter(Task.user_id == user_id)
        .group_by(Task.project)
        .order_by(task_count.desc(), Task.project.asc())
        .limit(TOP_PROJECTS)
        .all()
    )
    return {
        "total": total,
        "completed": completed,
        "pending": total - completed,
        "daily": daily,
        "today_completed": today_completed,
        "completion_percentage": _percent(completed, total),
        "by_category": [{"category": c, "count": n} for c, n in by_category],
        "by_project": [{"project": p, "count": n} for p, n in by_project],
    }


def get_task(db: Session, user_id: int, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id, Task.user_id == user_id).first()
    if task is None:
        raise NotFoundError("Task not found.")
    return task


def create_task(
    db: Session, user_id: int, data: dict[str, Any], now: datetime | None = None
) -> Task:
    task = _new_task(db, user_id, data, now or utc_now())
    db.commit()
    db.refresh(task)
    logger.info("Task created", extra={"task_id": task.id, "user_id": user_id})
    return task


def create_tasks(
    db: Session, user_id: int, items: list[dict[str, Any]], now: datetime | None = None
) -> list[Task]:
    """Create every task or none of them."""
    if not items:
        raise BadRequestError("Tasks array is required.")
    if len(items) > MAX_BULK_TASKS:
        raise BadRequestError(f"At most {MAX_BULK_TASKS} tasks can be created at once.")
    now = now or utc_now()
    try:
        tasks = [_new_task(db, user_id, item, now) for item in items]
    except BadRequestError:
        db.rollback()
        raise
    db.commit()
    for task in tasks:
        db.refresh(task)
    logger.info("Tasks created", extra={"user_id": user_id, "count": len(tasks)})
    return tasks


def update_task(
    db: Session,
    user_id: int,
    task_id: int,
    changes: dict[str, Any],
    now: datetime | None = None,
) -> Task:
    task = get_task(db, user_id, task_id)
    fields = {k: v for k, v in changes.items() if k in TASK_FIELDS}
    if fields.get("airdrop_id") is not None and fields["airdrop_id"] != task.airdrop_id:
        _linked_airdrop(db, fields["airdrop_id"])
    if "due_date" in fields:
        fields["due_date"] = as_utc(fields["due_date"])
    if "tags" in fields:
        old = list(task.tags or [])
        new = normalize_tag_list(fields["tags"])
        record_tag_usage(
            db,
            user_id,
            added=[name for name in new if name not in old],
            removed=[name for name in old if name not in new],
        )
        fields["tags"] = new
    for field, value in fields.items():
        setattr(task, field, value)
    if "completed" in changes:
        _set_completed(task, bool(changes["completed"]), now or utc_now())
    db.commit()
    db.refresh(task)
    return task


def toggle_task(db: Session, user_id: int, task_id: int, now: datetime | None = None) -> Task:
    task = get_task(db, user_id, task_id)
    _set_completed(task, not task.completed, now or utc_now())
    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, user_id: int, task_id: int) -> None:
    task = get_task(db, user_id, task_id)
    record_tag_usage(db, user_id, removed=task.tags or [])
    db.delete(task)
    db.commit()
