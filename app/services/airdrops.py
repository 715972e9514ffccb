"""Airdrop catalog: filtered listing, stats, creator-checked changes and soft delete."""

import logging
import math
from datetime import datetime
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.clock import as_utc, utc_now
from app.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.models import Airdrop, User
from app.models.airdrop import AIRDROP_STATUSES
from app.services.tags import normalize_tag_list, record_tag_usage

logger = logging.getLogger(__name__)

AIRDROP_FIELDS = (
    "name",
    "description",
    "status",
    "start_date",
    "end_date",
    "token_symbol",
    "total_reward",
    "requirements",
    "website",
    "twitter",
    "discord",
    "telegram",
    "priority",
    "tags",
)

SORT_COLUMNS = {
    "createdAt": Airdrop.created_at,
    "updatedAt": Airdrop.updated_at,
    "name": Airdrop.name,
    "priority": Airdrop.priority,
    "startDate": Airdrop.start_date,
    "endDate": Airdrop.end_date,
    "status": Airdrop.status,
}


def status_for_dates(start: datetime | None, end: datetime | None, now: datetime) -> str | None:
    """upcoming/active/ended from the campaign window; None unless both dates are known."""
    start, end = as_utc(start), as_utc(end)
    if start is None or end is None:
        return None
    if now < start:
        return "upcoming"
    if now <= end:
        return "active"
    return "ended"


def _sync_status(airdrop: Airdrop, now: datetime) -> None:
    if airdrop.status == "completed":
        return
    derived = status_for_dates(airdrop.start_date, airdrop.end_date, now)
    if derived is not None:
        airdrop.status = derived


def _check_dates(start: datetime | None, end: datetime | None) -> None:
    start, end = as_utc(start), as_utc(end)
    if start is not None and end is not None and end <= start:
        raise BadRequestError(
            "End date must be after start date.",
            errors=[{"field": "endDate", "message": "End date must be after start date."}],
        )


def _clean(data: dict[str, Any]) -> dict[str, Any]:
    cleaned = {k: v for k, v in data.items() if k in AIRDROP_FIELDS}
    for field in ("start_date", "end_date"):
        if field in cleaned:
            cleaned[field] = as_utc(cleaned[field])
    if cleaned.get("token_symbol"):
        cleaned["token_symbol"] = cleaned["token_symbol"].upper()
    if "tags" in cleaned:
        cleaned["tags"] = normalize_tag_list(cleaned["tags"])
    return cleaned


def list_airdrops(
    db: Session,
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
    token_symbol: str | None = None,
    priority: int | None = None,
    search: str | None = None,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> tuple[list[Airdrop], dict[str, int]]:
    """Active airdrops matching the filters, with a pagination block (page, limit, total, pages)."""
    query = db.query(Airdrop).filter(Airdrop.is_active.is_(True))
    if status:
        query = query.filter(Airdrop.status == status)
    if token_symbol and token_symbol.strip():
        query = query.filter(Airdrop.token_symbol.ilike(f"%{token_symbol.strip()}%"))
    if priority is not None:
        query = query.filter(Airdrop.priority == priority)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Airdrop.name.ilike(pattern),
                Airdrop.description.ilike(pattern),
                Airdrop.token_symbol.ilike(pattern),
            )
        )
    total = query.count()
    column = SORT_COLUMNS[sort_by]
    ordering = column.asc() if sort_order == "asc" else column.desc()
    airdrops = (
        query.order_by(ordering, Airdrop.id.desc())
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
    return airdrops, pagination


def airdrop_stats(db: Session) -> dict[str, Any]:
    """Count of active airdrops, overall and per status (every status is present)."""
    rows = (
        db.query(Airdrop.status, func.count(Airdrop.id))
        .filter(Airdrop.is_active.is_(True))
        .group_by(Airdrop.status)
        .all()
    )
    by_status = {name: 0 for name in AIRDROP_STATUSES}
    for name, count in rows:
        by_status[name] = count
    return {"total": sum(by_status.values()), "by_status": by_status}


def get_airdrop(db: Session, airdrop_id: int) -> Airdrop:
    airdrop = (
        db.query(Airdrop)
        .filter(Airdrop.id == airdrop_id, Airdrop.is_active.is_(True))
        .first()
    )
    if airdrop is None:
        raise NotFoundError("Airdrop not found.")
    return airdrop


def _editable(db: Session, user: User, airdrop_id: int) -> Airdrop:
    airdrop = get_airdrop(db, airdrop_id)
    if airdrop.created_by != user.id and user.role != "admin":
        raise ForbiddenError("You can only modify airdrops you created.")
    return airdrop


def create_airdrop(
    db: Session, user: User, data: dict[str, Any], now: datetime | None = None
) -> Airdrop:
    now = now or utc_now()
    fields = _clean(data)
    _check_dates(fields.get("start_date"), fields.get("end_date"))
    fields.setdefault("tags", [])
    fields.setdefault("requirements", [])
    airdrop = Airdrop(created_by=user.id, **fields)
    _sync_status(airdrop, now)
    db.add(airdrop)
    record_tag_usage(db, user.id, added=airdrop.tags)
    db.commit()
    db.refresh(airdrop)
    logger.info("Airdrop created", extra={"airdrop_id": airdrop.id, "user_id": user.id})
    return airdrop


def update_airdrop(
    db: Session,
    user: User,
    airdrop_id: int,
    changes: dict[str, Any],
    now: datetime | None = None,
) -> Airdrop:
    """Apply changes (already validated) if the caller created the airdrop or is an admin."""
    now = now or utc_now()
    airdrop = _editable(db, user, airdrop_id)
    fields = _clean(changes)
    _check_dates(
        fields.get("start_date", airdrop.start_date),
        fields.get("end_date", airdrop.end_date),
    )
    if "tags" in fields:
        old = list(airdrop.tags or [])
        new = fields["tags"]
        record_tag_usage(
            db,
            airdrop.created_by or user.id,
            added=[name for name in new if name not in old],
            removed=[name for name in old if name not in new],
        )
    for field, value in fields.items():
        setattr(airdrop, field, value)
    _sync_status(airdrop, now)
    db.commit()
    db.refresh(airdrop)
    return airdrop


def delete_airdrop(db: Session, user: User, airdrop_id: int) -> None:
    """Soft delete: the row stays for tasks that reference it, but is hidden everywhere."""
    airdrop = _editable(db, user, airdrop_id)
    airdrop.is_active = False
    record_tag_usage(db, airdrop.created_by or user.id, removed=airdrop.tags or [])
    db.commit()
    logger.info("Airdrop deleted", extra={"airdrop_id": airdrop.id, "user_id": user.id})


def complete_airdrop(db: Session, user: User, airdrop_id: int) -> Airdrop:
    airdrop = _editable(db, user, airdrop_id)
    airdrop.status = "completed"
    db.commit()
    db.refresh(airdrop)
    return airdrop
