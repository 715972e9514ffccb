"""Profile updates, account closure and admin user management."""

import logging
import math
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.clock import utc_now
from app.core.exceptions import DuplicateUsernameError, IncorrectPasswordError, NotFoundError
from app.core.security import verify_password
from app.models import User
from app.models.user import ROLES, default_preferences

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("first_name", "last_name", "username", "avatar", "bio")


def merge_preferences(current: dict | None, updates: dict[str, Any]) -> dict:
    """Merge updates into stored preferences; the notifications block is merged key by key."""
    merged = default_preferences()
    merged.update(current or {})
    for key, value in updates.items():
        if key == "notifications" and isinstance(value, dict):
            merged["notifications"] = {**merged.get("notifications", {}), **value}
        else:
            merged[key] = value
    return merged


def update_profile(db: Session, user: User, changes: dict[str, Any]) -> User:
    """Apply allowed profile changes (already validated) to user."""
    username = changes.get("username")
    if username and username != user.username:
        taken = (
            db.query(User.id).filter(User.username == username, User.id != user.id).first()
        )
        if taken is not None:
            raise DuplicateUsernameError()

    for field in PROFILE_FIELDS:
        if field in changes:
            setattr(user, field, changes[field])
    if changes.get("preferences"):
        user.preferences = merge_preferences(user.preferences, changes["preferences"])

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateUsernameError() from e
    db.refresh(user)
    return user


def deactivate_account(db: Session, user: User, confirm_password: str) -> None:
    """
    Soft-delete: clear is_active and rewrite email/username so both can be reused.
    Requires the current password.
    """
    if not verify_password(confirm_password, user.password_hash):
        raise IncorrectPasswordError("Password is incorrect.")
    stamp = int(utc_now().timestamp() * 1000)
    user.is_active = False
    user.email = f"deleted_{stamp}_{user.email}"
    if user.username:
        user.username = f"deleted_{stamp}_{user.username}"
    user.password_reset_token = None
    user.password_reset_expires_at = None
    user.email_verification_token = None
    user.email_verification_expires_at = None
    db.commit()
    logger.info("Account deactivated", extra={"user_id": user.id})


def list_users(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
) -> tuple[list[User], dict[str, int]]:
    """Active users, newest first, with a pagination block (page, limit, total, pages)."""
    query = db.query(User).filter(User.is_active.is_(True))
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
                User.username.ilike(pattern),
            )
        )
    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.id.desc())
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
    return users, pagination


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    return user


def update_role(db: Session, user_id: int, role: str) -> User:
    if role not in ROLES:
        raise ValueError(f"role must be one of {ROLES}")
    user = get_user(db, user_id)
    user.role = role
    db.commit()
    db.refresh(user)
    logger.info("User role updated", extra={"user_id": user.id, "role": role})
    return user
