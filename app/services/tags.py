"""Per-user tag bookkeeping: default set at signup, list/create/update/delete, usage counts."""

import logging
from collections.abc import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import BadRequestError, ConflictError, NotFoundError
from app.models import UserTag

logger = logging.getLogger(__name__)

DEFAULT_TAGS = (
    ("layer 2", "#8B5CF6"),
    ("ethereum", "#627EEA"),
    ("defi", "#FF6B35"),
    ("testnet", "#10B981"),
    ("mainnet", "#F59E0B"),
    ("telegram", "#0088CC"),
    ("gaming", "#8B5CF6"),
    ("nft", "#EC4899"),
    ("high priority", "#EF4444"),
    ("medium priority", "#F59E0B"),
    ("low priority", "#6B7280"),
    ("daily task", "#10B981"),
)

MAX_TAGS_LISTED = 100
TAG_NAME_MAX_LEN = 30


def normalize_tag_name(name: str) -> str:
    return name.strip().lower()


def normalize_tag_list(names: Iterable[str] | None) -> list[str]:
    """Lower-cased, stripped, de-duplicated names in first-seen order; blanks dropped."""
    seen: dict[str, None] = {}
    for name in names or ():
        cleaned = normalize_tag_name(name)
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def _checked_name(name: str) -> str:
    cleaned = normalize_tag_name(name)
    if not cleaned:
        raise BadRequestError("Tag name cannot be empty.")
    if len(cleaned) > TAG_NAME_MAX_LEN:
        raise BadRequestError(f"Tag name cannot exceed {TAG_NAME_MAX_LEN} characters.")
    return cleaned


def create_default_tags(db: Session, user_id: int) -> int:
    """Add any missing default tags for user_id. Returns how many were added (no commit)."""
    existing = {
        name
        for (name,) in db.query(UserTag.name).filter(UserTag.user_id == user_id).all()
    }
    added = 0
    for name, color in DEFAULT_TAGS:
        if name in existing:
            continue
        db.add(UserTag(user_id=user_id, name=name, color=color, is_default=True))
        added += 1
    db.flush()
    return added


def list_tags(db: Session, user_id: int, search: str | None = None) -> list[UserTag]:
    query = db.query(UserTag).filter(UserTag.user_id == user_id)
    if search and search.strip():
        query = query.filter(UserTag.name.ilike(f"%{normalize_tag_name(search)}%"))
    return (
        query.order_by(UserTag.usage_count.desc(), UserTag.name.asc())
        .limit(MAX_TAGS_LISTED)
        .all()
    )


def get_tag(db: Session, user_id: int, tag_id: int) -> UserTag:
    tag = db.query(UserTag).filter(UserTag.id == tag_id, UserTag.user_id == user_id).first()
    if tag is None:
        raise NotFoundError("Tag not found.")
    return tag


def create_tag(db: Session, user_id: int, name: str, color: str | None = None) -> UserTag:
    tag = UserTag(user_id=user_id, name=_checked_name(name))
    if color:
        tag.color = color.upper()
    db.add(tag)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Tag with this name already exists.") from e
    db.refresh(tag)
    return tag


def update_tag(
    db: Session,
    user_id: int,
    tag_id: int,
    name: str | None = None,
    color: str | None = None,
) -> UserTag:
    tag = get_tag(db, user_id, tag_id)
    if name is not None:
        tag.name = _checked_name(name)
    if color is not None:
        tag.color = color.upper()
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Tag with this name already exists.") from e
    db.refresh(tag)
    return tag


def delete_tag(db: Session, user_id: int, tag_id: int) -> None:
    tag = get_tag(db, user_id, tag_id)
    db.delete(tag)
    db.commit()


def record_tag_usage(
    db: Session,
    user_id: int,
    added: Iterable[str] = (),
    removed: Iterable[str] = (),
) -> None:
    """
    Bump usage_count on the user's tags named in added and lower it (not below zero)
    for those in removed. Names without a matching tag are ignored. No commit.
    """
    added_names = normalize_tag_list(added)
    removed_names = normalize_tag_list(removed)
    if added_names:
        db.query(UserTag).filter(
            UserTag.user_id == user_id, UserTag.name.in_(added_names)
        ).update({UserTag.usage_count: UserTag.usage_count + 1}, synchronize_session=False)
    if removed_names:
        db.query(UserTag).filter(
            UserTag.user_id == user_id,
            UserTag.name.in_(removed_names),
            UserTag.usage_count > 0,
        ).update({UserTag.usage_count: UserTag.usage_count - 1}, synchronize_session=False)
