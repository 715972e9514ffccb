"""User tag endpoints (authenticated; every query is scoped to the caller)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.models import User
from app.schemas.tag import TagCreateRequest, TagItem, TagsListResponse, TagUpdateRequest
from app.services import tags as tag_service

router = APIRouter()


@router.get("", response_model=TagsListResponse)
def list_tags(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    search: Annotated[str | None, Query(max_length=30)] = None,
) -> TagsListResponse:
    """Caller's tags, most used first."""
    tags = tag_service.list_tags(db, current_user.id, search=search)
    return TagsListResponse(results=len(tags), tags=[TagItem.model_validate(t) for t in tags])


@router.post("", response_model=TagItem, status_code=status.HTTP_201_CREATED)
def create_tag(
    body: TagCreateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> TagItem:
    tag = tag_service.create_tag(db, current_user.id, body.name, body.color)
    return TagItem.model_validate(tag)


@router.patch("/{tag_id}", response_model=TagItem)
def update_tag(
    tag_id: int,
    body: TagUpdateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> TagItem:
    tag = tag_service.update_tag(db, current_user.id, tag_id, name=body.name, color=body.color)
    return TagItem.model_validate(tag)


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tag(
    tag_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> None:
    tag_service.delete_tag(db, current_user.id, tag_id)
