"""Airdrop catalog endpoints. Reads need a session; changes are limited to the creator or an admin."""

from typing import Annotated, Any, Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.models import User
from app.schemas.airdrop import (
    AirdropCreateRequest,
    AirdropData,
    AirdropItem,
    AirdropResponse,
    AirdropsListData,
    AirdropsListResponse,
    AirdropStats,
    AirdropStatsResponse,
    AirdropStatus,
    AirdropUpdateRequest,
)
from app.schemas.auth import MessageResponse
from app.schemas.user import Pagination
from app.services import airdrops as airdrop_service

router = APIRouter()

SortField = Literal["createdAt", "updatedAt", "name", "priority", "startDate", "endDate", "status"]


def _fields(body: AirdropCreateRequest | AirdropUpdateRequest) -> dict[str, Any]:
    fields = body.model_dump(exclude_unset=True, exclude_none=True)
    if "website" in fields:
        fields["website"] = str(fields["website"])
    return fields


def _one(airdrop, message: str | None = None) -> AirdropResponse:
    return AirdropResponse(
        message=message, data=AirdropData(airdrop=AirdropItem.model_validate(airdrop))
    )


def _page(airdrops, pagination: dict[str, int]) -> AirdropsListResponse:
    return AirdropsListResponse(
        results=len(airdrops),
        pagination=Pagination(**pagination),
        data=AirdropsListData(airdrops=[AirdropItem.model_validate(a) for a in airdrops]),
    )


@router.get("", response_model=AirdropsListResponse)
def list_airdrops(
    _user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    status_filter: Annotated[AirdropStatus | None, Query(alias="status")] = None,
    token_symbol: Annotated[str | None, Query(alias="tokenSymbol", max_length=10)] = None,
    priority: Annotated[int | None, Query(ge=1, le=5)] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
    sort_by: Annotated[SortField, Query(alias="sortBy")] = "createdAt",
    sort_order: Annotated[Literal["asc", "desc"], Query(alias="sortOrder")] = "desc",
) -> AirdropsListResponse:
    """Active airdrops, newest first unless sortBy/sortOrder say otherwise."""
    airdrops, pagination = airdrop_service.list_airdrops(
        db,
        page=page,
        limit=limit,
        status=status_filter,
        token_symbol=token_symbol,
        priority=priority,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return _page(airdrops, pagination)


@router.get("/stats", response_model=AirdropStatsResponse)
def airdrop_stats(
    _user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> AirdropStatsResponse:
    return AirdropStatsResponse(data=AirdropStats(**airdrop_service.airdrop_stats(db)))


@router.get("/status/{airdrop_status}", response_model=AirdropsListResponse)
def list_airdrops_by_status(
    airdrop_status: AirdropStatus,
    _user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> AirdropsListResponse:
    airdrops, pagination = airdrop_service.list_airdrops(
        db, page=page, limit=limit, status=airdrop_status
    )
    return _page(airdrops, pagination)


@router.get("/{airdrop_id}", response_model=AirdropResponse)
def get_airdrop(
    airdrop_id: int,
    _user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> AirdropResponse:
    return _one(airdrop_service.get_airdrop(db, airdrop_id))


@router.post("", response_model=AirdropResponse, status_code=status.HTTP_201_CREATED)
def create_airdrop(
    body: AirdropCreateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> AirdropResponse:
    airdrop = airdrop_service.create_airdrop(db, current_user, _fields(body))
    return _one(airdrop, "Airdrop created successfully")


@router.put("/{airdrop_id}", response_model=AirdropResponse)
def update_airdrop(
    airdrop_id: int,
    body: AirdropUpdateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> AirdropResponse:
    """Update only the fields present in the body."""
    airdrop = airdrop_service.update_airdrop(db, current_user, airdrop_id, _fields(body))
    return _one(airdrop, "Airdrop updated successfully")


@router.delete("/{airdrop_id}", response_model=MessageResponse)
def delete_airdrop(
    airdrop_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    airdrop_service.delete_airdrop(db, current_user, airdrop_id)
    return MessageResponse(message="Airdrop deleted successfully")


@router.patch("/{airdrop_id}/complete", response_model=AirdropResponse)
def complete_airdrop(
    airdrop_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> AirdropResponse:
    airdrop = airdrop_service.complete_airdrop(db, current_user, airdrop_id)
    return _one(airdrop, "Airdrop marked as completed")
