"""Request/response schemas for the airdrop catalog."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, HttpUrl, StringConstraints, model_validator

from app.core.clock import as_utc
from app.schemas.auth import CamelModel
from app.schemas.tag import TagName
from app.schemas.user import Pagination

AirdropStatus = Literal["upcoming", "active", "completed", "ended"]

TWITTER_PATTERN = r"^https?://(www\.)?(twitter\.com|x\.com)/.+"
DISCORD_PATTERN = r"^https?://(www\.)?discord\.(gg|com)/.+"
TELEGRAM_PATTERN = r"^https?://(www\.)?t\.me/.+"

Requirement = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


class AirdropFields(CamelModel):
    status: AirdropStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    token_symbol: str | None = Field(default=None, max_length=10, pattern=r"^[A-Za-z0-9]+$")
    total_reward: str | None = Field(default=None, max_length=100)
    requirements: list[Requirement] | None = Field(default=None, max_length=50)
    website: HttpUrl | None = None
    twitter: str | None = Field(default=None, pattern=TWITTER_PATTERN)
    discord: str | None = Field(default=None, pattern=DISCORD_PATTERN)
    telegram: str | None = Field(default=None, pattern=TELEGRAM_PATTERN)
    priority: int | None = Field(default=None, ge=1, le=5)
    tags: list[TagName] | None = Field(default=None, max_length=20)

    @model_validator(mode="after")
    def _end_after_start(self) -> "AirdropFields":
        start, end = as_utc(self.start_date), as_utc(self.end_date)
        if start and end and end <= start:
            raise ValueError("End date must be after start date")
        return self


class AirdropCreateRequest(AirdropFields):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
    description: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=1000)
    ]


class AirdropUpdateRequest(AirdropFields):
    """Only the fields present in the body are changed."""

    name: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)
    ] | None = None
    description: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=1000)
    ] | None = None


class AirdropItem(CamelModel):
    id: int
    name: str
    description: str
    status: str
    start_date: datetime | None = None
    end_date: datetime | None = None
    token_symbol: str | None = None
    total_reward: str | None = None
    requirements: list[str] = []
    website: str | None = None
    twitter: str | None = None
    discord: str | None = None
    telegram: str | None = None
    priority: int
    tags: list[str] = []
    created_by: int | None = None
    days_remaining: int | None = None
    duration_days: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AirdropData(BaseModel):
    airdrop: AirdropItem


class AirdropResponse(BaseModel):
    status: str = "success"
    message: str | None = None
    data: AirdropData


class AirdropsListData(BaseModel):
    airdrops: list[AirdropItem]


class AirdropsListResponse(BaseModel):
    status: str = "success"
    results: int
    pagination: Pagination
    data: AirdropsListData


class AirdropStats(CamelModel):
    total: int
    by_status: dict[str, int]


class AirdropStatsResponse(BaseModel):
    status: str = "success"
    data: AirdropStats
