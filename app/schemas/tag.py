"""Request/response schemas for user tags."""

from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

from app.schemas.auth import CamelModel

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
TAG_NAME_MAX_LEN = 30

# Surrounding whitespace is dropped before the length checks run.
TagName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=TAG_NAME_MAX_LEN)
]


class TagCreateRequest(CamelModel):
    name: TagName
    color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)


class TagUpdateRequest(CamelModel):
    name: TagName | None = None
    color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)


class TagItem(CamelModel):
    id: int
    name: str
    color: str
    is_default: bool
    usage_count: int


class TagsListResponse(BaseModel):
    status: str = "success"
    results: int
    tags: list[TagItem]
