"""Pydantic schemas for health check responses."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness payload; database is reported when the check ran."""

    status: Literal["ok"] = "ok"
    service: str = "airdrop-journal-api"
    environment: str = Field(description="dev or prod")
    timestamp: datetime
    uptime_seconds: float = Field(ge=0)
    database: Literal["connected", "disconnected"] | None = None
