"""Liveness endpoint for load balancers: uptime plus a database round-trip."""

import time
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.clock import utc_now
from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse

router = APIRouter()

_STARTED_AT = time.monotonic()


@router.get("", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    check_db: Annotated[bool, Query(description="Also ping the database")] = True,
) -> HealthResponse:
    database = None
    if check_db:
        database = "connected" if check_db_connected(db) else "disconnected"
    return HealthResponse(
        environment=settings.APP_ENV,
        timestamp=utc_now(),
        uptime_seconds=round(time.monotonic() - _STARTED_AT, 3),
        database=database,
    )
