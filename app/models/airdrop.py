"""ORM model for airdrop campaigns tracked in the shared catalog."""

import math
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)

from app.core.clock import as_utc, utc_now
from app.models.base import Base

AIRDROP_STATUSES = ("upcoming", "active", "completed", "ended")

SECONDS_PER_DAY = 24 * 3600


def _days_until(start: datetime, end: datetime) -> int:
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


class Airdrop(Base):
    """
    An airdrop campaign. Rows are soft-deleted through is_active.

    status follows start_date/end_date whenever both are set, except that a
    campaign marked completed stays completed.
    """

    __tablename__ = "airdrops"
    __table_args__ = (
        CheckConstraint("priority >= 1 AND priority <= 5", name="priority_range"),
        CheckConstraint(
            "start_date IS NULL OR end_date IS NULL OR end_date > start_date",
            name="dates_ordered",
        ),
        Index("ix_airdrops_status_created_at", "status", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=False)
    status = Column(String(16), nullable=False, default="upcoming")
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True, index=True)
    token_symbol = Column(String(10), nullable=True, index=True)
    total_reward = Column(String(100), nullable=True)
    requirements = Column(JSON, nullable=False, default=list)
    website = Column(Text, nullable=True)
    twitter = Column(Text, nullable=True)
    discord = Column(Text, nullable=True)
    telegram = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    priority = Column(Integer, nullable=False, default=3)
    tags = Column(JSON, nullable=False, default=list)
    created_by = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=utc_now,
    )

    @property
    def days_remaining(self) -> int | None:
        end = as_utc(self.end_date)
        if end is None:
            return None
        return max(0, _days_until(utc_now(), end))

    @property
    def duration_days(self) -> int | None:
        start, end = as_utc(self.start_date), as_utc(self.end_date)
        if start is None or end is None:
            return None
        return _days_until(start, end)
