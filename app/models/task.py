"""ORM model for a user's airdrop tasks (one-off or daily)."""

import math

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import relationship

from app.core.clock import as_utc, utc_now
from app.models.base import Base

TASK_PRIORITIES = ("Low", "Medium", "High")
TASK_CATEGORIES = ("Testnet", "Mainnet", "Social", "DeFi", "Gaming", "NFT", "Bridge", "Staking")
TASK_DIFFICULTIES = ("Easy", "Medium", "Hard")


class Task(Base):
    """A to-do owned by one user, optionally linked to an airdrop."""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_user_id_completed", "user_id", "completed"),
        Index("ix_tasks_user_id_is_daily", "user_id", "is_daily"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    airdrop_id = Column(
        Integer,
        ForeignKey("airdrops.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    title = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=True)
    project = Column(String(100), nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    is_daily = Column(Boolean, nullable=False, default=False)
    priority = Column(String(8), nullable=False, default="Medium")
    category = Column(String(16), nullable=False, default="Mainnet")
    difficulty = Column(String(8), nullable=False, default="Easy")
    due_date = Column(DateTime(timezone=True), nullable=True)
    notes = Column(String(500), nullable=True)
    estimated_time = Column(Integer, nullable=False, default=15)
    reward = Column(String(100), nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    airdrop = relationship("Airdrop")

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=utc_now,
    )

    @property
    def status(self) -> str:
        if self.completed:
            return "Completed"
        due = as_utc(self.due_date)
        if due is not None and due < utc_now():
            return "Overdue"
        return "Pending"

    @property
    def days_remaining(self) -> int | None:
        due = as_utc(self.due_date)
        if due is None or self.completed:
            return None
        return math.ceil((due - utc_now()).total_seconds() / (24 * 3600))
