"""ORM model for per-user tags used to label airdrops and tasks."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)

from app.models.base import Base

DEFAULT_TAG_COLOR = "#8B5CF6"


class UserTag(Base):
    """A tag owned by one user; names are stored lower-cased and unique per user."""

    __tablename__ = "user_tags"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_user_tags_user_id_name"),
        Index("ix_user_tags_user_id_usage_count", "user_id", "usage_count"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(30), nullable=False)
    color = Column(String(7), nullable=False, default=DEFAULT_TAG_COLOR)
    is_default = Column(Boolean, nullable=False, default=False)
    usage_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
