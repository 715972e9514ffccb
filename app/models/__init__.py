"""SQLAlchemy ORM models."""

from app.models.airdrop import Airdrop
from app.models.base import Base
from app.models.task import Task
from app.models.user import User
from app.models.user_tag import UserTag

__all__ = ["Airdrop", "Base", "Task", "User", "UserTag"]
