"""Core plumbing: settings, database sessions, security primitives and error kinds."""

from app.core.config import get_settings, settings
from app.core.database import get_db
from app.core.exceptions import AppError

__all__ = ["AppError", "get_db", "get_settings", "settings"]
