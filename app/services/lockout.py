"""Account lockout after repeated failed logins. State lives on the user row."""

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from app.core.clock import as_utc, utc_now
from app.models import User

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 5
DEFAULT_LOCK_DURATION = timedelta(hours=2)


class LockoutPolicy:
    """
    Open while failed_login_attempts < threshold; Locked while locked_until is in the future.

    A lock expires on its own. The first failure after an expired lock restarts the
    count at 1. Callers own the session and commit.
    """

    def __init__(
        self,
        threshold: int = DEFAULT_THRESHOLD,
        lock_duration: timedelta = DEFAULT_LOCK_DURATION,
    ) -> None:
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        self.threshold = threshold
        self.lock_duration = lock_duration

    @classmethod
    def from_settings(cls, settings: "Settings") -> "LockoutPolicy":
        return cls(
            threshold=settings.LOCKOUT_THRESHOLD,
            lock_duration=timedelta(minutes=settings.LOCKOUT_DURATION_MINUTES),
        )

    def is_locked(self, user: User, now: datetime | None = None) -> bool:
        locked_until = as_utc(user.locked_until)
        return locked_until is not None and locked_until > (now or utc_now())

    def on_failed_attempt(self, user: User, now: datetime | None = None) -> None:
        now = now or utc_now()
        locked_until = as_utc(user.locked_until)
        if locked_until is not None and locked_until <= now:
            user.failed_login_attempts = 1
            user.locked_until = None
            return

        user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
        if user.failed_login_attempts >= self.threshold and not self.is_locked(user, now):
            user.locked_until = now + self.lock_duration
            logger.warning(
                "Account locked after repeated failed logins",
                extra={
                    "user_id": user.id,
                    "failed_attempts": user.failed_login_attempts,
                    "locked_until": user.locked_until.isoformat(),
                },
            )

    def on_success(self, user: User) -> None:
        user.failed_login_attempts = 0
        user.locked_until = None
