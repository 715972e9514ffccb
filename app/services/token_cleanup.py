"""Sweep expired single-use token hashes and lapsed lockouts off user rows."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.core.clock import utc_now
from app.models import User

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class CleanupResult:
    reset_tokens_cleared: int = 0
    verification_tokens_cleared: int = 0
    lockouts_cleared: int = 0

    @property
    def total(self) -> int:
        return self.reset_tokens_cleared + self.verification_tokens_cleared + self.lockouts_cleared


def run_token_cleanup(
    session: Session,
    settings: "Settings",
    now: datetime | None = None,
) -> CleanupResult:
    """
    Clear reset/verification hashes whose expiry has passed and lockouts that have lapsed.

    Expired tokens already fail to consume; this only keeps rows tidy. A lapsed lockout
    is reset to zero attempts, so the next failure counts as 1 either way.
    Idempotent: safe to run repeatedly.
    """
    if not settings.TOKEN_CLEANUP_ENABLED:
        logger.info("Token cleanup is disabled (TOKEN_CLEANUP_ENABLED=false); skipping.")
        return CleanupResult()

    now = now or utc_now()
    result = CleanupResult()
    result.reset_tokens_cleared = (
        session.query(User)
        .filter(User.password_reset_token.isnot(None), User.password_reset_expires_at <= now)
        .update(
            {User.password_reset_token: None, User.password_reset_expires_at: None},
            synchronize_session=False,
        )
    )
    result.verification_tokens_cleared = (
        session.query(User)
        .filter(
            User.email_verification_token.isnot(None),
            User.email_verification_expires_at <= now,
        )
        .update(
            {User.email_verification_token: None, User.email_verification_expires_at: None},
            synchronize_session=False,
        )
    )
    result.lockouts_cleared = (
        session.query(User)
        .filter(User.locked_until.isnot(None), User.locked_until <= now)
        .update(
            {User.locked_until: None, User.failed_login_attempts: 0},
            synchronize_session=False,
        )
    )
    session.commit()

    if result.total > 0:
        logger.info(
            "Token cleanup run: reset_tokens=%s, verification_tokens=%s, lockouts=%s",
            result.reset_tokens_cleared,
            result.verification_tokens_cleared,
            result.lockouts_cleared,
        )
    return result
