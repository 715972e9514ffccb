"""
CLI entrypoint for the expired-token sweep. Run from cron, e.g.:

  python -m app.token_cleanup

Or hourly: 0 * * * * cd /path/to/airdrop-journal && .venv/bin/python -m app.token_cleanup
"""

import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.services.token_cleanup import run_token_cleanup

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Clear expired reset/verification tokens and lapsed lockouts."""
    settings = get_settings()
    db = SessionLocal()
    try:
        result = run_token_cleanup(db, settings)
        logger.info("Token cleanup completed: rows_cleared=%s", result.total)
        return 0
    except Exception as e:
        db.rollback()
        logger.exception("Token cleanup job failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
