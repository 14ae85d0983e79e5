"""
Flag onboarding that has stayed open longer than ONBOARDING_OVERDUE_DAYS.
Run: python -m scripts.mark_overdue_onboarding
"""
import logging
import sys

from scorg_hr.core import config
from scorg_hr.core.logging_config import setup_logging
from scorg_hr.db.session import SessionLocal
from scorg_hr.services.onboarding_service import mark_overdue_progress

logger = logging.getLogger(__name__)


def main() -> int:
    setup_logging(config.LOG_LEVEL)
    db = SessionLocal()
    try:
        updated = mark_overdue_progress(db)
        logger.info(f"Overdue onboarding job finished: updated={updated}")
        return 0
    except Exception:
        db.rollback()
        logger.exception("Overdue onboarding job failed")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
