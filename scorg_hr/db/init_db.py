"""
Create HR tables for environments that do not manage schema externally.
"""
import logging

from scorg_hr.db.base import Base

logger = logging.getLogger(__name__)


def init_db(bind=None):
    # Registers every model on Base.metadata
    import scorg_hr.db.models  # noqa: F401

    if bind is None:
        from scorg_hr.db.session import engine
        bind = engine

    Base.metadata.create_all(bind=bind)
    logger.info(f"HR tables ready: {', '.join(sorted(Base.metadata.tables))}")
