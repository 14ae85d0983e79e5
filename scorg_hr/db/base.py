from datetime import datetime, timezone

from sqlalchemy import Enum
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Note: Models are imported in init_db() to avoid circular imports
# All models must import Base from this module


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the naive DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def status_enum(enum_cls):
    """Store a str enum by value ("under_review"), not by member name."""
    return Enum(
        enum_cls,
        values_callable=lambda members: [member.value for member in members],
        native_enum=False,
        validate_strings=True,
        length=32,
    )
