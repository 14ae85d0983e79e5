"""
Logging configuration for the SC Org HR core.

Everything goes to the console and logs/scorg_hr.log. Service loggers
(applications, onboarding, performance) also feed logs/hr_audit.log so HR
decisions survive a noisy DEBUG run.
"""
import enum
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Mapping

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

AUDIT_LOGGER = "scorg_hr.services"

# Shown only as a length in logs
PRIVATE_TEXT_FIELDS = ("review_notes", "rejection_reason", "cover_letter", "strengths", "areas_for_improvement")
SECRET_FIELDS = ("invite_code",)


def _rotating_handler(path: Path, level: int, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    return handler


def setup_logging(log_level: str = "INFO", log_dir: str = "logs"):
    """
    Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for scorg_hr.log and hr_audit.log
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    log_path = Path(log_dir)
    log_path.mkdir(exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(console_handler)

    root.addHandler(_rotating_handler(
        log_path / "scorg_hr.log",
        level,
        "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
    ))

    # Status changes, rejections and batch jobs reach the audit file even when
    # the console is set to WARNING
    audit = logging.getLogger(AUDIT_LOGGER)
    audit.setLevel(min(level, logging.INFO))
    audit.handlers.clear()
    audit.addHandler(_rotating_handler(log_path / "hr_audit.log", logging.INFO, LOG_FORMAT))

    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def sanitize_log_data(data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Make a record of HR field changes safe to log.

    Invite codes are redacted, reviewer and applicant free text is reduced to
    its length, and enum values are logged by value.
    """
    sanitized = {}
    for key, value in data.items():
        if key in SECRET_FIELDS and value:
            sanitized[key] = "***REDACTED***"
        elif key in PRIVATE_TEXT_FIELDS and isinstance(value, str):
            sanitized[key] = f"<{len(value)} chars>"
        elif isinstance(value, enum.Enum):
            sanitized[key] = value.value
        else:
            sanitized[key] = value
    return sanitized
