"""
Domain errors raised by the HR orchestration layer.

Pure validators never raise; services collect their results and raise one of
these. register_exception_handlers() turns them into JSON responses with the
same status codes the API layer uses for HTTPException.
"""
import logging
from typing import Iterable, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class HRError(Exception):
    """Base class for HR workflow errors."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class HRValidationError(HRError):
    """One or more field or business-rule checks failed."""

    def __init__(self, errors: Iterable):
        messages = [getattr(e, "message", e) for e in errors]
        super().__init__(f"Validation failed: {', '.join(messages)}", messages)


class InvalidStatusTransitionError(HRError):
    def __init__(self, reason: str):
        super().__init__(f"Invalid status transition: {reason}", [reason])


class ConflictError(HRError):
    """Duplicate records or overlapping review periods."""
    status_code = status.HTTP_409_CONFLICT


class NotFoundError(HRError):
    status_code = status.HTTP_404_NOT_FOUND


async def hr_error_handler(request: Request, exc: HRError) -> JSONResponse:
    logger.warning(
        f"HR request rejected: path={request.url.path}, "
        f"status={exc.status_code}, message={exc.message}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.message,
            "errors": exc.errors,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map HRError subclasses onto 400/404/409 responses."""
    app.add_exception_handler(HRError, hr_error_handler)
