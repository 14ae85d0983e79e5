"""
Field-level validation for HR payloads.

Every function returns a list of FieldError and never raises; an empty list
means the payload is valid. Services join the messages into a single
HRValidationError.
"""
import json
import math
from dataclasses import dataclass
from datetime import date, datetime
from numbers import Real
from typing import Any, Iterable, List, Mapping, Optional

# Application text limits (characters)
COVER_LETTER_MAX = 5000
EXPERIENCE_MAX = 3000
AVAILABILITY_MAX = 1000
CUSTOM_FIELDS_MAX = 10000  # serialized JSON size

RATING_MIN = 1
RATING_MAX = 5
MAX_REVIEW_PERIOD_DAYS = 365


TEXT_LIMITS = (
    ("cover_letter", "Cover letter", COVER_LETTER_MAX),
    ("experience", "Experience description", EXPERIENCE_MAX),
    ("availability", "Availability description", AVAILABILITY_MAX),
)

# Soft hints, never block a submission
SHORT_COVER_LETTER = 100


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


def validate_application_data(data: Mapping[str, Any]) -> List[FieldError]:
    errors: List[FieldError] = []

    for field, label, limit in TEXT_LIMITS:
        value = data.get(field)
        if value is None:
            continue
        if not isinstance(value, str):
            errors.append(FieldError(field, f"{label} must be a string"))
        elif len(value) > limit:
            errors.append(FieldError(field, f"{label} must be less than {limit} characters"))

    custom_fields = data.get("custom_fields")
    if custom_fields:
        try:
            size = len(json.dumps(custom_fields, default=str))
        except (TypeError, ValueError):
            errors.append(FieldError("custom_fields", "Custom fields must be JSON serializable"))
        else:
            if size > CUSTOM_FIELDS_MAX:
                errors.append(FieldError("custom_fields", "Custom fields data is too large (max 10KB)"))

    return errors


def application_warnings(data: Mapping[str, Any]) -> List[str]:
    """Advice for the applicant; unlike errors these never reject an application."""
    warnings = []
    cover_letter = data.get("cover_letter")
    if not cover_letter and not data.get("experience"):
        warnings.append("Applications with both cover letter and experience have higher approval rates")
    if isinstance(cover_letter, str) and cover_letter and len(cover_letter) < SHORT_COVER_LETTER:
        warnings.append("Cover letters with more detail tend to be more successful")
    return warnings


def _score_of(rating: Any) -> Any:
    if isinstance(rating, Mapping):
        return rating.get("score")
    return getattr(rating, "score", rating)


def validate_ratings(ratings: Optional[Mapping[str, Any]]) -> List[FieldError]:
    """Each category score must be a number in [1, 5]."""
    if ratings is None:
        return []
    if not isinstance(ratings, Mapping):
        return [FieldError("ratings", "Ratings must map each category to a score")]

    errors: List[FieldError] = []
    for category, rating in ratings.items():
        score = _score_of(rating)
        if (
            isinstance(score, bool)
            or not isinstance(score, Real)
            or not RATING_MIN <= score <= RATING_MAX
        ):
            errors.append(FieldError(
                f"ratings.{category}",
                f"Rating score for {category} must be between {RATING_MIN} and {RATING_MAX}",
            ))
    return errors


def _period_days(start, end) -> int:
    if isinstance(start, datetime) and isinstance(end, datetime):
        return math.ceil((end - start).total_seconds() / 86400)
    return (_as_date(end) - _as_date(start)).days


def _as_date(value) -> date:
    return value.date() if isinstance(value, datetime) else value


def validate_review_period(start, end) -> List[FieldError]:
    if start is None or end is None:
        return [FieldError("review_period", "Review period start and end dates are required")]

    if not isinstance(start, date) or not isinstance(end, date):
        return [FieldError("review_period", "Review period start and end must be dates")]

    if isinstance(start, datetime) and isinstance(end, datetime) and (
        (start.tzinfo is None) != (end.tzinfo is None)
    ):
        return [FieldError(
            "review_period", "Review period dates must both be naive or both be timezone-aware"
        )]

    if isinstance(start, datetime) != isinstance(end, datetime):
        start, end = _as_date(start), _as_date(end)

    if start >= end:
        return [FieldError("review_period", "Review period start date must be before end date")]

    if _period_days(start, end) > MAX_REVIEW_PERIOD_DAYS:
        return [FieldError("review_period", f"Review period cannot exceed {MAX_REVIEW_PERIOD_DAYS} days")]

    return []


def validate_progress_percentage(value: Any) -> List[FieldError]:
    if isinstance(value, bool) or not isinstance(value, Real) or not 0 <= value <= 100:
        return [FieldError("progress_percentage", "Progress percentage must be between 0 and 100")]
    return []


def validate_template_tasks(role_name: Optional[str], tasks: Optional[Iterable[Any]]) -> List[FieldError]:
    """Structural checks for an onboarding template's task list."""
    errors: List[FieldError] = []
    if not role_name or not str(role_name).strip():
        errors.append(FieldError("role_name", "Role name is required"))

    if tasks is None:
        errors.append(FieldError("tasks", "Tasks are required"))
        return errors
    if isinstance(tasks, (str, bytes, Mapping)) or not isinstance(tasks, Iterable):
        errors.append(FieldError("tasks", "Tasks must be a list"))
        return errors

    seen = set()
    for index, task in enumerate(tasks):
        if hasattr(task, "model_dump"):
            task = task.model_dump()
        if not isinstance(task, Mapping):
            errors.append(FieldError(f"tasks[{index}]", "Each task must be an object"))
            continue
        task_id = task.get("id")
        required = task.get("required")
        hours = task.get("estimated_hours")
        order = task.get("order_index")
        if (
            not isinstance(task_id, str) or not task_id
            or not task.get("title")
            or not isinstance(required, bool)
            or isinstance(hours, bool) or not isinstance(hours, Real)
            or isinstance(order, bool) or not isinstance(order, Real)
        ):
            errors.append(FieldError(
                f"tasks[{index}]",
                "Each task must have id, title, required (boolean), "
                "estimated_hours (number), and order_index (number)",
            ))
            continue
        if task_id in seen:
            errors.append(FieldError(f"tasks[{index}]", f"Duplicate task id: {task_id}"))
        seen.add(task_id)

    return errors


def validate_fields(payload: Mapping[str, Any]) -> List[FieldError]:
    """
    Run every rule group that applies to the keys present in payload.

    Application text fields, custom_fields, ratings and the review period
    (review_period_start/review_period_end) are all recognised.
    """
    errors: List[FieldError] = []
    errors.extend(validate_application_data(payload))

    if "ratings" in payload:
        errors.extend(validate_ratings(payload.get("ratings")))

    if "review_period_start" in payload or "review_period_end" in payload:
        errors.extend(validate_review_period(
            payload.get("review_period_start"),
            payload.get("review_period_end"),
        ))

    if "progress_percentage" in payload:
        errors.extend(validate_progress_percentage(payload.get("progress_percentage")))

    return errors
