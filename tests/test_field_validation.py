"""
Unit tests for field validation rules.
"""
from datetime import date, datetime, timezone

from scorg_hr.core.field_validation import (
    application_warnings,
    validate_application_data,
    validate_fields,
    validate_progress_percentage,
    validate_ratings,
    validate_review_period,
    validate_template_tasks,
)


def _fields(errors):
    return [e.field for e in errors]


def test_cover_letter_too_long():
    errors = validate_fields({"cover_letter": "a" * 5001})
    assert _fields(errors) == ["cover_letter"]
    assert "5000" in errors[0].message


def test_short_cover_letter_is_valid():
    assert validate_fields({"cover_letter": "ok"}) == []


def test_limits_are_inclusive():
    assert validate_application_data({
        "cover_letter": "a" * 5000,
        "experience": "b" * 3000,
        "availability": "c" * 1000,
    }) == []


def test_all_text_limits_reported_together():
    errors = validate_application_data({
        "cover_letter": "a" * 5001,
        "experience": "b" * 3001,
        "availability": "c" * 1001,
    })
    assert _fields(errors) == ["cover_letter", "experience", "availability"]


def test_custom_fields_size_limit():
    assert validate_fields({"custom_fields": {"ship": "Carrack"}}) == []
    errors = validate_fields({"custom_fields": {"essay": "x" * 10000}})
    assert _fields(errors) == ["custom_fields"]


def test_rating_bounds():
    assert validate_ratings({"teamwork": {"score": 1}, "piloting": {"score": 5}}) == []
    errors = validate_ratings({"teamwork": {"score": 0}, "piloting": {"score": 6}})
    assert _fields(errors) == ["ratings.teamwork", "ratings.piloting"]


def test_rating_must_be_numeric():
    errors = validate_ratings({"teamwork": {"score": "five"}, "comms": {"score": True}})
    assert len(errors) == 2


def test_review_period_start_before_end():
    errors = validate_review_period(date(2025, 3, 1), date(2025, 3, 1))
    assert errors[0].message == "Review period start date must be before end date"


def test_review_period_max_span():
    assert validate_review_period(date(2025, 1, 1), date(2026, 1, 1)) == []  # 365 days
    errors = validate_review_period(date(2024, 1, 1), date(2025, 1, 1))  # leap year, 366 days
    assert errors[0].message == "Review period cannot exceed 365 days"


def test_review_period_partial_day_rounds_up():
    errors = validate_review_period(datetime(2025, 1, 1, 0, 0), datetime(2026, 1, 1, 0, 1))
    assert _fields(errors) == ["review_period"]


def test_validate_fields_checks_period_when_present():
    errors = validate_fields({
        "review_period_start": date(2025, 6, 1),
        "review_period_end": date(2025, 1, 1),
        "ratings": {"leadership": {"score": 4}},
    })
    assert _fields(errors) == ["review_period"]


def test_progress_percentage_range():
    assert validate_progress_percentage(0) == []
    assert validate_progress_percentage(100) == []
    assert _fields(validate_progress_percentage(-1)) == ["progress_percentage"]
    assert _fields(validate_progress_percentage(101)) == ["progress_percentage"]


def test_template_tasks_structure_and_duplicates():
    good = {"id": "t1", "title": "Join Discord", "required": True, "estimated_hours": 1, "order_index": 0}
    assert validate_template_tasks("Pilot", [good]) == []

    bad = {"id": "t2", "title": "Read handbook", "required": "yes", "estimated_hours": 1, "order_index": 1}
    errors = validate_template_tasks("", [good, dict(good), bad])
    assert _fields(errors) == ["role_name", "tasks[1]", "tasks[2]"]
    assert "Duplicate task id" in errors[1].message


def test_non_string_text_fields_are_reported():
    errors = validate_fields({"cover_letter": 12345, "experience": ["mining"], "availability": "Weekends"})
    assert _fields(errors) == ["cover_letter", "experience"]
    assert errors[0].message == "Cover letter must be a string"


def test_ratings_must_be_a_mapping():
    errors = validate_fields({"ratings": ["x"]})
    assert _fields(errors) == ["ratings"]
    assert validate_ratings(None) == []


def test_review_period_bounds_must_be_dates():
    errors = validate_fields({"review_period_start": "2024-01-01", "review_period_end": "2024-03-01"})
    assert [e.message for e in errors] == ["Review period start and end must be dates"]


def test_review_period_mixed_timezone_awareness():
    start = datetime(2025, 1, 1)
    end = datetime(2025, 2, 1, tzinfo=timezone.utc)
    assert _fields(validate_review_period(start, end)) == ["review_period"]


def test_malformed_task_lists_are_reported():
    assert _fields(validate_template_tasks("Pilot", "not-a-list")) == ["tasks"]
    assert _fields(validate_template_tasks("Pilot", 42)) == ["tasks"]
    errors = validate_template_tasks("Pilot", ["join-discord", {"id": ["x"], "title": "t", "required": True,
                                                               "estimated_hours": 1, "order_index": 0}])
    assert _fields(errors) == ["tasks[0]", "tasks[1]"]


def test_application_warnings():
    assert application_warnings({}) == [
        "Applications with both cover letter and experience have higher approval rates"
    ]
    assert application_warnings({"cover_letter": "Hi"}) == [
        "Cover letters with more detail tend to be more successful"
    ]
    assert application_warnings({"cover_letter": "x" * 100, "experience": "Hauling"}) == []
