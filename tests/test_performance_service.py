"""
Tests for performance reviews, review-period conflicts and goals.
"""
from datetime import date

import pytest

from scorg_hr.core.errors import (
    ConflictError,
    HRValidationError,
    InvalidStatusTransitionError,
    NotFoundError,
)
from scorg_hr.core.status_rules import GoalStatus, ReviewStatus
from scorg_hr.schemas.performance import (
    GoalCreate,
    GoalFilter,
    GoalUpdate,
    Rating,
    ReviewCreate,
    ReviewFilter,
    ReviewUpdate,
)
from scorg_hr.services import performance_service


def _review(db, organization, reviewee, reviewer, start, end, **kwargs):
    return performance_service.create_review(
        db,
        ReviewCreate(
            organization_id=organization.id,
            reviewee_id=reviewee.id,
            reviewer_id=reviewer.id,
            review_period_start=start,
            review_period_end=end,
            **kwargs,
        ),
    )


@pytest.fixture
def q1_review(db, organization, applicant, reviewer):
    return _review(
        db, organization, applicant, reviewer, date(2025, 1, 1), date(2025, 3, 31),
        ratings={"teamwork": Rating(score=4), "piloting": Rating(score=5, comments="Clean landings")},
    )


def test_periods_overlap():
    assert performance_service.periods_overlap(date(2025, 1, 1), date(2025, 3, 31), date(2025, 3, 15), date(2025, 6, 30))
    assert not performance_service.periods_overlap(date(2025, 1, 1), date(2025, 3, 31), date(2025, 4, 1), date(2025, 6, 30))
    # Shared endpoint counts
    assert performance_service.periods_overlap(date(2025, 1, 1), date(2025, 3, 31), date(2025, 3, 31), date(2025, 6, 30))


def test_create_review_computes_overall_rating(db, q1_review):
    assert q1_review.status == ReviewStatus.DRAFT
    assert q1_review.overall_rating == 4.5
    assert q1_review.ratings["piloting"] == {"score": 5.0, "comments": "Clean landings"}


def test_overlapping_review_is_conflict(db, organization, applicant, reviewer, q1_review):
    with pytest.raises(ConflictError) as exc_info:
        _review(db, organization, applicant, reviewer, date(2025, 3, 15), date(2025, 6, 30))
    assert exc_info.value.message == "Review period overlaps with existing review"


def test_adjacent_review_is_allowed(db, organization, applicant, reviewer, q1_review):
    q2 = _review(db, organization, applicant, reviewer, date(2025, 4, 1), date(2025, 6, 30))
    assert q2.id != q1_review.id


def test_overlap_is_per_reviewee_and_org(db, organization, other_organization, applicant, second_applicant, reviewer, q1_review):
    _review(db, organization, second_applicant, reviewer, date(2025, 1, 1), date(2025, 3, 31))
    _review(db, other_organization, applicant, reviewer, date(2025, 1, 1), date(2025, 3, 31))


def test_create_review_rejects_bad_ratings_and_period(db, organization, applicant, reviewer):
    with pytest.raises(HRValidationError) as exc_info:
        _review(
            db, organization, applicant, reviewer, date(2025, 6, 1), date(2025, 1, 1),
            ratings={"teamwork": Rating(score=7)},
        )
    assert exc_info.value.errors == [
        "Review period start date must be before end date",
        "Rating score for teamwork must be between 1 and 5",
    ]


def test_update_review_excludes_itself_from_conflicts(db, q1_review):
    updated = performance_service.update_review(
        db, q1_review.id, ReviewUpdate(review_period_end=date(2025, 4, 15))
    )
    assert updated.review_period_end == date(2025, 4, 15)


def test_update_review_period_conflict(db, organization, applicant, reviewer, q1_review):
    q2 = _review(db, organization, applicant, reviewer, date(2025, 4, 1), date(2025, 6, 30))
    with pytest.raises(ConflictError):
        performance_service.update_review(db, q2.id, ReviewUpdate(review_period_start=date(2025, 3, 1)))


def test_update_ratings_recomputes_overall(db, q1_review):
    updated = performance_service.update_review(
        db, q1_review.id, ReviewUpdate(ratings={"teamwork": Rating(score=2), "comms": Rating(score=3)})
    )
    assert updated.overall_rating == 2.5
    assert set(updated.ratings) == {"teamwork", "comms"}


def test_submit_and_acknowledge(db, applicant, reviewer, q1_review):
    review = performance_service.submit_review(db, q1_review.id, reviewer.id)
    assert review.status == ReviewStatus.SUBMITTED

    with pytest.raises(HRValidationError):
        performance_service.acknowledge_review(db, review.id, reviewer.id)

    review = performance_service.acknowledge_review(db, review.id, applicant.id)
    assert review.status == ReviewStatus.ACKNOWLEDGED


def test_draft_cannot_be_acknowledged(db, applicant, q1_review):
    with pytest.raises(InvalidStatusTransitionError):
        performance_service.acknowledge_review(db, q1_review.id, applicant.id)


def test_list_and_delete_reviews(db, organization, applicant, second_applicant, reviewer, q1_review):
    _review(db, organization, second_applicant, reviewer, date(2025, 1, 1), date(2025, 3, 31))

    items, total = performance_service.list_reviews(db, organization.id, ReviewFilter(reviewee_id=applicant.id))
    assert total == 1
    assert items[0].id == q1_review.id

    assert performance_service.delete_review(db, q1_review.id) is True
    with pytest.raises(NotFoundError):
        performance_service.get_review(db, q1_review.id)


def test_next_review_due_date(db, organization, applicant, second_applicant, q1_review):
    assert performance_service.get_next_review_due_date(
        db, organization.id, second_applicant.id, today=date(2025, 5, 1)
    ) == date(2025, 7, 30)
    assert performance_service.get_next_review_due_date(
        db, organization.id, applicant.id
    ) == date(2026, 3, 31)


def test_goal_progress_drives_status(db, applicant, q1_review):
    goal = performance_service.create_goal(
        db, GoalCreate(review_id=q1_review.id, user_id=applicant.id, title="Lead a mining op")
    )
    assert goal.status == GoalStatus.NOT_STARTED

    goal = performance_service.update_goal_progress(db, goal.id, 45, notes="Scouted two sites")
    assert goal.status == GoalStatus.IN_PROGRESS
    assert goal.description == "Scouted two sites"

    goal = performance_service.update_goal_progress(db, goal.id, 100)
    assert goal.status == GoalStatus.COMPLETED

    with pytest.raises(HRValidationError):
        performance_service.cancel_goal(db, goal.id)


def test_goal_progress_out_of_range(db, applicant, q1_review):
    goal = performance_service.create_goal(
        db, GoalCreate(review_id=q1_review.id, user_id=applicant.id, title="Earn gunnery cert")
    )
    with pytest.raises(HRValidationError) as exc_info:
        performance_service.update_goal_progress(db, goal.id, 120)
    assert exc_info.value.errors == ["Progress percentage must be between 0 and 100"]


def test_cancelled_goal_rejects_progress(db, applicant, q1_review):
    goal = performance_service.create_goal(
        db, GoalCreate(review_id=q1_review.id, user_id=applicant.id, title="Fly 10 escort missions")
    )
    performance_service.cancel_goal(db, goal.id)
    with pytest.raises(HRValidationError):
        performance_service.update_goal_progress(db, goal.id, 10)


def test_goal_requires_review(db, applicant):
    with pytest.raises(NotFoundError):
        performance_service.create_goal(db, GoalCreate(review_id=999, user_id=applicant.id, title="Orphan"))


def test_list_goals_orders_undated_last(db, organization, applicant, q1_review):
    undated = performance_service.create_goal(
        db, GoalCreate(review_id=q1_review.id, user_id=applicant.id, title="Undated")
    )
    late = performance_service.create_goal(
        db, GoalCreate(review_id=q1_review.id, user_id=applicant.id, title="Late", target_date=date(2025, 12, 1))
    )
    early = performance_service.create_goal(
        db, GoalCreate(review_id=q1_review.id, user_id=applicant.id, title="Early", target_date=date(2025, 6, 1))
    )
    performance_service.update_goal(db, undated.id, GoalUpdate(title="Someday"))

    goals, total = performance_service.list_goals_for_user(db, applicant.id)
    assert total == 3
    assert [g.id for g in goals] == [early.id, late.id, undated.id]
    assert goals[-1].title == "Someday"

    overdue = performance_service.get_overdue_goals(db, organization.id, today=date(2025, 7, 1))
    assert [g.id for g in overdue] == [early.id]

    goals, total = performance_service.list_goals_for_user(db, applicant.id, GoalFilter(status=GoalStatus.COMPLETED))
    assert total == 0

    assert performance_service.delete_goal(db, early.id) is True
    assert performance_service.delete_goal(db, early.id) is False


def test_performance_analytics(db, organization, applicant, second_applicant, reviewer, q1_review):
    _review(
        db, organization, second_applicant, reviewer, date(2025, 1, 1), date(2025, 3, 31),
        ratings={"teamwork": Rating(score=3)},
    )
    performance_service.submit_review(db, q1_review.id, reviewer.id)
    done = performance_service.create_goal(db, GoalCreate(review_id=q1_review.id, user_id=applicant.id, title="A"))
    active = performance_service.create_goal(db, GoalCreate(review_id=q1_review.id, user_id=applicant.id, title="B"))
    performance_service.update_goal_progress(db, done.id, 100)
    performance_service.update_goal_progress(db, active.id, 30)

    analytics = performance_service.get_performance_analytics(db, organization.id)

    assert analytics.total_reviews == 2
    assert analytics.average_rating == 3.75
    assert analytics.reviews_by_status == {"draft": 1, "submitted": 1, "acknowledged": 0}
    assert analytics.goals_completion_rate == 50.0
    assert analytics.active_goals == 1


def test_validate_review_conflicts(db, organization, applicant, q1_review):
    check = performance_service.validate_review_conflicts(
        db, organization.id, applicant.id, date(2025, 3, 15), date(2025, 6, 30)
    )
    assert check.valid is False
    assert check.error == "Review period overlaps with existing review"

    check = performance_service.validate_review_conflicts(
        db, organization.id, applicant.id, date(2025, 4, 1), date(2025, 6, 30)
    )
    assert check.valid is True

    check = performance_service.validate_review_conflicts(
        db, organization.id, applicant.id, date(2025, 3, 15), date(2025, 6, 30), exclude_review_id=q1_review.id
    )
    assert check.valid is True
