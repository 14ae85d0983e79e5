"""
Performance service for reviews and goals.

Reviews are validated for period length, rating bounds and overlap with the
reviewee's other reviews in the same organization. Goal status follows
progress_percentage.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from scorg_hr.core import config
from scorg_hr.core.errors import (
    ConflictError,
    HRValidationError,
    InvalidStatusTransitionError,
    NotFoundError,
)
from scorg_hr.core.field_validation import (
    validate_progress_percentage,
    validate_ratings,
    validate_review_period,
)
from scorg_hr.core.status_rules import EntityType, GoalStatus, ReviewStatus, validate_transition
from scorg_hr.db.base import utcnow
from scorg_hr.db.models.hr_performance import PerformanceGoal, PerformanceReview
from scorg_hr.schemas.performance import (
    GoalCreate,
    GoalFilter,
    GoalUpdate,
    PerformanceAnalytics,
    ReviewCreate,
    ReviewFilter,
    ReviewUpdate,
)
from scorg_hr.services.progress_calculator import goal_status_for_progress

logger = logging.getLogger(__name__)

OVERLAP_MESSAGE = "Review period overlaps with existing review"


@dataclass(frozen=True)
class ConflictCheck:
    valid: bool
    error: Optional[str] = None


def periods_overlap(start: date, end: date, other_start: date, other_end: date) -> bool:
    """Inclusive interval test: touching endpoints count as an overlap."""
    return start <= other_end and end >= other_start


def validate_review_conflicts(
    db: Session,
    organization_id: int,
    reviewee_id: int,
    start: date,
    end: date,
    exclude_review_id: Optional[int] = None,
) -> ConflictCheck:
    query = db.query(PerformanceReview.id).filter(
        PerformanceReview.organization_id == organization_id,
        PerformanceReview.reviewee_id == reviewee_id,
        PerformanceReview.review_period_start <= end,
        PerformanceReview.review_period_end >= start,
    )
    if exclude_review_id is not None:
        query = query.filter(PerformanceReview.id != exclude_review_id)

    if query.first() is not None:
        return ConflictCheck(False, OVERLAP_MESSAGE)
    return ConflictCheck(True)


def calculate_overall_rating(ratings: Mapping[str, Any]) -> Optional[float]:
    """Mean of category scores, None without ratings."""
    if not ratings:
        return None
    scores = [rating["score"] for rating in ratings.values()]
    return round(sum(scores) / len(scores), 2)


def _dump_ratings(ratings) -> Dict[str, Dict[str, Any]]:
    return {category: rating.model_dump(exclude_none=True) for category, rating in (ratings or {}).items()}


# ============================================
# Reviews
# ============================================

def create_review(db: Session, data: ReviewCreate) -> PerformanceReview:
    """
    Open a draft review.

    Raises:
        HRValidationError: bad period or rating out of range
        ConflictError: period overlaps another review of the same member
    """
    ratings = _dump_ratings(data.ratings)
    errors = validate_review_period(data.review_period_start, data.review_period_end)
    errors += validate_ratings(ratings)
    if errors:
        raise HRValidationError(errors)

    conflict = validate_review_conflicts(
        db, data.organization_id, data.reviewee_id,
        data.review_period_start, data.review_period_end,
    )
    if not conflict.valid:
        logger.warning(
            f"Review period conflict: org_id={data.organization_id}, reviewee_id={data.reviewee_id}, "
            f"period={data.review_period_start}..{data.review_period_end}"
        )
        raise ConflictError(conflict.error)

    review = PerformanceReview(
        organization_id=data.organization_id,
        reviewee_id=data.reviewee_id,
        reviewer_id=data.reviewer_id,
        review_period_start=data.review_period_start,
        review_period_end=data.review_period_end,
        status=ReviewStatus.DRAFT,
        ratings=ratings,
        overall_rating=calculate_overall_rating(ratings),
        strengths=data.strengths,
        areas_for_improvement=data.areas_for_improvement,
    )
    db.add(review)
    db.commit()
    db.refresh(review)

    logger.info(
        f"Performance review created: review_id={review.id}, org_id={review.organization_id}, "
        f"reviewee_id={review.reviewee_id}, reviewer_id={review.reviewer_id}"
    )
    return review


def get_review(db: Session, review_id: int) -> PerformanceReview:
    """Review with its goals loaded through review.goals."""
    review = db.get(PerformanceReview, review_id)
    if review is None:
        raise NotFoundError("Review not found")
    return review


def update_review(db: Session, review_id: int, update: ReviewUpdate) -> PerformanceReview:
    review = get_review(db, review_id)
    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    errors = []

    if update.ratings is not None:
        changes["ratings"] = _dump_ratings(update.ratings)
        errors += validate_ratings(changes["ratings"])

    period_changed = update.review_period_start is not None or update.review_period_end is not None
    start = update.review_period_start or review.review_period_start
    end = update.review_period_end or review.review_period_end
    if period_changed:
        errors += validate_review_period(start, end)

    if errors:
        raise HRValidationError(errors)

    if update.status is not None and update.status != review.status:
        result = validate_transition(EntityType.PERFORMANCE_REVIEW, review.status, update.status)
        if not result.allowed:
            raise InvalidStatusTransitionError(result.reason)

    if period_changed:
        conflict = validate_review_conflicts(
            db, review.organization_id, review.reviewee_id, start, end, exclude_review_id=review.id
        )
        if not conflict.valid:
            raise ConflictError(conflict.error)

    for field, value in changes.items():
        setattr(review, field, value)
    if "ratings" in changes:
        review.overall_rating = calculate_overall_rating(changes["ratings"])

    db.commit()
    db.refresh(review)
    logger.info(f"Performance review updated: review_id={review.id}, fields={sorted(changes)}")
    return review


def submit_review(db: Session, review_id: int, submitter_id: int) -> PerformanceReview:
    review = update_review(db, review_id, ReviewUpdate(status=ReviewStatus.SUBMITTED))
    logger.info(
        f"Performance review submitted: review_id={review.id}, submitter_id={submitter_id}, "
        f"overall_rating={review.overall_rating}"
    )
    return review


def acknowledge_review(db: Session, review_id: int, user_id: int) -> PerformanceReview:
    """Only the reviewee can acknowledge their review."""
    review = get_review(db, review_id)
    if review.reviewee_id != user_id:
        raise HRValidationError(["Only the reviewee can acknowledge a review"])
    return update_review(db, review_id, ReviewUpdate(status=ReviewStatus.ACKNOWLEDGED))


def delete_review(db: Session, review_id: int) -> bool:
    review = db.get(PerformanceReview, review_id)
    if review is None:
        return False
    db.delete(review)
    db.commit()
    logger.info(f"Performance review deleted: review_id={review_id}")
    return True


def list_reviews(
    db: Session,
    organization_id: int,
    filters: Optional[ReviewFilter] = None,
) -> Tuple[List[PerformanceReview], int]:
    filters = filters or ReviewFilter()
    query = db.query(PerformanceReview).filter(PerformanceReview.organization_id == organization_id)
    if filters.reviewee_id:
        query = query.filter(PerformanceReview.reviewee_id == filters.reviewee_id)
    if filters.reviewer_id:
        query = query.filter(PerformanceReview.reviewer_id == filters.reviewer_id)
    if filters.status:
        query = query.filter(PerformanceReview.status == filters.status)
    total = query.count()

    query = query.order_by(PerformanceReview.created_at.desc(), PerformanceReview.id.desc()).offset(filters.offset)
    if filters.limit:
        query = query.limit(filters.limit)
    return query.all(), total


def get_next_review_due_date(
    db: Session,
    organization_id: int,
    user_id: int,
    today: Optional[date] = None,
) -> date:
    """
    New members are due NEW_MEMBER_REVIEW_DAYS from today; everyone else
    REVIEW_CYCLE_DAYS after their latest review period ends.
    """
    today = today or utcnow().date()
    last_end = db.query(func.max(PerformanceReview.review_period_end)).filter(
        PerformanceReview.organization_id == organization_id,
        PerformanceReview.reviewee_id == user_id,
    ).scalar()

    if last_end is None:
        return today + timedelta(days=config.NEW_MEMBER_REVIEW_DAYS)
    return last_end + timedelta(days=config.REVIEW_CYCLE_DAYS)


# ============================================
# Goals
# ============================================

def create_goal(db: Session, data: GoalCreate) -> PerformanceGoal:
    review = get_review(db, data.review_id)
    goal = PerformanceGoal(
        review_id=review.id,
        user_id=data.user_id,
        title=data.title,
        description=data.description,
        target_date=data.target_date,
        status=GoalStatus.NOT_STARTED,
        progress_percentage=0.0,
    )
    db.add(goal)
    db.commit()
    db.refresh(goal)
    logger.info(f"Performance goal created: goal_id={goal.id}, review_id={review.id}, user_id={goal.user_id}")
    return goal


def get_goal(db: Session, goal_id: int) -> PerformanceGoal:
    goal = db.get(PerformanceGoal, goal_id)
    if goal is None:
        raise NotFoundError("Goal not found")
    return goal


def update_goal(db: Session, goal_id: int, update: GoalUpdate) -> PerformanceGoal:
    goal = get_goal(db, goal_id)
    for field, value in update.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(goal, field, value)
    db.commit()
    db.refresh(goal)
    return goal


def update_goal_progress(
    db: Session,
    goal_id: int,
    progress_percentage: float,
    notes: Optional[str] = None,
) -> PerformanceGoal:
    """
    Record progress on a goal; status follows the percentage.

    Raises:
        HRValidationError: percentage outside [0, 100] or goal cancelled
    """
    errors = validate_progress_percentage(progress_percentage)
    if errors:
        raise HRValidationError(errors)

    goal = get_goal(db, goal_id)
    if goal.status == GoalStatus.CANCELLED:
        raise HRValidationError(["Cannot update progress of a cancelled goal"])

    goal.progress_percentage = progress_percentage
    goal.status = goal_status_for_progress(progress_percentage)
    if notes:
        goal.description = notes

    db.commit()
    db.refresh(goal)
    logger.info(
        f"Goal progress updated: goal_id={goal.id}, progress={goal.progress_percentage}, "
        f"status={goal.status.value}"
    )
    return goal


def cancel_goal(db: Session, goal_id: int) -> PerformanceGoal:
    goal = get_goal(db, goal_id)
    if goal.status == GoalStatus.COMPLETED:
        raise HRValidationError(["Completed goals cannot be cancelled"])
    goal.status = GoalStatus.CANCELLED
    db.commit()
    db.refresh(goal)
    logger.info(f"Goal cancelled: goal_id={goal.id}")
    return goal


def delete_goal(db: Session, goal_id: int) -> bool:
    goal = db.get(PerformanceGoal, goal_id)
    if goal is None:
        return False
    db.delete(goal)
    db.commit()
    return True


def list_goals_for_user(
    db: Session,
    user_id: int,
    filters: Optional[GoalFilter] = None,
) -> Tuple[List[PerformanceGoal], int]:
    """Goals ordered by target date, undated goals last."""
    filters = filters or GoalFilter()
    query = db.query(PerformanceGoal).filter(PerformanceGoal.user_id == user_id)
    if filters.status:
        query = query.filter(PerformanceGoal.status == filters.status)
    total = query.count()

    query = query.order_by(
        PerformanceGoal.target_date.is_(None),
        PerformanceGoal.target_date.asc(),
        PerformanceGoal.id.asc(),
    ).offset(filters.offset)
    if filters.limit:
        query = query.limit(filters.limit)
    return query.all(), total


def get_overdue_goals(db: Session, organization_id: int, today: Optional[date] = None) -> List[PerformanceGoal]:
    today = today or utcnow().date()
    return db.query(PerformanceGoal).join(
        PerformanceReview, PerformanceGoal.review_id == PerformanceReview.id
    ).filter(
        PerformanceReview.organization_id == organization_id,
        PerformanceGoal.target_date < today,
        PerformanceGoal.status.in_((GoalStatus.NOT_STARTED, GoalStatus.IN_PROGRESS)),
    ).order_by(PerformanceGoal.target_date.asc()).all()


def get_performance_analytics(db: Session, organization_id: int) -> PerformanceAnalytics:
    counts = db.query(PerformanceReview.status, func.count(PerformanceReview.id)).filter(
        PerformanceReview.organization_id == organization_id
    ).group_by(PerformanceReview.status).all()

    by_status = {status.value: 0 for status in ReviewStatus}
    for status, count in counts:
        by_status[status.value] = int(count)

    average = db.query(func.avg(PerformanceReview.overall_rating)).filter(
        PerformanceReview.organization_id == organization_id
    ).scalar()

    goal_counts = dict(
        db.query(PerformanceGoal.status, func.count(PerformanceGoal.id)).join(
            PerformanceReview, PerformanceGoal.review_id == PerformanceReview.id
        ).filter(
            PerformanceReview.organization_id == organization_id
        ).group_by(PerformanceGoal.status).all()
    )
    total_goals = sum(goal_counts.values())
    completed_goals = goal_counts.get(GoalStatus.COMPLETED, 0)

    return PerformanceAnalytics(
        total_reviews=sum(by_status.values()),
        average_rating=round(float(average), 2) if average is not None else 0.0,
        reviews_by_status=by_status,
        goals_completion_rate=round(completed_goals / total_goals * 100, 2) if total_goals else 0.0,
        active_goals=goal_counts.get(GoalStatus.IN_PROGRESS, 0),
    )
