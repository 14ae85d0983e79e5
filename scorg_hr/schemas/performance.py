"""
Pydantic schemas for performance reviews and goals.
"""
from datetime import date
from typing import Dict, Optional
from pydantic import BaseModel, Field

from scorg_hr.core.status_rules import GoalStatus, ReviewStatus


class Rating(BaseModel):
    score: float = Field(..., description="1 to 5, checked by the service")
    comments: Optional[str] = None


class ReviewCreate(BaseModel):
    organization_id: int
    reviewee_id: int
    reviewer_id: int
    review_period_start: date
    review_period_end: date
    ratings: Dict[str, Rating] = Field(default_factory=dict)
    strengths: Optional[str] = None
    areas_for_improvement: Optional[str] = None


class ReviewUpdate(BaseModel):
    status: Optional[ReviewStatus] = None
    review_period_start: Optional[date] = None
    review_period_end: Optional[date] = None
    ratings: Optional[Dict[str, Rating]] = None
    strengths: Optional[str] = None
    areas_for_improvement: Optional[str] = None


class ReviewFilter(BaseModel):
    reviewee_id: Optional[int] = None
    reviewer_id: Optional[int] = None
    status: Optional[ReviewStatus] = None
    limit: Optional[int] = Field(None, ge=1, le=100)
    offset: int = Field(0, ge=0)


class GoalCreate(BaseModel):
    review_id: int
    user_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    target_date: Optional[date] = None


class GoalUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    target_date: Optional[date] = None


class GoalFilter(BaseModel):
    status: Optional[GoalStatus] = None
    limit: Optional[int] = Field(None, ge=1, le=100)
    offset: int = Field(0, ge=0)


class PerformanceAnalytics(BaseModel):
    total_reviews: int
    average_rating: float
    reviews_by_status: Dict[str, int]
    goals_completion_rate: float = Field(..., description="Completed share of all goals (%)")
    active_goals: int = Field(..., description="Goals currently in progress")
