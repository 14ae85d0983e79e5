"""
Performance reviews and the goals attached to them.
"""
from sqlalchemy import Column, Integer, String, Text, Float, Date, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from scorg_hr.core.status_rules import GoalStatus, ReviewStatus
from scorg_hr.db.base import Base, status_enum, utcnow


class PerformanceReview(Base):
    """
    A review of one member over an inclusive [start, end] period.

    ratings maps category -> {"score": 1..5, "comments": str}; overall_rating
    is the mean score. Periods for the same reviewee in an organization must
    not overlap, which is checked by the performance service.
    """
    __tablename__ = "hr_performance_reviews"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    reviewee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    review_period_start = Column(Date, nullable=False)
    review_period_end = Column(Date, nullable=False)
    status = Column(status_enum(ReviewStatus), nullable=False, default=ReviewStatus.DRAFT, index=True)
    ratings = Column(JSON, nullable=False, default=dict)
    overall_rating = Column(Float, nullable=True)
    strengths = Column(Text, nullable=True)
    areas_for_improvement = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    reviewee = relationship("User", foreign_keys=[reviewee_id])
    reviewer = relationship("User", foreign_keys=[reviewer_id])
    goals = relationship(
        "PerformanceGoal",
        back_populates="review",
        cascade="all, delete-orphan",
        order_by="PerformanceGoal.created_at",
    )

    __table_args__ = (
        Index("idx_hr_reviews_org_reviewee_period", "organization_id", "reviewee_id",
              "review_period_start", "review_period_end"),
    )

    def __repr__(self):
        return (
            f"<PerformanceReview(id={self.id}, reviewee={self.reviewee_id}, "
            f"period={self.review_period_start}..{self.review_period_end}, status='{self.status}')>"
        )


class PerformanceGoal(Base):
    __tablename__ = "hr_performance_goals"

    id = Column(Integer, primary_key=True, index=True)
    review_id = Column(Integer, ForeignKey("hr_performance_reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    target_date = Column(Date, nullable=True)
    status = Column(status_enum(GoalStatus), nullable=False, default=GoalStatus.NOT_STARTED, index=True)
    progress_percentage = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    review = relationship("PerformanceReview", back_populates="goals")
