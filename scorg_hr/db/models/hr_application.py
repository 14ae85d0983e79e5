"""
Organization membership applications and their status history.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from scorg_hr.core.status_rules import ApplicationStatus
from scorg_hr.db.base import Base, status_enum, utcnow


class HRApplication(Base):
    """
    A user's application to join an organization.

    application_data holds cover_letter, experience, availability and
    custom_fields. Any existing row blocks another submission for the same
    (organization_id, user_id).
    """
    __tablename__ = "hr_applications"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(status_enum(ApplicationStatus), nullable=False, default=ApplicationStatus.PENDING, index=True)
    application_data = Column(JSON, nullable=False, default=dict)

    # Review
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    review_notes = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    invite_code = Column(String(16), nullable=True, unique=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    applicant = relationship("User", foreign_keys=[user_id])
    reviewer = relationship("User", foreign_keys=[reviewer_id])
    status_history = relationship(
        "HRApplicationStatusHistory",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="HRApplicationStatusHistory.id",
    )

    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="uq_hr_applications_org_user"),
        Index("idx_hr_applications_org_status", "organization_id", "status"),
    )

    def __repr__(self):
        return f"<HRApplication(id={self.id}, org={self.organization_id}, user={self.user_id}, status='{self.status}')>"


class HRApplicationStatusHistory(Base):
    __tablename__ = "hr_application_status_history"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("hr_applications.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(status_enum(ApplicationStatus), nullable=False)
    changed_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    application = relationship("HRApplication", back_populates="status_history")
