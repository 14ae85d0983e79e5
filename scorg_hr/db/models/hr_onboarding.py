"""
Onboarding checklists per role and each member's progress through one.
"""
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, ForeignKey, JSON, Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from scorg_hr.core.status_rules import OnboardingStatus
from scorg_hr.db.base import Base, status_enum, utcnow


class OnboardingTemplate(Base):
    __tablename__ = "hr_onboarding_templates"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    role_name = Column(String, nullable=False)
    # [{id, title, description, required, estimated_hours, order_index}, ...]
    tasks = Column(JSON, nullable=False, default=list)
    estimated_duration_days = Column(Integer, nullable=False, default=30)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("organization_id", "role_name", name="uq_hr_onboarding_templates_org_role"),
    )

    def __repr__(self):
        return f"<OnboardingTemplate(id={self.id}, role_name='{self.role_name}', tasks={len(self.tasks or [])})>"


class OnboardingProgress(Base):
    __tablename__ = "hr_onboarding_progress"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    template_id = Column(Integer, ForeignKey("hr_onboarding_templates.id"), nullable=False)
    status = Column(status_enum(OnboardingStatus), nullable=False, default=OnboardingStatus.NOT_STARTED, index=True)
    completed_tasks = Column(JSON, nullable=False, default=list)  # task ids
    completion_percentage = Column(Float, nullable=False, default=0.0)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    template = relationship("OnboardingTemplate")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="uq_hr_onboarding_progress_org_user"),
        Index("idx_hr_onboarding_progress_status_created", "status", "created_at"),
    )
