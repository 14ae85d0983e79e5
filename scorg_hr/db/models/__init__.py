"""
Database models module.

Imports every model so they are registered with Base.metadata before table
creation.
"""
from scorg_hr.db.models.organization import Organization
from scorg_hr.db.models.user import User
from scorg_hr.db.models.hr_application import HRApplication, HRApplicationStatusHistory
from scorg_hr.db.models.hr_onboarding import OnboardingTemplate, OnboardingProgress
from scorg_hr.db.models.hr_performance import PerformanceReview, PerformanceGoal

__all__ = [
    "Organization",
    "User",
    "HRApplication",
    "HRApplicationStatusHistory",
    "OnboardingTemplate",
    "OnboardingProgress",
    "PerformanceReview",
    "PerformanceGoal",
]
