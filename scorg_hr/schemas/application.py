"""
Pydantic schemas for membership applications.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from scorg_hr.core.status_rules import ApplicationStatus


class ApplicationData(BaseModel):
    """Free-form answers submitted with an application. Length limits are checked by the service."""
    cover_letter: Optional[str] = Field(None, description="Why the applicant wants to join")
    experience: Optional[str] = Field(None, description="Relevant in-game experience")
    availability: Optional[str] = Field(None, description="Play times and timezone")
    custom_fields: Optional[Dict[str, Any]] = Field(None, description="Organization-specific questions")


class ApplicationCreate(BaseModel):
    organization_id: int = Field(..., description="Organization being applied to")
    user_id: int = Field(..., description="Applicant user ID")
    application_data: ApplicationData = Field(default_factory=ApplicationData)


class ApplicationUpdate(BaseModel):
    """Reviewer changes to an application. Any status change needs reviewer_id."""
    status: Optional[ApplicationStatus] = Field(None, description="Requested new status")
    reviewer_id: Optional[int] = Field(None, description="User performing the review")
    review_notes: Optional[str] = Field(None, description="Notes recorded with the change")
    rejection_reason: Optional[str] = Field(None, description="Required when rejecting")


class ApplicationFilter(BaseModel):
    status: Optional[ApplicationStatus] = Field(None, description="Filter by status")
    reviewer_id: Optional[int] = Field(None, description="Filter by reviewer")
    limit: Optional[int] = Field(None, ge=1, le=100, description="Page size")
    offset: int = Field(0, ge=0, description="Rows to skip")


class ApplicationStats(BaseModel):
    total: int = Field(..., description="All applications for the organization")
    by_status: Dict[str, int] = Field(..., description="Count per application status")
    recent_count: int = Field(..., description="Applications created in the recent window")
    approval_rate: float = Field(..., description="Approved share of processed applications (%)")
    rejection_rate: float = Field(..., description="Rejected share of processed applications (%)")

    class Config:
        json_schema_extra = {
            "example": {
                "total": 12,
                "by_status": {
                    "pending": 3,
                    "under_review": 2,
                    "interview_scheduled": 1,
                    "approved": 4,
                    "rejected": 2,
                },
                "recent_count": 5,
                "approval_rate": 66.67,
                "rejection_rate": 33.33,
            }
        }


class ApplicationValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list, description="Problems that block submission")
    warnings: List[str] = Field(default_factory=list, description="Advice that does not block submission")
