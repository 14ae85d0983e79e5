"""
Pydantic schemas for onboarding templates and progress.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from scorg_hr.core.status_rules import OnboardingStatus


class OnboardingTask(BaseModel):
    id: str = Field(..., min_length=1, description="Task ID, unique within the template")
    title: str = Field(..., min_length=1, description="Task title")
    description: str = Field("", description="What the member needs to do")
    required: bool = Field(..., description="Whether completion of onboarding depends on this task")
    estimated_hours: float = Field(..., ge=0, description="Expected effort")
    order_index: int = Field(..., description="Position in the checklist")


class TemplateCreate(BaseModel):
    organization_id: int
    role_name: str = Field(..., max_length=255, description="Role the checklist applies to")
    tasks: List[OnboardingTask] = Field(..., description="Ordered checklist")
    estimated_duration_days: int = Field(30, ge=1, description="Expected days to finish")


class TemplateUpdate(BaseModel):
    role_name: Optional[str] = Field(None, max_length=255)
    tasks: Optional[List[OnboardingTask]] = None
    estimated_duration_days: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None


class ProgressCreate(BaseModel):
    organization_id: int
    user_id: int
    template_id: int


class ProgressFilter(BaseModel):
    status: Optional[OnboardingStatus] = None
    user_id: Optional[int] = None
    limit: Optional[int] = Field(None, ge=1, le=100)
    offset: int = Field(0, ge=0)


class OnboardingStatistics(BaseModel):
    total: int
    not_started: int
    in_progress: int
    completed: int
    overdue: int
    average_completion_time_days: float = Field(..., description="Mean days from start to completion")
    completion_rate: float = Field(..., description="Completed share of all progress rows (%)")
