"""
Onboarding service for role checklists and member progress.

Completion percentage and status are always recomputed from the template's
task list by the progress calculator; they are never taken from callers.
"""
import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scorg_hr.core import config
from scorg_hr.core.errors import ConflictError, HRValidationError, NotFoundError
from scorg_hr.core.field_validation import validate_template_tasks
from scorg_hr.core.status_rules import OnboardingStatus
from scorg_hr.db.base import utcnow
from scorg_hr.db.models.hr_onboarding import OnboardingProgress, OnboardingTemplate
from scorg_hr.schemas.onboarding import (
    OnboardingStatistics,
    ProgressCreate,
    ProgressFilter,
    TemplateCreate,
    TemplateUpdate,
)
from scorg_hr.services.progress_calculator import (
    completion_percentage,
    derive_onboarding_status,
    estimated_completion_date,
    is_onboarding_complete,
    required_tasks_remaining,
)

logger = logging.getLogger(__name__)

OPEN_STATUSES = (OnboardingStatus.NOT_STARTED, OnboardingStatus.IN_PROGRESS)


# ============================================
# Templates
# ============================================

def _role_taken(db: Session, organization_id: int, role_name: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(OnboardingTemplate.id).filter(
        OnboardingTemplate.organization_id == organization_id,
        OnboardingTemplate.role_name == role_name,
    )
    if exclude_id is not None:
        query = query.filter(OnboardingTemplate.id != exclude_id)
    return query.first() is not None


def create_template(db: Session, data: TemplateCreate) -> OnboardingTemplate:
    errors = validate_template_tasks(data.role_name, data.tasks)
    if errors:
        raise HRValidationError(errors)

    if _role_taken(db, data.organization_id, data.role_name):
        raise ConflictError("A template for this role already exists in the organization")

    template = OnboardingTemplate(
        organization_id=data.organization_id,
        role_name=data.role_name,
        tasks=[task.model_dump() for task in sorted(data.tasks, key=lambda t: t.order_index)],
        estimated_duration_days=data.estimated_duration_days,
        is_active=True,
    )
    db.add(template)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A template for this role already exists in the organization")

    db.refresh(template)
    logger.info(
        f"Onboarding template created: template_id={template.id}, "
        f"org_id={template.organization_id}, role={template.role_name}, tasks={len(template.tasks)}"
    )
    return template


def get_template(db: Session, template_id: int) -> OnboardingTemplate:
    template = db.get(OnboardingTemplate, template_id)
    if template is None:
        raise NotFoundError("Onboarding template not found")
    return template


def find_template_by_role(db: Session, organization_id: int, role_name: str) -> Optional[OnboardingTemplate]:
    """Active template for a role, if any."""
    return db.query(OnboardingTemplate).filter(
        OnboardingTemplate.organization_id == organization_id,
        OnboardingTemplate.role_name == role_name,
        OnboardingTemplate.is_active.is_(True),
    ).first()


def _recompute_progress(progress: OnboardingProgress, tasks: List[dict], now: datetime) -> None:
    """Bring a progress row in line with its template's current task list."""
    completed = progress.completed_tasks or []
    progress.completion_percentage = completion_percentage(tasks, completed)
    derived = derive_onboarding_status(tasks, completed)

    if derived == OnboardingStatus.COMPLETED:
        progress.status = derived
        if progress.completed_at is None:
            progress.completed_at = now
    elif progress.status != OnboardingStatus.OVERDUE:
        progress.status = derived
        progress.completed_at = None


def update_template(
    db: Session,
    template_id: int,
    update: TemplateUpdate,
    now: Optional[datetime] = None,
) -> OnboardingTemplate:
    """
    Edit a template.

    A new task list is applied to every member already working through the
    template: percentages and statuses are recomputed in the same commit.
    """
    template = get_template(db, template_id)
    changes = update.model_dump(exclude_unset=True, exclude_none=True)

    if "role_name" in changes or "tasks" in changes:
        errors = validate_template_tasks(
            update.role_name if update.role_name is not None else template.role_name,
            update.tasks if update.tasks is not None else template.tasks,
        )
        if errors:
            raise HRValidationError(errors)

    if update.role_name is not None and _role_taken(db, template.organization_id, update.role_name, template.id):
        raise ConflictError("A template for this role already exists in the organization")

    if update.tasks is not None:
        changes["tasks"] = [task.model_dump() for task in sorted(update.tasks, key=lambda t: t.order_index)]

    for field, value in changes.items():
        setattr(template, field, value)

    refreshed = 0
    if "tasks" in changes:
        now = now or utcnow()
        rows = db.query(OnboardingProgress).filter(OnboardingProgress.template_id == template.id).all()
        for progress in rows:
            _recompute_progress(progress, template.tasks, now)
        refreshed = len(rows)

    db.commit()
    db.refresh(template)
    logger.info(
        f"Onboarding template updated: template_id={template.id}, "
        f"fields={sorted(changes)}, progress_refreshed={refreshed}"
    )
    return template


def deactivate_template(db: Session, template_id: int) -> OnboardingTemplate:
    return update_template(db, template_id, TemplateUpdate(is_active=False))


def delete_template(db: Session, template_id: int) -> bool:
    template = db.get(OnboardingTemplate, template_id)
    if template is None:
        return False
    in_use = db.query(OnboardingProgress.id).filter(OnboardingProgress.template_id == template_id).first()
    if in_use:
        raise ConflictError("Template is assigned to members; deactivate it instead")
    db.delete(template)
    db.commit()
    logger.info(f"Onboarding template deleted: template_id={template_id}")
    return True


def list_templates(
    db: Session,
    organization_id: int,
    is_active: Optional[bool] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> Tuple[List[OnboardingTemplate], int]:
    query = db.query(OnboardingTemplate).filter(OnboardingTemplate.organization_id == organization_id)
    if is_active is not None:
        query = query.filter(OnboardingTemplate.is_active.is_(is_active))
    total = query.count()

    query = query.order_by(OnboardingTemplate.role_name.asc()).offset(offset)
    if limit:
        query = query.limit(limit)
    return query.all(), total


# ============================================
# Progress
# ============================================

def create_progress(db: Session, data: ProgressCreate) -> OnboardingProgress:
    """
    Assign a template to a member.

    Raises:
        ConflictError: the member already has onboarding progress here
        NotFoundError: no active template with that id in the organization
    """
    if get_progress_for_user(db, data.organization_id, data.user_id):
        raise ConflictError("Onboarding progress already exists for this user")

    template = db.get(OnboardingTemplate, data.template_id)
    if template is None or template.organization_id != data.organization_id or not template.is_active:
        raise NotFoundError("Onboarding template not found")

    progress = OnboardingProgress(
        organization_id=data.organization_id,
        user_id=data.user_id,
        template_id=template.id,
        status=OnboardingStatus.NOT_STARTED,
        completed_tasks=[],
        completion_percentage=0.0,
    )
    db.add(progress)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Onboarding progress already exists for this user")

    db.refresh(progress)
    logger.info(
        f"Onboarding started: progress_id={progress.id}, org_id={progress.organization_id}, "
        f"user_id={progress.user_id}, template_id={progress.template_id}"
    )
    return progress


def get_progress(db: Session, progress_id: int) -> OnboardingProgress:
    progress = db.get(OnboardingProgress, progress_id)
    if progress is None:
        raise NotFoundError("Onboarding progress not found")
    return progress


def get_progress_for_user(db: Session, organization_id: int, user_id: int) -> Optional[OnboardingProgress]:
    return db.query(OnboardingProgress).filter(
        OnboardingProgress.organization_id == organization_id,
        OnboardingProgress.user_id == user_id,
    ).first()


def list_progress(
    db: Session,
    organization_id: int,
    filters: Optional[ProgressFilter] = None,
) -> Tuple[List[OnboardingProgress], int]:
    filters = filters or ProgressFilter()
    query = db.query(OnboardingProgress).filter(OnboardingProgress.organization_id == organization_id)
    if filters.status:
        query = query.filter(OnboardingProgress.status == filters.status)
    if filters.user_id:
        query = query.filter(OnboardingProgress.user_id == filters.user_id)
    total = query.count()

    query = query.order_by(OnboardingProgress.created_at.desc(), OnboardingProgress.id.desc()).offset(filters.offset)
    if filters.limit:
        query = query.limit(filters.limit)
    return query.all(), total


def update_progress_status(db: Session, progress_id: int, status: OnboardingStatus) -> OnboardingProgress:
    """
    Set a status by hand, e.g. flagging a member as overdue.

    completed requires every required task to be done.
    """
    progress = get_progress(db, progress_id)
    if status == OnboardingStatus.COMPLETED and not is_onboarding_complete(
        progress.template.tasks, progress.completed_tasks
    ):
        raise HRValidationError(["Onboarding cannot be completed while required tasks remain"])

    progress.status = status
    if status == OnboardingStatus.COMPLETED and progress.completed_at is None:
        progress.completed_at = utcnow()
    db.commit()
    db.refresh(progress)
    logger.info(f"Onboarding status set: progress_id={progress.id}, status={status.value}")
    return progress


def complete_task(
    db: Session,
    progress_id: int,
    task_id: str,
    now: Optional[datetime] = None,
) -> OnboardingProgress:
    """
    Mark one checklist task as done and recompute progress.

    Raises:
        HRValidationError: the task is not in the template or is already done
    """
    now = now or utcnow()
    progress = get_progress(db, progress_id)
    tasks = progress.template.tasks or []

    if task_id not in {task["id"] for task in tasks}:
        raise HRValidationError([f"Task {task_id} is not part of this onboarding template"])

    completed = list(progress.completed_tasks or [])
    if task_id in completed:
        raise HRValidationError([f"Task {task_id} is already completed"])
    completed.append(task_id)

    # Reassign so the JSON column is flagged dirty
    progress.completed_tasks = completed
    progress.completion_percentage = completion_percentage(tasks, completed)
    progress.status = derive_onboarding_status(tasks, completed)
    if progress.started_at is None:
        progress.started_at = now
    if progress.status == OnboardingStatus.COMPLETED and progress.completed_at is None:
        progress.completed_at = now

    db.commit()
    db.refresh(progress)

    logger.info(
        f"Onboarding task completed: progress_id={progress.id}, task_id={task_id}, "
        f"completion={progress.completion_percentage}%, status={progress.status.value}"
    )
    return progress


def get_required_tasks_remaining(db: Session, progress_id: int) -> List[dict]:
    progress = get_progress(db, progress_id)
    return required_tasks_remaining(progress.template.tasks, progress.completed_tasks or [])


def is_progress_complete(db: Session, progress_id: int) -> bool:
    progress = get_progress(db, progress_id)
    return is_onboarding_complete(progress.template.tasks, progress.completed_tasks or [])


def get_estimated_completion_date(db: Session, progress_id: int) -> Optional[datetime]:
    progress = get_progress(db, progress_id)
    return estimated_completion_date(progress.started_at, progress.template.estimated_duration_days)


def _overdue_query(db: Session, now: datetime):
    cutoff = now - timedelta(days=config.ONBOARDING_OVERDUE_DAYS)
    return db.query(OnboardingProgress).filter(
        OnboardingProgress.status.in_(OPEN_STATUSES),
        OnboardingProgress.created_at < cutoff,
    )


def get_overdue_progress(
    db: Session,
    organization_id: int,
    now: Optional[datetime] = None,
) -> List[OnboardingProgress]:
    return _overdue_query(db, now or utcnow()).filter(
        OnboardingProgress.organization_id == organization_id
    ).order_by(OnboardingProgress.created_at.asc()).all()


def mark_overdue_progress(db: Session, now: Optional[datetime] = None) -> int:
    """Flag open onboarding older than ONBOARDING_OVERDUE_DAYS as overdue, across all organizations."""
    now = now or utcnow()
    updated = _overdue_query(db, now).update(
        {OnboardingProgress.status: OnboardingStatus.OVERDUE, OnboardingProgress.updated_at: now},
        synchronize_session=False,
    )
    db.commit()
    logger.info(f"Marked overdue onboarding: count={updated}")
    return updated


def get_onboarding_statistics(db: Session, organization_id: int) -> OnboardingStatistics:
    counts = db.query(OnboardingProgress.status, func.count(OnboardingProgress.id)).filter(
        OnboardingProgress.organization_id == organization_id
    ).group_by(OnboardingProgress.status).all()

    by_status = {status.value: 0 for status in OnboardingStatus}
    for status, count in counts:
        by_status[status.value] = int(count)
    total = sum(by_status.values())

    finished = db.query(OnboardingProgress.started_at, OnboardingProgress.completed_at).filter(
        OnboardingProgress.organization_id == organization_id,
        OnboardingProgress.status == OnboardingStatus.COMPLETED,
        OnboardingProgress.started_at.isnot(None),
        OnboardingProgress.completed_at.isnot(None),
    ).all()

    average_days = 0.0
    if finished:
        # Partial days count as whole days
        total_days = sum(
            math.ceil(abs((completed_at - started_at).total_seconds()) / 86400)
            for started_at, completed_at in finished
        )
        average_days = total_days / len(finished)

    completion_rate = by_status[OnboardingStatus.COMPLETED.value] / total * 100 if total else 0.0

    return OnboardingStatistics(
        total=total,
        average_completion_time_days=round(average_days, 2),
        completion_rate=round(completion_rate, 2),
        **by_status,
    )
