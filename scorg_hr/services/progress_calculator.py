"""
Onboarding checklist and goal progress calculations.

Pure functions over template task lists (JSON dicts or objects with id and
required attributes) and sets of completed task ids.
"""
from datetime import datetime, timedelta
from typing import Any, Iterable, List, Optional

from scorg_hr.core.status_rules import GoalStatus, OnboardingStatus


def _task_id(task: Any) -> str:
    return task["id"] if isinstance(task, dict) else task.id


def _task_required(task: Any) -> bool:
    required = task.get("required") if isinstance(task, dict) else getattr(task, "required", False)
    return bool(required)


def completion_percentage(tasks: Iterable[Any], completed_ids: Iterable[str]) -> float:
    """
    Percentage of template tasks that are completed.

    Ids in completed_ids that are not part of the template are ignored.
    Returns 0 for a template without tasks.
    """
    task_ids = {_task_id(task) for task in tasks}
    if not task_ids:
        return 0.0
    done = task_ids & set(completed_ids)
    return round(len(done) / len(task_ids) * 100, 2)


def required_tasks_remaining(tasks: Iterable[Any], completed_ids: Iterable[str]) -> List[Any]:
    completed = set(completed_ids)
    return [task for task in tasks if _task_required(task) and _task_id(task) not in completed]


def is_onboarding_complete(tasks: Iterable[Any], completed_ids: Iterable[str]) -> bool:
    """True iff every required task is completed; optional tasks do not matter."""
    return not required_tasks_remaining(tasks, completed_ids)


def derive_onboarding_status(tasks: Iterable[Any], completed_ids: Iterable[str]) -> OnboardingStatus:
    tasks = list(tasks)
    completed = set(completed_ids)
    task_ids = {_task_id(task) for task in tasks}

    if not completed & task_ids:
        return OnboardingStatus.NOT_STARTED
    if is_onboarding_complete(tasks, completed):
        return OnboardingStatus.COMPLETED
    return OnboardingStatus.IN_PROGRESS


def estimated_completion_date(
    started_at: Optional[datetime],
    estimated_duration_days: int,
) -> Optional[datetime]:
    if started_at is None:
        return None
    return started_at + timedelta(days=estimated_duration_days)


def goal_status_for_progress(progress_percentage: float) -> GoalStatus:
    """0 -> not_started, anything below 100 -> in_progress, 100 -> completed."""
    if progress_percentage >= 100:
        return GoalStatus.COMPLETED
    if progress_percentage > 0:
        return GoalStatus.IN_PROGRESS
    return GoalStatus.NOT_STARTED
