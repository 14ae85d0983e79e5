"""
Unit tests for onboarding checklist and goal progress calculations.
"""
import itertools
from datetime import datetime

from scorg_hr.core.status_rules import GoalStatus, OnboardingStatus
from scorg_hr.schemas.onboarding import OnboardingTask
from scorg_hr.services.progress_calculator import (
    completion_percentage,
    derive_onboarding_status,
    estimated_completion_date,
    goal_status_for_progress,
    is_onboarding_complete,
    required_tasks_remaining,
)

TASKS = [
    {"id": "discord", "title": "Join Discord", "required": True, "estimated_hours": 0.5, "order_index": 0},
    {"id": "handbook", "title": "Read handbook", "required": True, "estimated_hours": 2, "order_index": 1},
    {"id": "ride_along", "title": "Ride-along op", "required": False, "estimated_hours": 3, "order_index": 2},
    {"id": "ship_tour", "title": "Ship tour", "required": False, "estimated_hours": 1, "order_index": 3},
]


def test_percentage_counts_all_template_tasks():
    assert completion_percentage(TASKS, []) == 0.0
    assert completion_percentage(TASKS, ["discord"]) == 25.0
    assert completion_percentage(TASKS, ["discord", "handbook", "ride_along"]) == 75.0
    assert completion_percentage(TASKS, [t["id"] for t in TASKS]) == 100.0


def test_percentage_rounds_to_two_places():
    three = TASKS[:3]
    assert completion_percentage(three, ["discord"]) == 33.33


def test_percentage_ignores_unknown_ids():
    assert completion_percentage(TASKS, ["discord", "not-a-task"]) == 25.0


def test_empty_template_is_zero_percent():
    assert completion_percentage([], ["discord"]) == 0.0


def test_percentage_is_monotonic():
    """Adding a completed task never lowers the percentage."""
    ids = [t["id"] for t in TASKS]
    for size in range(len(ids)):
        for subset in itertools.combinations(ids, size):
            before = completion_percentage(TASKS, subset)
            for extra in set(ids) - set(subset):
                assert completion_percentage(TASKS, subset + (extra,)) >= before


def test_complete_when_only_required_tasks_done():
    done = ["discord", "handbook"]
    assert completion_percentage(TASKS, done) == 50.0
    assert is_onboarding_complete(TASKS, done) is True
    assert derive_onboarding_status(TASKS, done) == OnboardingStatus.COMPLETED


def test_not_complete_with_only_optional_tasks():
    done = ["ride_along", "ship_tour", "discord"]
    assert is_onboarding_complete(TASKS, done) is False
    assert [t["id"] for t in required_tasks_remaining(TASKS, done)] == ["handbook"]
    assert derive_onboarding_status(TASKS, done) == OnboardingStatus.IN_PROGRESS


def test_not_started_without_completed_tasks():
    assert derive_onboarding_status(TASKS, []) == OnboardingStatus.NOT_STARTED


def test_accepts_task_objects():
    tasks = [OnboardingTask(**t) for t in TASKS]
    assert completion_percentage(tasks, ["discord", "handbook"]) == 50.0
    assert is_onboarding_complete(tasks, ["discord", "handbook"]) is True


def test_estimated_completion_date():
    started = datetime(2025, 3, 1, 12, 0)
    assert estimated_completion_date(started, 30) == datetime(2025, 3, 31, 12, 0)
    assert estimated_completion_date(None, 30) is None


def test_goal_status_for_progress():
    assert goal_status_for_progress(0) == GoalStatus.NOT_STARTED
    assert goal_status_for_progress(45) == GoalStatus.IN_PROGRESS
    assert goal_status_for_progress(99.9) == GoalStatus.IN_PROGRESS
    assert goal_status_for_progress(100) == GoalStatus.COMPLETED
