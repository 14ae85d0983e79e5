"""
Status definitions and transition rules for HR records.

Single source of truth for which status changes are allowed. Tables are
read-only and built once at import; lookups never raise.
"""
import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Optional, Type, Union


class EntityType(str, enum.Enum):
    APPLICATION = "application"
    ONBOARDING_PROGRESS = "onboarding_progress"
    PERFORMANCE_REVIEW = "performance_review"
    PERFORMANCE_GOAL = "performance_goal"


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    APPROVED = "approved"
    REJECTED = "rejected"


class OnboardingStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class ReviewStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    ACKNOWLEDGED = "acknowledged"


class GoalStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def _freeze(table: Dict[enum.Enum, tuple]) -> Mapping[enum.Enum, FrozenSet[enum.Enum]]:
    return MappingProxyType({status: frozenset(targets) for status, targets in table.items()})


APPLICATION_TRANSITIONS = _freeze({
    ApplicationStatus.PENDING: (
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.REJECTED,
    ),
    ApplicationStatus.UNDER_REVIEW: (
        ApplicationStatus.INTERVIEW_SCHEDULED,
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    ),
    ApplicationStatus.INTERVIEW_SCHEDULED: (
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.UNDER_REVIEW,
    ),
    ApplicationStatus.APPROVED: (),  # Terminal
    ApplicationStatus.REJECTED: (),  # Terminal
})

REVIEW_TRANSITIONS = _freeze({
    ReviewStatus.DRAFT: (ReviewStatus.SUBMITTED,),
    ReviewStatus.SUBMITTED: (ReviewStatus.ACKNOWLEDGED,),
    ReviewStatus.ACKNOWLEDGED: (),  # Terminal
})

# Onboarding progress and goals derive their status from completion data,
# so they have no table here.
TRANSITION_TABLES: Mapping[EntityType, Mapping] = MappingProxyType({
    EntityType.APPLICATION: APPLICATION_TRANSITIONS,
    EntityType.PERFORMANCE_REVIEW: REVIEW_TRANSITIONS,
})

STATUS_ENUMS: Mapping[EntityType, Type[enum.Enum]] = MappingProxyType({
    EntityType.APPLICATION: ApplicationStatus,
    EntityType.ONBOARDING_PROGRESS: OnboardingStatus,
    EntityType.PERFORMANCE_REVIEW: ReviewStatus,
    EntityType.PERFORMANCE_GOAL: GoalStatus,
})

StatusLike = Union[str, enum.Enum]


@dataclass(frozen=True)
class TransitionResult:
    allowed: bool
    reason: Optional[str] = None


def _coerce_entity(entity_type) -> Optional[EntityType]:
    try:
        return EntityType(entity_type)
    except ValueError:
        return None


def _coerce_status(status_enum: Type[enum.Enum], value: StatusLike) -> Optional[enum.Enum]:
    try:
        return status_enum(value)
    except ValueError:
        return None


def _label(value: StatusLike) -> str:
    return value.value if isinstance(value, enum.Enum) else str(value)


def validate_transition(
    entity_type: Union[str, EntityType],
    current_status: StatusLike,
    requested_status: StatusLike,
) -> TransitionResult:
    """
    Check a requested status change against the entity's transition table.

    Returns:
        TransitionResult with allowed=False and a human-readable reason when
        the change is not permitted. Never raises.
    """
    entity = _coerce_entity(entity_type)
    if entity is None:
        return TransitionResult(False, f"Unknown entity type: {_label(entity_type)}")

    table = TRANSITION_TABLES.get(entity)
    if table is None:
        return TransitionResult(
            False,
            f"Status of {entity.value} is derived from its progress and cannot be set directly",
        )

    status_enum = STATUS_ENUMS[entity]
    current = _coerce_status(status_enum, current_status)
    requested = _coerce_status(status_enum, requested_status)
    if current is None:
        return TransitionResult(False, f"Unknown {entity.value} status: {_label(current_status)}")
    if requested is None:
        return TransitionResult(False, f"Unknown {entity.value} status: {_label(requested_status)}")

    if requested not in table[current]:
        return TransitionResult(
            False,
            f"Cannot transition from {current.value} to {requested.value}",
        )

    return TransitionResult(True)


def get_valid_transitions(entity_type: Union[str, EntityType], status: StatusLike) -> FrozenSet:
    """Statuses reachable in one step, empty for terminal or unknown statuses."""
    entity = _coerce_entity(entity_type)
    table = TRANSITION_TABLES.get(entity) if entity else None
    if table is None:
        return frozenset()
    current = _coerce_status(STATUS_ENUMS[entity], status)
    if current is None:
        return frozenset()
    return table[current]


def is_terminal_status(entity_type: Union[str, EntityType], status: StatusLike) -> bool:
    entity = _coerce_entity(entity_type)
    table = TRANSITION_TABLES.get(entity) if entity else None
    if table is None:
        return False
    current = _coerce_status(STATUS_ENUMS[entity], status)
    return current is not None and not table[current]
