"""
Application service for organization membership applications.

Sequences field validation, the duplicate guard and status transition rules
with database reads and writes. Every status change is recorded in
hr_application_status_history.
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from scorg_hr.core import config
from scorg_hr.core.errors import (
    ConflictError,
    HRValidationError,
    InvalidStatusTransitionError,
    NotFoundError,
)
from scorg_hr.core.field_validation import application_warnings, validate_application_data
from scorg_hr.core.logging_config import sanitize_log_data
from scorg_hr.core.status_rules import (
    ApplicationStatus,
    EntityType,
    get_valid_transitions,
    validate_transition,
)
from scorg_hr.db.base import utcnow
from scorg_hr.db.models.hr_application import HRApplication, HRApplicationStatusHistory
from scorg_hr.db.models.user import User
from scorg_hr.schemas.application import (
    ApplicationCreate,
    ApplicationFilter,
    ApplicationStats,
    ApplicationUpdate,
    ApplicationValidationResult,
)

logger = logging.getLogger(__name__)

DUPLICATE_APPLICATION_MESSAGE = "User already has an application for this organization"


def check_duplicate_application(db: Session, organization_id: int, user_id: int) -> bool:
    """True when any application exists for the pair, whatever its status."""
    existing = db.query(HRApplication.id).filter(
        HRApplication.organization_id == organization_id,
        HRApplication.user_id == user_id,
    ).first()
    return existing is not None


def validate_application(db: Session, data: ApplicationCreate) -> ApplicationValidationResult:
    """
    Dry run of create_application for an applicant's form.

    errors would reject the submission; warnings are advice only.
    """
    application_data = data.application_data.model_dump(exclude_none=True)
    errors = [e.message for e in validate_application_data(application_data)]
    if check_duplicate_application(db, data.organization_id, data.user_id):
        errors.append(DUPLICATE_APPLICATION_MESSAGE)

    return ApplicationValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=application_warnings(application_data),
    )


def create_application(db: Session, data: ApplicationCreate) -> HRApplication:
    """
    Submit a new application in pending status.

    Raises:
        HRValidationError: application_data breaks a length or size limit
        ConflictError: the user already applied to this organization
    """
    application_data = data.application_data.model_dump(exclude_none=True)

    errors = validate_application_data(application_data)
    if errors:
        logger.warning(
            f"Application rejected by validation: org_id={data.organization_id}, "
            f"user_id={data.user_id}, fields={[e.field for e in errors]}"
        )
        raise HRValidationError(errors)

    if check_duplicate_application(db, data.organization_id, data.user_id):
        raise ConflictError(DUPLICATE_APPLICATION_MESSAGE)

    application = HRApplication(
        organization_id=data.organization_id,
        user_id=data.user_id,
        status=ApplicationStatus.PENDING,
        application_data=application_data,
    )
    db.add(application)

    try:
        db.flush()
        _log_status_change(db, application, ApplicationStatus.PENDING, data.user_id, "Application submitted")
        db.commit()
    except IntegrityError:
        # Concurrent submission won the unique constraint
        db.rollback()
        raise ConflictError(DUPLICATE_APPLICATION_MESSAGE)

    db.refresh(application)
    logger.info(
        f"Application submitted: application_id={application.id}, "
        f"org_id={application.organization_id}, user_id={application.user_id}"
    )
    return application


def get_application(db: Session, application_id: int) -> HRApplication:
    application = db.get(HRApplication, application_id)
    if application is None:
        raise NotFoundError("Application not found")
    return application


def find_application_for_user(db: Session, organization_id: int, user_id: int) -> Optional[HRApplication]:
    return db.query(HRApplication).filter(
        HRApplication.organization_id == organization_id,
        HRApplication.user_id == user_id,
    ).first()


def _check_status_change(
    application: HRApplication,
    new_status: ApplicationStatus,
    reviewer_id: Optional[int],
    rejection_reason: Optional[str],
) -> None:
    if not reviewer_id:
        raise HRValidationError(["Reviewer ID is required for status changes"])

    if new_status == ApplicationStatus.REJECTED and not (rejection_reason or "").strip():
        raise HRValidationError(["Rejection reason is required when rejecting an application"])

    result = validate_transition(EntityType.APPLICATION, application.status, new_status)
    if not result.allowed:
        logger.warning(
            f"Status transition denied: application_id={application.id}, "
            f"from={application.status.value}, to={new_status.value}"
        )
        raise InvalidStatusTransitionError(result.reason)


def update_application(db: Session, application_id: int, update: ApplicationUpdate) -> HRApplication:
    """
    Apply reviewer changes to an application.

    A status change must be allowed by the transition table, carry a
    reviewer_id, and rejections must carry a rejection_reason.
    """
    application = get_application(db, application_id)
    old_status = application.status
    status_changed = update.status is not None and update.status != old_status

    if status_changed:
        _check_status_change(application, update.status, update.reviewer_id, update.rejection_reason)

    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    if (update.status or old_status) != ApplicationStatus.REJECTED:
        changes.pop("rejection_reason", None)
    for field, value in changes.items():
        setattr(application, field, value)
    logger.debug(f"Application fields updated: application_id={application.id}, changes={sanitize_log_data(changes)}")

    if status_changed:
        _log_status_change(
            db,
            application,
            update.status,
            update.reviewer_id,
            update.review_notes or f"Status changed to {update.status.value}",
        )

    db.commit()
    db.refresh(application)

    if status_changed:
        logger.info(
            f"Application status changed: application_id={application.id}, "
            f"{old_status.value} -> {application.status.value}, reviewer_id={update.reviewer_id}"
        )
    return application


def update_application_status(
    db: Session,
    application_id: int,
    new_status: ApplicationStatus,
    reviewer_id: int,
    notes: Optional[str] = None,
    rejection_reason: Optional[str] = None,
) -> HRApplication:
    update = ApplicationUpdate(
        status=new_status,
        reviewer_id=reviewer_id,
        review_notes=notes,
        rejection_reason=rejection_reason if new_status == ApplicationStatus.REJECTED else None,
    )
    return update_application(db, application_id, update)


def bulk_update_status(
    db: Session,
    application_ids: Sequence[int],
    new_status: ApplicationStatus,
    reviewer_id: int,
    notes: Optional[str] = None,
    rejection_reason: Optional[str] = None,
) -> int:
    """
    Move several applications to new_status in one transaction.

    All applications are checked first; if any transition is not allowed
    nothing is written. Applications already in new_status are left alone.

    Returns:
        Number of applications whose status changed
    """
    applications = db.query(HRApplication).filter(HRApplication.id.in_(list(application_ids))).all()
    found = {application.id for application in applications}
    missing = [application_id for application_id in application_ids if application_id not in found]
    if missing:
        raise NotFoundError(f"Applications not found: {', '.join(str(i) for i in missing)}")

    to_change = [application for application in applications if application.status != new_status]

    failures = []
    for application in to_change:
        try:
            _check_status_change(application, new_status, reviewer_id, rejection_reason)
        except InvalidStatusTransitionError as e:
            failures.append(f"application {application.id}: {e.errors[0]}")
    if failures:
        raise InvalidStatusTransitionError("; ".join(failures))

    for application in to_change:
        application.status = new_status
        application.reviewer_id = reviewer_id
        application.review_notes = notes
        if new_status == ApplicationStatus.REJECTED:
            application.rejection_reason = rejection_reason
        _log_status_change(
            db, application, new_status, reviewer_id,
            notes or f"Bulk status change to {new_status.value}",
        )

    db.commit()
    logger.info(
        f"Bulk status update: status={new_status.value}, changed={len(to_change)}, "
        f"requested={len(application_ids)}, reviewer_id={reviewer_id}"
    )
    return len(to_change)


def delete_application(db: Session, application_id: int) -> bool:
    application = db.get(HRApplication, application_id)
    if application is None:
        return False
    db.delete(application)
    db.commit()
    logger.info(f"Application deleted: application_id={application_id}")
    return True


def _filtered_query(db: Session, organization_id: int, filters: ApplicationFilter):
    query = db.query(HRApplication).filter(HRApplication.organization_id == organization_id)
    if filters.status:
        query = query.filter(HRApplication.status == filters.status)
    if filters.reviewer_id:
        query = query.filter(HRApplication.reviewer_id == filters.reviewer_id)
    return query


def list_applications(
    db: Session,
    organization_id: int,
    filters: Optional[ApplicationFilter] = None,
) -> Tuple[List[HRApplication], int]:
    """Newest first. Returns (page, total matching rows)."""
    filters = filters or ApplicationFilter()
    query = _filtered_query(db, organization_id, filters)
    total = query.count()

    query = query.order_by(HRApplication.created_at.desc(), HRApplication.id.desc()).offset(filters.offset)
    if filters.limit:
        query = query.limit(filters.limit)

    return query.all(), total


def list_applications_with_user_info(
    db: Session,
    organization_id: int,
    filters: Optional[ApplicationFilter] = None,
) -> Tuple[List[Dict[str, Any]], int]:
    """Like list_applications, with applicant and reviewer handles joined in."""
    filters = filters or ApplicationFilter()
    applicant = aliased(User)
    reviewer = aliased(User)

    query = (
        _filtered_query(db, organization_id, filters)
        .join(applicant, HRApplication.user_id == applicant.id)
        .outerjoin(reviewer, HRApplication.reviewer_id == reviewer.id)
        .add_columns(
            applicant.rsi_handle.label("applicant_rsi_handle"),
            applicant.discord_username.label("applicant_discord_username"),
            reviewer.rsi_handle.label("reviewer_rsi_handle"),
        )
    )
    total = query.count()

    query = query.order_by(HRApplication.created_at.desc(), HRApplication.id.desc()).offset(filters.offset)
    if filters.limit:
        query = query.limit(filters.limit)

    rows = []
    for application, applicant_handle, applicant_discord, reviewer_handle in query.all():
        rows.append({
            "id": application.id,
            "organization_id": application.organization_id,
            "user_id": application.user_id,
            "status": application.status.value,
            "application_data": application.application_data,
            "reviewer_id": application.reviewer_id,
            "created_at": application.created_at,
            "applicant_rsi_handle": applicant_handle,
            "applicant_discord_username": applicant_discord,
            "reviewer_rsi_handle": reviewer_handle,
        })
    return rows, total


def _log_status_change(
    db: Session,
    application: HRApplication,
    status: ApplicationStatus,
    changed_by: int,
    notes: Optional[str] = None,
) -> HRApplicationStatusHistory:
    entry = HRApplicationStatusHistory(
        application=application,
        status=status,
        changed_by=changed_by,
        notes=notes,
    )
    db.add(entry)
    return entry


def get_status_history(db: Session, application_id: int) -> List[HRApplicationStatusHistory]:
    """Status history, most recent first."""
    get_application(db, application_id)
    return db.query(HRApplicationStatusHistory).filter(
        HRApplicationStatusHistory.application_id == application_id
    ).order_by(
        HRApplicationStatusHistory.created_at.desc(),
        HRApplicationStatusHistory.id.desc(),
    ).all()


def get_valid_next_statuses(db: Session, application_id: int) -> List[ApplicationStatus]:
    application = get_application(db, application_id)
    return sorted(get_valid_transitions(EntityType.APPLICATION, application.status), key=lambda s: s.value)


def generate_invite_code(db: Session, application_id: int) -> str:
    """
    Issue an invite code for an approved application.

    Returns the existing code when one was already issued.
    """
    application = get_application(db, application_id)
    if application.status != ApplicationStatus.APPROVED:
        logger.warning(
            f"Invite code requested for non-approved application: "
            f"application_id={application_id}, status={application.status.value}"
        )
        raise HRValidationError(["Invite codes can only be generated for approved applications"])

    if application.invite_code:
        return application.invite_code

    application.invite_code = f"HR-{uuid.uuid4().hex[:8].upper()}"
    db.commit()
    db.refresh(application)

    logger.info(
        f"Invite code generated: application_id={application_id}, "
        f"org_id={application.organization_id}"
    )
    return application.invite_code


def get_application_stats(
    db: Session,
    organization_id: int,
    now: Optional[datetime] = None,
) -> ApplicationStats:
    now = now or utcnow()
    recent_cutoff = now - timedelta(days=config.APPLICATION_RECENT_DAYS)

    counts = db.query(HRApplication.status, func.count(HRApplication.id)).filter(
        HRApplication.organization_id == organization_id
    ).group_by(HRApplication.status).all()

    by_status = {status.value: 0 for status in ApplicationStatus}
    for status, count in counts:
        by_status[status.value] = int(count)
    total = sum(by_status.values())

    recent_count = db.query(func.count(HRApplication.id)).filter(
        HRApplication.organization_id == organization_id,
        HRApplication.created_at >= recent_cutoff,
    ).scalar() or 0

    approved = by_status[ApplicationStatus.APPROVED.value]
    rejected = by_status[ApplicationStatus.REJECTED.value]
    processed = approved + rejected

    return ApplicationStats(
        total=total,
        by_status=by_status,
        recent_count=int(recent_count),
        approval_rate=round(approved / processed * 100, 2) if processed else 0.0,
        rejection_rate=round(rejected / processed * 100, 2) if processed else 0.0,
    )
