"""Activity logging service - append-only user activity rows."""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from soloflow.db.enums import ActivityStatus
from soloflow.db.models import Activity
from soloflow.schemas.project import ActivityCreate

logger = logging.getLogger(__name__)

# Action names written by the app
ACCOUNT_CREATED = "account_created"
PROJECT_CREATED = "project_created"
PROJECT_STATUS_CHANGED = "project_status_changed"
SERVICE_CREATED = "service_created"
SERVICE_STATUS_CHANGED = "service_status_changed"
CONTENT_GENERATED = "content_generated"
ADMIN_DASHBOARD_ACCESS = "admin_dashboard_access"
USER_UPDATED = "user_updated"
USER_DELETED = "user_deleted"
SUBSCRIPTION_CHANGED = "subscription_changed"


def get_user_activity(db: Session, user_id: UUID, limit: int = 10) -> list[Activity]:
    """Newest activity rows for a user, or [] on error."""
    try:
        return (
            db.query(Activity)
            .filter(Activity.user_id == user_id)
            .order_by(Activity.created_at.desc())
            .limit(limit)
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Failed to load activity user=%s", user_id)
        db.rollback()
        return []


def log_activity(db: Session, data: ActivityCreate) -> Activity | None:
    """
    Append an activity row.

    Returns:
        The created row, or None if the insert failed
    """
    activity = Activity(
        user_id=data.user_id,
        action=data.action,
        resource_type=data.resource_type,
        resource_id=data.resource_id,
        details=data.details,
        status=data.status.value,
    )
    try:
        db.add(activity)
        db.commit()
        db.refresh(activity)
    except SQLAlchemyError:
        logger.exception("Failed to log activity action=%s user=%s", data.action, data.user_id)
        db.rollback()
        return None
    return activity


def log_success(
    db: Session,
    user_id: UUID,
    action: str,
    resource_type: str | None = None,
    resource_id: UUID | str | None = None,
    details: dict | None = None,
) -> Activity | None:
    """Shortcut for the common "it worked" row."""
    return log_activity(
        db,
        ActivityCreate(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            details=details,
            status=ActivityStatus.SUCCESS,
        ),
    )
