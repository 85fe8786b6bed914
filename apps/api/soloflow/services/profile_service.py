"""User profile service - the user_profiles table."""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from soloflow.db.models import UserProfile
from soloflow.schemas.user import ProfileUpdate

logger = logging.getLogger(__name__)


def get_profile(db: Session, user_id: UUID) -> UserProfile | None:
    try:
        return db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
    except SQLAlchemyError:
        logger.exception("Failed to load profile user=%s", user_id)
        db.rollback()
        return None


def get_profiles_by_user_ids(db: Session, user_ids: list[UUID]) -> dict[UUID, UserProfile]:
    """Profiles keyed by user id (for the admin users table)."""
    if not user_ids:
        return {}
    try:
        rows = db.query(UserProfile).filter(UserProfile.user_id.in_(user_ids)).all()
    except SQLAlchemyError:
        logger.exception("Failed to load profiles")
        db.rollback()
        return {}
    return {row.user_id: row for row in rows}


def create_profile(
    db: Session,
    user_id: UUID,
    full_name: str | None = None,
    avatar_url: str | None = None,
) -> UserProfile | None:
    profile = UserProfile(user_id=user_id, full_name=full_name, avatar_url=avatar_url)
    try:
        db.add(profile)
        db.commit()
        db.refresh(profile)
    except SQLAlchemyError:
        logger.exception("Failed to create profile user=%s", user_id)
        db.rollback()
        return None
    return profile


def update_profile(db: Session, user_id: UUID, data: ProfileUpdate) -> UserProfile | None:
    """
    Update only the fields that were provided; creates the row if missing.

    Returns:
        Updated profile or None on error
    """
    profile = get_profile(db, user_id)
    if profile is None:
        profile = create_profile(db, user_id)
        if profile is None:
            return None

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)

    try:
        db.commit()
        db.refresh(profile)
    except SQLAlchemyError:
        logger.exception("Failed to update profile user=%s", user_id)
        db.rollback()
        return None
    return profile
