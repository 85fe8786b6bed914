"""Content generations and their social posts."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from soloflow.db.enums import PublishStatus
from soloflow.db.models import ContentGeneration, SocialPost
from soloflow.schemas.content import ContentGenerationCreate, SocialPostCreate

logger = logging.getLogger(__name__)


def get_user_generations(db: Session, user_id: UUID, limit: int = 20) -> list[ContentGeneration]:
    try:
        return (
            db.query(ContentGeneration)
            .filter(ContentGeneration.user_id == user_id)
            .order_by(ContentGeneration.created_at.desc())
            .limit(limit)
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Failed to load generations user=%s", user_id)
        db.rollback()
        return []


def get_generation(db: Session, generation_id: UUID, user_id: UUID) -> ContentGeneration | None:
    try:
        return db.query(ContentGeneration).filter(
            ContentGeneration.id == generation_id,
            ContentGeneration.user_id == user_id,
        ).first()
    except SQLAlchemyError:
        logger.exception("Failed to load generation=%s", generation_id)
        db.rollback()
        return None


def create_generation(db: Session, data: ContentGenerationCreate) -> ContentGeneration | None:
    generation = ContentGeneration(
        user_id=data.user_id,
        original_image_url=data.original_image_url,
        extracted_text=data.extracted_text,
        user_comment=data.user_comment,
        generated_content=data.generated_content,
        status=data.status.value,
    )
    try:
        db.add(generation)
        db.commit()
        db.refresh(generation)
    except SQLAlchemyError:
        logger.exception("Failed to create generation user=%s", data.user_id)
        db.rollback()
        return None
    return generation


def get_generation_posts(db: Session, generation_ids: list[UUID]) -> dict[UUID, list[SocialPost]]:
    """Posts grouped by generation id, newest first within each group."""
    if not generation_ids:
        return {}
    try:
        rows = (
            db.query(SocialPost)
            .filter(SocialPost.content_generation_id.in_(generation_ids))
            .order_by(SocialPost.created_at.desc())
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Failed to load social posts")
        db.rollback()
        return {}

    grouped: dict[UUID, list[SocialPost]] = {}
    for post in rows:
        grouped.setdefault(post.content_generation_id, []).append(post)
    return grouped


def create_social_post(db: Session, data: SocialPostCreate) -> SocialPost | None:
    post = SocialPost(
        content_generation_id=data.content_generation_id,
        platform=data.platform.value,
        status=data.status.value,
    )
    try:
        db.add(post)
        db.commit()
        db.refresh(post)
    except SQLAlchemyError:
        logger.exception("Failed to create social post generation=%s", data.content_generation_id)
        db.rollback()
        return None
    return post


def update_social_post_status(
    db: Session,
    post_id: UUID,
    user_id: UUID,
    status: PublishStatus,
    platform_post_id: str | None = None,
    error_message: str | None = None,
) -> SocialPost | None:
    """
    Record a publish outcome.

    ``published_at`` is stamped when the post becomes published. Scoped to
    the owner of the parent generation.
    """
    try:
        post = (
            db.query(SocialPost)
            .join(ContentGeneration, ContentGeneration.id == SocialPost.content_generation_id)
            .filter(SocialPost.id == post_id, ContentGeneration.user_id == user_id)
            .first()
        )
    except SQLAlchemyError:
        logger.exception("Failed to load social post=%s", post_id)
        db.rollback()
        return None
    if post is None:
        return None

    post.status = status.value
    if platform_post_id is not None:
        post.platform_post_id = platform_post_id
    post.error_message = error_message if status == PublishStatus.FAILED else None
    if status == PublishStatus.PUBLISHED and post.published_at is None:
        post.published_at = datetime.now(timezone.utc)

    try:
        db.commit()
        db.refresh(post)
    except SQLAlchemyError:
        logger.exception("Failed to update social post=%s", post_id)
        db.rollback()
        return None
    return post
