"""Tests for content generations and social posts."""

import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from soloflow.db.enums import PublishStatus, SocialPlatform
from soloflow.db.models import Activity, ContentGeneration, SocialPost
from soloflow.schemas.content import ContentGenerationCreate, SocialPostCreate
from soloflow.services import content_service


def _generation(db: Session, user_id) -> ContentGeneration:
    return content_service.create_generation(
        db,
        ContentGenerationCreate(
            user_id=user_id,
            original_image_url="https://example.com/shot.png",
            generated_content={"caption": "Hello"},
        ),
    )


@pytest.mark.asyncio
async def test_create_generation_from_json(authed_client: AsyncClient, db: Session, test_user):
    response = await authed_client.post(
        "/dashboard/content",
        data={
            "original_image_url": "https://example.com/shot.png",
            "generated_content": '{"caption": "Ship it", "hashtags": ["#solo"]}',
            "user_comment": "launch day",
        },
    )

    assert response.status_code == 303
    generation = db.query(ContentGeneration).filter(ContentGeneration.user_id == test_user.id).one()
    assert generation.generated_content == {"caption": "Ship it", "hashtags": ["#solo"]}
    assert generation.status == "completed"
    assert db.query(Activity).filter(Activity.action == "content_generated").count() == 1


@pytest.mark.asyncio
async def test_plain_text_content_is_wrapped(authed_client: AsyncClient, db: Session, test_user):
    response = await authed_client.post(
        "/dashboard/content",
        data={"original_image_url": "https://example.com/a.png", "generated_content": "just words"},
    )

    assert response.status_code == 303
    generation = db.query(ContentGeneration).one()
    assert generation.generated_content == {"text": "just words"}


@pytest.mark.asyncio
async def test_json_array_content_is_rejected(authed_client: AsyncClient, db: Session):
    response = await authed_client.post(
        "/dashboard/content",
        data={"original_image_url": "https://example.com/a.png", "generated_content": "[1, 2]"},
    )

    assert response.status_code == 400
    assert db.query(ContentGeneration).count() == 0


@pytest.mark.asyncio
async def test_content_page_lists_generations_with_posts(authed_client: AsyncClient, db: Session, test_user):
    generation = _generation(db, test_user.id)
    content_service.create_social_post(
        db, SocialPostCreate(content_generation_id=generation.id, platform=SocialPlatform.LINKEDIN)
    )

    response = await authed_client.get("/dashboard/content")

    assert response.status_code == 200
    assert "https://example.com/shot.png" in response.text
    assert "Linkedin" in response.text


@pytest.mark.asyncio
async def test_queue_and_publish_post(authed_client: AsyncClient, db: Session, test_user):
    generation = _generation(db, test_user.id)

    response = await authed_client.post(
        f"/dashboard/content/{generation.id}/posts", data={"platform": "twitter"}
    )
    assert response.status_code == 303
    post = db.query(SocialPost).one()
    assert post.status == "pending"
    assert post.published_at is None

    response = await authed_client.post(
        f"/dashboard/content/posts/{post.id}/status",
        data={"status": "published", "platform_post_id": "tw-42"},
    )
    assert response.status_code == 303
    db.expire_all()
    post = db.get(SocialPost, post.id)
    assert post.status == "published"
    assert post.platform_post_id == "tw-42"
    assert post.published_at is not None


@pytest.mark.asyncio
async def test_posts_are_scoped_to_owner(authed_client: AsyncClient, db: Session, test_admin):
    generation = _generation(db, test_admin.id)

    response = await authed_client.post(
        f"/dashboard/content/{generation.id}/posts", data={"platform": "twitter"}
    )
    assert response.status_code == 404


def test_failed_post_keeps_error_message(db: Session, test_user):
    generation = _generation(db, test_user.id)
    post = content_service.create_social_post(
        db, SocialPostCreate(content_generation_id=generation.id, platform=SocialPlatform.FACEBOOK)
    )

    updated = content_service.update_social_post_status(
        db, post.id, test_user.id, PublishStatus.FAILED, error_message="token expired"
    )

    assert updated.status == "failed"
    assert updated.error_message == "token expired"
    assert updated.published_at is None


def test_generation_posts_grouped(db: Session, test_user):
    first = _generation(db, test_user.id)
    second = _generation(db, test_user.id)
    for platform in (SocialPlatform.LINKEDIN, SocialPlatform.TWITTER):
        content_service.create_social_post(db, SocialPostCreate(content_generation_id=first.id, platform=platform))

    grouped = content_service.get_generation_posts(db, [first.id, second.id])

    assert len(grouped[first.id]) == 2
    assert second.id not in grouped
    assert content_service.get_generation_posts(db, []) == {}
