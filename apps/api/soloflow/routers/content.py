"""Content generations and their social posts."""

import json
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from soloflow.core.deps import get_current_user, get_db, require_csrf
from soloflow.db.enums import PublishStatus, SocialPlatform
from soloflow.schemas.content import ContentGenerationCreate, SocialPostCreate
from soloflow.services import activity_service, content_service
from soloflow.templating import render, render_error

router = APIRouter(prefix="/dashboard/content", tags=["content"])
logger = logging.getLogger(__name__)

CONTENT_PATH = "/dashboard/content"


def _parse_generated_content(raw: str) -> dict:
    """
    Parse the submitted JSON; plain text is stored as ``{"text": ...}``.

    Raises:
        ValueError: JSON that is neither an object nor a string
    """
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return {"text": raw}
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        return {"text": value}
    raise ValueError("generated_content must be a JSON object")


@router.get("")
def content_page(
    request: Request,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    generations = content_service.get_user_generations(db, user.id)
    posts = content_service.get_generation_posts(db, [g.id for g in generations])
    return render(
        request,
        "content.html",
        {
            "user": user,
            "generations": generations,
            "posts": posts,
            "platforms": list(SocialPlatform),
            "publish_statuses": list(PublishStatus),
        },
    )


@router.post("", dependencies=[Depends(require_csrf)])
def create_generation(
    request: Request,
    original_image_url: str = Form(..., min_length=1, max_length=500),
    generated_content: str = Form(..., min_length=1),
    extracted_text: str | None = Form(None),
    user_comment: str | None = Form(None),
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        content = _parse_generated_content(generated_content)
    except ValueError as e:
        return render_error(request, str(e), status_code=400, title="Invalid content")

    generation = content_service.create_generation(
        db,
        ContentGenerationCreate(
            user_id=user.id,
            original_image_url=original_image_url.strip(),
            extracted_text=extracted_text or None,
            user_comment=user_comment or None,
            generated_content=content,
        ),
    )
    if generation is None:
        return render_error(request, "The content could not be saved. Please try again later.")

    activity_service.log_success(
        db,
        user_id=user.id,
        action=activity_service.CONTENT_GENERATED,
        resource_type="content_generation",
        resource_id=generation.id,
    )
    return RedirectResponse(url=CONTENT_PATH, status_code=303)


@router.post("/{generation_id}/posts", dependencies=[Depends(require_csrf)])
def queue_social_post(
    request: Request,
    generation_id: UUID,
    platform: SocialPlatform = Form(...),
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    generation = content_service.get_generation(db, generation_id, user.id)
    if generation is None:
        raise HTTPException(status_code=404, detail="Content not found")

    post = content_service.create_social_post(
        db, SocialPostCreate(content_generation_id=generation.id, platform=platform)
    )
    if post is None:
        return render_error(request, "The post could not be queued. Please try again later.")
    return RedirectResponse(url=CONTENT_PATH, status_code=303)


@router.post("/posts/{post_id}/status", dependencies=[Depends(require_csrf)])
def update_post_status(
    post_id: UUID,
    status: PublishStatus = Form(...),
    platform_post_id: str | None = Form(None),
    error_message: str | None = Form(None),
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    post = content_service.update_social_post_status(
        db,
        post_id,
        user.id,
        status,
        platform_post_id=platform_post_id or None,
        error_message=error_message or None,
    )
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return RedirectResponse(url=CONTENT_PATH, status_code=303)
