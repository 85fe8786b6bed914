"""Content generation and social post schemas."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel

from soloflow.db.enums import GenerationStatus, PublishStatus, SocialPlatform


class ContentGenerationCreate(BaseModel):
    user_id: UUID
    original_image_url: str
    extracted_text: str | None = None
    user_comment: str | None = None
    generated_content: dict[str, Any]
    status: GenerationStatus = GenerationStatus.COMPLETED


class SocialPostCreate(BaseModel):
    content_generation_id: UUID
    platform: SocialPlatform
    status: PublishStatus = PublishStatus.PENDING
