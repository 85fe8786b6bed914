"""Project, service and activity schemas."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from soloflow.db.enums import (
    ActivityStatus,
    ProjectStatus,
    ServiceStatus,
    ServiceType,
)


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    user_id: UUID


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: ServiceType
    status: str = ServiceStatus.STOPPED.value
    project_id: UUID
    config: dict[str, Any] = Field(default_factory=dict)


class ActivityCreate(BaseModel):
    """Append-only activity row."""

    user_id: UUID
    action: str
    resource_type: str | None = None
    resource_id: str | None = None
    details: dict[str, Any] | None = None
    status: ActivityStatus = ActivityStatus.SUCCESS
