"""SQLAlchemy ORM models for users, projects, services, activity and content."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from soloflow.db.base import Base, JSONType
from soloflow.db.enums import (
    DEFAULT_PROJECT_STATUS,
    DEFAULT_ROLE,
    DEFAULT_SERVICE_STATUS,
    DEFAULT_SUBSCRIPTION_PLAN,
    ActivityStatus,
    AuthProvider,
    GenerationStatus,
    PublishStatus,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Users
# =============================================================================

class User(Base):
    """
    Application user.

    Created on first login from the identity asserted by the identity
    provider. No passwords stored. Role and permissions change only through
    admin actions (or the admin email allow-list at login).
    """
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("auth_provider", "provider_subject", name="uq_users_identity"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(
        String(20),
        default=DEFAULT_ROLE.value,
        server_default=text(f"'{DEFAULT_ROLE.value}'"),
        nullable=False,
    )
    auth_provider: Mapped[str] = mapped_column(
        String(20),
        default=AuthProvider.GOOGLE.value,
        server_default=text(f"'{AuthProvider.GOOGLE.value}'"),
        nullable=False,
    )
    provider_subject: Mapped[str] = mapped_column(String(255), nullable=False)
    permissions: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    # Billing
    subscription_plan: Mapped[str] = mapped_column(
        String(50),
        default=DEFAULT_SUBSCRIPTION_PLAN.value,
        server_default=text(f"'{DEFAULT_SUBSCRIPTION_PLAN.value}'"),
        nullable=False,
    )
    subscription_expires_at: Mapped[datetime | None] = mapped_column(nullable=True)
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False
    )

    profile: Mapped["UserProfile | None"] = relationship(
        back_populates="user", cascade="all, delete-orphan", uselist=False
    )

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.email


class UserProfile(Base):
    """Presentation details for a user (name shown in the UI, avatar, bio)."""
    __tablename__ = "user_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False
    )

    user: Mapped[User] = relationship(back_populates="profile")


# =============================================================================
# Projects & Services
# =============================================================================

class Project(Base):
    """A user-owned project. Status changes are not validated."""
    __tablename__ = "projects"
    __table_args__ = (
        Index("idx_projects_user_created", "user_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default=DEFAULT_PROJECT_STATUS.value,
        server_default=text(f"'{DEFAULT_PROJECT_STATUS.value}'"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False
    )


class Service(Base):
    """A deployable service inside a project (web, api, database, storage)."""
    __tablename__ = "services"
    __table_args__ = (
        Index("idx_services_project_created", "project_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    # Free-form: running / stopped / error by convention
    status: Mapped[str] = mapped_column(
        String(50),
        default=DEFAULT_SERVICE_STATUS.value,
        server_default=text(f"'{DEFAULT_SERVICE_STATUS.value}'"),
        nullable=False,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    config: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False
    )


# =============================================================================
# Activity
# =============================================================================

class Activity(Base):
    """Append-only user activity log row."""
    __tablename__ = "activities"
    __table_args__ = (
        Index("idx_activities_user_created", "user_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    resource_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    resource_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    details: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default=ActivityStatus.SUCCESS.value,
        server_default=text(f"'{ActivityStatus.SUCCESS.value}'"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        default=_utcnow, server_default=func.now(), nullable=False
    )


# =============================================================================
# Content automation
# =============================================================================

class ContentGeneration(Base):
    """Generated content for one uploaded image + comment."""
    __tablename__ = "content_generations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    original_image_url: Mapped[str] = mapped_column(String(500), nullable=False)
    extracted_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    generated_content: Mapped[dict] = mapped_column(JSONType, nullable=False)
    status: Mapped[str] = mapped_column(
        String(50),
        default=GenerationStatus.COMPLETED.value,
        server_default=text(f"'{GenerationStatus.COMPLETED.value}'"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False
    )


class SocialPost(Base):
    """One publication of a content generation on a social platform."""
    __tablename__ = "social_posts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    content_generation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("content_generations.id", ondelete="CASCADE"), nullable=False
    )
    platform: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(50), default=PublishStatus.PENDING.value, nullable=False
    )
    platform_post_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=_utcnow, server_default=func.now(), nullable=False
    )
