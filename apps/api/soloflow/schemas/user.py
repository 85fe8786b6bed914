"""User-related Pydantic schemas."""

from pydantic import BaseModel, Field

from soloflow.db.enums import AuthProvider, Role


class UserCreate(BaseModel):
    """Fields for inserting a user row."""

    email: str
    provider_subject: str
    auth_provider: AuthProvider = AuthProvider.GOOGLE
    first_name: str | None = None
    last_name: str | None = None
    role: Role = Role.CLIENT
    permissions: list[str] = Field(default_factory=list)


class UserAccessUpdate(BaseModel):
    """Admin user-management edit: role, permissions and display name."""

    role: Role
    permissions: list[str] = Field(default_factory=list)
    full_name: str | None = None


class ProfileUpdate(BaseModel):
    """Self-service profile edit."""

    full_name: str | None = Field(default=None, max_length=255)
    avatar_url: str | None = Field(default=None, max_length=500)
    bio: str | None = None
