"""Enum definitions for application constants."""

from enum import Enum


class Role(str, Enum):
    """
    Coarse user roles.

    - ADMIN: full access, including the admin dashboard and user management
    - USER: regular member
    - CLIENT: default role for self-registered customers
    """

    ADMIN = "admin"
    USER = "user"
    CLIENT = "client"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class AuthProvider(str, Enum):
    """Supported identity providers."""

    GOOGLE = "google"


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class ServiceType(str, Enum):
    WEB = "web"
    API = "api"
    DATABASE = "database"
    STORAGE = "storage"


class ServiceStatus(str, Enum):
    """Known service statuses. The column itself is free-form."""

    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"


class ActivityStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    PENDING = "pending"


class GenerationStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class SocialPlatform(str, Enum):
    LINKEDIN = "linkedin"
    TWITTER = "twitter"
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"


class PublishStatus(str, Enum):
    PENDING = "pending"
    PUBLISHED = "published"
    FAILED = "failed"


class SubscriptionPlan(str, Enum):
    FREE = "free"
    PRO = "pro"
    BUSINESS = "business"


# Defaults
DEFAULT_ROLE = Role.CLIENT
DEFAULT_PROJECT_STATUS = ProjectStatus.ACTIVE
DEFAULT_SERVICE_STATUS = ServiceStatus.STOPPED
DEFAULT_SUBSCRIPTION_PLAN = SubscriptionPlan.FREE
