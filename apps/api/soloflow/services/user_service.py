"""User service - identity lookup, first-login upsert and admin user management."""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from soloflow.db.enums import AuthProvider, Role
from soloflow.db.models import User
from soloflow.schemas.auth import Identity
from soloflow.schemas.user import ProfileUpdate, UserAccessUpdate, UserCreate
from soloflow.services import activity_service, profile_service

logger = logging.getLogger(__name__)


# (id, label, category) - rendered grouped by category in the admin UI
AVAILABLE_PERMISSIONS: list[tuple[str, str, str]] = [
    ("dashboard.view", "View dashboard", "Dashboard"),
    ("dashboard.admin", "Administer dashboard", "Dashboard"),
    ("users.view", "View users", "Users"),
    ("users.edit", "Edit users", "Users"),
    ("users.delete", "Delete users", "Users"),
    ("clusters.view", "View clusters", "Clusters"),
    ("clusters.create", "Create clusters", "Clusters"),
    ("clusters.edit", "Edit clusters", "Clusters"),
    ("clusters.delete", "Delete clusters", "Clusters"),
    ("billing.view", "View billing", "Billing"),
    ("billing.manage", "Manage billing", "Billing"),
    ("settings.view", "View settings", "Settings"),
    ("settings.edit", "Edit settings", "Settings"),
]
PERMISSION_IDS = frozenset(p[0] for p in AVAILABLE_PERMISSIONS)

DEFAULT_CLIENT_PERMISSIONS = ["dashboard.view", "billing.view", "settings.view"]


def has_permission(user: User | None, permission: str) -> bool:
    """Admins hold every permission; others need it in their list."""
    if user is None:
        return False
    if user.role == Role.ADMIN.value:
        return True
    return permission in (user.permissions or [])


# =============================================================================
# Lookups
# =============================================================================

def get_user_by_identity_id(
    db: Session,
    provider_subject: str,
    provider: AuthProvider = AuthProvider.GOOGLE,
) -> User | None:
    """Find user by identity provider subject, or None (also on error)."""
    try:
        return db.query(User).filter(
            User.auth_provider == provider.value,
            User.provider_subject == provider_subject,
        ).first()
    except SQLAlchemyError:
        logger.exception("Failed to load user by identity")
        db.rollback()
        return None


def get_user_by_id(db: Session, user_id: UUID) -> User | None:
    """Get user by ID."""
    try:
        return db.query(User).filter(User.id == user_id).first()
    except SQLAlchemyError:
        logger.exception("Failed to load user=%s", user_id)
        db.rollback()
        return None


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get user by email (stored lowercase)."""
    try:
        return db.query(User).filter(User.email == email.lower()).first()
    except SQLAlchemyError:
        logger.exception("Failed to load user by email")
        db.rollback()
        return None


def get_all_users(db: Session, limit: int | None = None) -> list[User]:
    """All users, newest first."""
    try:
        query = db.query(User).order_by(User.created_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()
    except SQLAlchemyError:
        logger.exception("Failed to list users")
        db.rollback()
        return []


# =============================================================================
# Creation
# =============================================================================

def create_user(db: Session, data: UserCreate) -> User | None:
    """
    Insert a user row, idempotent on the identity.

    If a row already exists for (auth_provider, provider_subject) it is
    returned unchanged. A concurrent insert that trips the unique
    constraint is rolled back and the winner re-read.

    Returns:
        The user, or None if it could not be created
    """
    existing = get_user_by_identity_id(db, data.provider_subject, data.auth_provider)
    if existing:
        return existing

    user = User(
        email=data.email.lower(),
        first_name=data.first_name,
        last_name=data.last_name,
        role=data.role.value,
        auth_provider=data.auth_provider.value,
        provider_subject=data.provider_subject,
        permissions=list(data.permissions),
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        winner = get_user_by_identity_id(db, data.provider_subject, data.auth_provider)
        if winner is None:
            logger.exception("User insert conflicted on email, not on identity")
        return winner
    except SQLAlchemyError:
        logger.exception("Failed to create user")
        db.rollback()
        return None
    return user


def ensure_user(
    db: Session,
    identity: Identity,
    admin_emails: list[str] | None = None,
) -> User | None:
    """
    Upsert on first login.

    Looks the identity up; creates the user (plus profile and an
    ``account_created`` activity) when absent. A row that already holds
    the identity's email under another subject is relinked to the new
    identity. Emails on the admin allow-list get the admin role, and an
    existing non-admin on the list is promoted.
    """
    is_listed_admin = identity.email.lower() in (admin_emails or [])

    user = get_user_by_identity_id(db, identity.subject, identity.provider)
    if user is None:
        by_email = get_user_by_email(db, identity.email)
        if by_email is not None:
            user = link_identity(db, by_email, identity)
            if user is None:
                return None
    if user is not None:
        if is_listed_admin and user.role != Role.ADMIN.value:
            user = set_role(db, user, Role.ADMIN)
        return user

    user = create_user(
        db,
        UserCreate(
            email=identity.email,
            provider_subject=identity.subject,
            auth_provider=identity.provider,
            first_name=identity.first_name,
            last_name=identity.last_name,
            role=Role.ADMIN if is_listed_admin else Role.CLIENT,
            permissions=[] if is_listed_admin else DEFAULT_CLIENT_PERMISSIONS,
        ),
    )
    if user is None:
        return None

    if profile_service.get_profile(db, user.id) is None:
        profile_service.create_profile(
            db,
            user.id,
            full_name=identity.name or None,
            avatar_url=identity.picture,
        )
        activity_service.log_success(
            db,
            user_id=user.id,
            action=activity_service.ACCOUNT_CREATED,
            resource_type="user",
            resource_id=user.id,
        )
        logger.info("Created user=%s role=%s", user.id, user.role)
    return user


# =============================================================================
# Admin mutations
# =============================================================================

def link_identity(db: Session, user: User, identity: Identity) -> User | None:
    """Point an existing user row at a new sign-in identity (same email)."""
    user.auth_provider = identity.provider.value
    user.provider_subject = identity.subject
    try:
        db.commit()
        db.refresh(user)
    except SQLAlchemyError:
        logger.exception("Failed to relink identity user=%s", user.id)
        db.rollback()
        return None
    logger.info("Relinked user=%s to a new %s identity", user.id, user.auth_provider)
    return user


def set_role(db: Session, user: User, role: Role) -> User | None:
    """Change a user's role."""
    user.role = role.value
    try:
        db.commit()
        db.refresh(user)
    except SQLAlchemyError:
        logger.exception("Failed to set role user=%s", user.id)
        db.rollback()
        return None
    return user


def update_user_access(db: Session, user_id: UUID, data: UserAccessUpdate) -> User | None:
    """
    Admin edit of role, permissions and display name.

    Unknown permission ids are dropped.

    Returns:
        Updated user or None if not found / on error
    """
    user = get_user_by_id(db, user_id)
    if not user:
        return None

    user.role = data.role.value
    user.permissions = [p for p in dict.fromkeys(data.permissions) if p in PERMISSION_IDS]
    try:
        db.commit()
        db.refresh(user)
    except SQLAlchemyError:
        logger.exception("Failed to update access user=%s", user_id)
        db.rollback()
        return None

    if data.full_name is not None:
        profile_service.update_profile(db, user.id, ProfileUpdate(full_name=data.full_name))
    return user


def delete_user(db: Session, user_id: UUID) -> bool:
    """
    Delete a user (profile and owned rows cascade in the database).

    Returns:
        True if user found and deleted, False otherwise
    """
    user = get_user_by_id(db, user_id)
    if not user:
        return False
    try:
        db.delete(user)
        db.commit()
    except SQLAlchemyError:
        logger.exception("Failed to delete user=%s", user_id)
        db.rollback()
        return False
    return True


def count_users(db: Session) -> int:
    try:
        return db.query(User).count()
    except SQLAlchemyError:
        logger.exception("Failed to count users")
        db.rollback()
        return 0
