"""FastAPI dependencies for sessions, role checks and database access."""

from typing import Generator

import jwt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session, sessionmaker

from soloflow.core.config import settings
from soloflow.core.csrf import validate_csrf
from soloflow.core.security import decode_session_token
from soloflow.db.enums import Role
from soloflow.db.session import SessionLocal
from soloflow.schemas.auth import Identity


# Cookie names and redirect targets
COOKIE_NAME = "soloflow_session"
LOGIN_PATH = "/login"
CLIENT_DASHBOARD_PATH = "/dashboard/client"
DEFAULT_PATH = "/dashboard"


class RedirectRequired(Exception):
    """Raised by page dependencies when the request must be redirected."""

    def __init__(self, location: str):
        super().__init__(location)
        self.location = location


class LoginRequired(RedirectRequired):
    """No valid session; send the browser to the login page."""

    def __init__(self):
        super().__init__(LOGIN_PATH)


class UserUnavailable(Exception):
    """The signed-in identity could not be resolved to a user row."""


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """Session factory for handlers that fan out independent reads."""
    return SessionLocal


def get_optional_identity(request: Request) -> Identity | None:
    """Identity from the session cookie, or None when absent/invalid."""
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        return None
    try:
        return decode_session_token(token)
    except (jwt.InvalidTokenError, KeyError, ValueError):
        return None


def get_identity(request: Request) -> Identity:
    """
    Identity from the session cookie.

    Raises:
        LoginRequired: no cookie, or the token is invalid/expired
    """
    identity = get_optional_identity(request)
    if identity is None:
        raise LoginRequired()
    return identity


def get_current_user(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """
    Resolve the session identity to a user row, creating it on first login.

    Raises:
        LoginRequired: no valid session
        UserUnavailable: the row could not be read or created
    """
    # Import here to avoid circular imports
    from soloflow.services import user_service

    user = user_service.ensure_user(db, identity, admin_emails=settings.admin_emails_list)
    if user is None:
        raise UserUnavailable()
    return user


def require_admin(user=Depends(get_current_user)):
    """Admin-only pages: anyone else goes back to the client dashboard."""
    if user.role != Role.ADMIN.value:
        raise RedirectRequired(CLIENT_DASHBOARD_PATH)
    return user


def require_permission(permission: str):
    """
    Dependency factory for permission-gated pages.

    Usage:
        @router.get("/billing")
        def billing(user=Depends(require_permission("billing.view"))):
    """
    def dependency(user=Depends(get_current_user)):
        from soloflow.services.user_service import has_permission

        if not has_permission(user, permission):
            raise RedirectRequired(DEFAULT_PATH)
        return user
    return dependency


async def require_csrf(request: Request) -> None:
    """
    Verify the double-submit CSRF token on form posts.

    Raises:
        HTTPException 403: Missing or invalid CSRF token
    """
    if not await validate_csrf(request):
        raise HTTPException(status_code=403, detail="Invalid CSRF token")
