"""CSRF utilities for double-submit cookie protection."""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Request, Response

from soloflow.core.config import settings

CSRF_COOKIE_NAME = "soloflow_csrf"
CSRF_HEADER = "X-CSRF-Token"
CSRF_FORM_FIELD = "csrf_token"


def generate_csrf_token() -> str:
    """Generate a new CSRF token."""
    return secrets.token_urlsafe(32)


def get_csrf_cookie(request: Request) -> Optional[str]:
    """Fetch CSRF token from cookie."""
    return request.cookies.get(CSRF_COOKIE_NAME)


def set_csrf_cookie(response: Response, token: Optional[str] = None) -> str:
    """Set CSRF cookie and return the token used."""
    csrf_token = token or generate_csrf_token()
    response.set_cookie(
        key=CSRF_COOKIE_NAME,
        value=csrf_token,
        max_age=settings.SESSION_EXPIRES_HOURS * 3600,
        httponly=False,  # Must be readable by JS for X-CSRF-Token header.
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )
    return csrf_token


async def validate_csrf(request: Request) -> bool:
    """Validate CSRF header (or form field) against cookie."""
    cookie_token = request.cookies.get(CSRF_COOKIE_NAME)
    submitted = request.headers.get(CSRF_HEADER)
    if not submitted and request.headers.get("content-type", "").startswith(
        ("application/x-www-form-urlencoded", "multipart/form-data")
    ):
        form = await request.form()
        submitted = form.get(CSRF_FORM_FIELD)
    if not cookie_token or not submitted:
        return False
    return secrets.compare_digest(cookie_token, str(submitted))
