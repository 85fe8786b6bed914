"""Authentication router with Google OAuth and session management."""

import logging
from functools import partial
from urllib.parse import urlencode

import anyio
import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from google.auth.exceptions import GoogleAuthError
from sqlalchemy.orm import Session

from soloflow.core.config import settings
from soloflow.core.deps import COOKIE_NAME, DEFAULT_PATH, LOGIN_PATH, get_db, require_csrf
from soloflow.core.rate_limit import limiter
from soloflow.core.security import (
    create_oauth_state_payload,
    create_session_token,
    generate_oauth_nonce,
    generate_oauth_state,
    parse_oauth_state_payload,
    verify_oauth_state,
)
from soloflow.services import user_service
from soloflow.services.google_oauth import (
    GOOGLE_AUTH_URL,
    exchange_code_for_tokens,
    validate_email_domain,
    verify_id_token,
)

router = APIRouter()
logger = logging.getLogger(__name__)

OAUTH_STATE_COOKIE = "oauth_state"
OAUTH_STATE_MAX_AGE = 300  # 5 minutes


# =============================================================================
# OAuth Endpoints
# =============================================================================

@router.get("/google/login")
@limiter.limit(f"{settings.RATE_LIMIT_AUTH}/minute")
def google_login(request: Request):
    """
    Initiate Google OAuth flow.

    1. Generates cryptographic state and nonce
    2. Stores them in a short-lived cookie bound to the user agent
    3. Redirects to Google's authorization endpoint
    """
    state = generate_oauth_state()
    nonce = generate_oauth_nonce()
    user_agent = request.headers.get("user-agent", "")

    state_payload = create_oauth_state_payload(state, nonce, user_agent)

    params = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": settings.GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "scope": "openid email profile",
        "state": state,
        "nonce": nonce,
    }
    response = RedirectResponse(url=f"{GOOGLE_AUTH_URL}?{urlencode(params)}", status_code=302)

    # Path=/auth matches the router mount
    response.set_cookie(
        key=OAUTH_STATE_COOKIE,
        value=state_payload,
        max_age=OAUTH_STATE_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/auth",
    )
    return response


@router.get("/google/callback")
async def google_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
):
    """
    Handle Google OAuth callback.

    Flow:
    1. Validate state cookie (CSRF + user-agent binding)
    2. Exchange code for tokens
    3. Verify ID token (signature, claims, nonce)
    4. Validate email domain if restricted
    5. Create the user on first login
    6. Set session cookie and redirect
    """
    # Every failure path also clears the state cookie
    error_response = RedirectResponse(url=_get_error_redirect("auth_failed"), status_code=302)
    error_response.delete_cookie(OAUTH_STATE_COOKIE, path="/auth")

    if error:
        error_response.headers["location"] = _get_error_redirect(f"google_{error}")
        return error_response

    if not code or not state:
        error_response.headers["location"] = _get_error_redirect("missing_params")
        return error_response

    state_cookie = request.cookies.get(OAUTH_STATE_COOKIE)
    if not state_cookie:
        error_response.headers["location"] = _get_error_redirect("state_expired")
        return error_response

    try:
        stored_payload = parse_oauth_state_payload(state_cookie)
    except ValueError:
        error_response.headers["location"] = _get_error_redirect("invalid_state")
        return error_response

    user_agent = request.headers.get("user-agent", "")
    valid, reason = verify_oauth_state(stored_payload, state, user_agent)
    if not valid:
        logger.warning("OAuth state rejected: %s", reason)
        error_response.headers["location"] = _get_error_redirect("state_mismatch")
        return error_response

    try:
        tokens = await exchange_code_for_tokens(code)
    except (httpx.HTTPError, ValueError):
        logger.exception("Google token exchange failed")
        error_response.headers["location"] = _get_error_redirect("token_exchange_failed")
        return error_response

    try:
        # google-auth fetches signing certs with a blocking HTTP call
        identity = await anyio.to_thread.run_sync(
            verify_id_token, tokens["id_token"], stored_payload.get("nonce")
        )
    except (GoogleAuthError, KeyError, ValueError) as e:
        logger.warning("Google ID token rejected: %s", e)
        error_response.headers["location"] = _get_error_redirect("token_invalid")
        return error_response

    try:
        validate_email_domain(identity.email)
    except ValueError:
        error_response.headers["location"] = _get_error_redirect("domain_not_allowed")
        return error_response

    user = await anyio.to_thread.run_sync(
        partial(user_service.ensure_user, db, identity, admin_emails=settings.admin_emails_list)
    )
    if user is None:
        error_response.headers["location"] = _get_error_redirect("account_unavailable")
        return error_response

    logger.info("Signed in user=%s", user.id)
    success_response = RedirectResponse(url=DEFAULT_PATH, status_code=302)
    success_response.delete_cookie(OAUTH_STATE_COOKIE, path="/auth")
    set_session_cookie(success_response, create_session_token(identity))
    return success_response


# =============================================================================
# Session Endpoints
# =============================================================================

@router.post("/logout", dependencies=[Depends(require_csrf)])
def logout():
    """Clear the session cookie and return to the login page."""
    response = RedirectResponse(url=LOGIN_PATH, status_code=303)
    response.delete_cookie(COOKIE_NAME, path="/")
    return response


# =============================================================================
# Helper Functions
# =============================================================================

def set_session_cookie(response, token: str) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRES_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )


def _get_error_redirect(error_code: str) -> str:
    """Safe error redirect URL - fixed path with error code."""
    return f"{LOGIN_PATH}?{urlencode({'error': error_code})}"
