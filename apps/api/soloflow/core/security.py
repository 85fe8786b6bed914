"""Security utilities for JWT session tokens and OAuth state management."""

import hashlib
import json
import secrets
from datetime import datetime, timedelta, timezone

import jwt

from soloflow.core.config import settings
from soloflow.schemas.auth import Identity


# =============================================================================
# Session Token (JWT in cookie)
# =============================================================================

def create_session_token(identity: Identity) -> str:
    """
    Create signed session JWT.

    Always signs with current secret (SESSION_SECRET).
    Token carries the identity asserted by the identity provider.
    """
    payload = {
        "sub": identity.subject,
        "provider": identity.provider.value,
        "email": identity.email,
        "name": identity.name,
        "given_name": identity.first_name,
        "family_name": identity.last_name,
        "picture": identity.picture,
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.SESSION_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.SESSION_SECRET, algorithm="HS256")


def decode_session_token(token: str) -> Identity:
    """
    Decode and verify session JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.session_secrets:
        try:
            payload = jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
        return Identity(
            provider=payload["provider"],
            subject=payload["sub"],
            email=payload["email"],
            name=payload.get("name") or "",
            first_name=payload.get("given_name"),
            last_name=payload.get("family_name"),
            picture=payload.get("picture"),
        )
    raise last_error  # type: ignore


# =============================================================================
# OAuth State/Nonce with User-Agent Binding
# =============================================================================

def generate_oauth_state() -> str:
    """Generate cryptographically random state (32 bytes, URL-safe base64)."""
    return secrets.token_urlsafe(32)


def generate_oauth_nonce() -> str:
    """Generate cryptographically random nonce (32 bytes, URL-safe base64)."""
    return secrets.token_urlsafe(32)


def hash_user_agent(user_agent: str) -> str:
    """Short hash of the user-agent, bound to the OAuth state cookie."""
    return hashlib.sha256(user_agent.encode()).hexdigest()[:16]


def create_oauth_state_payload(state: str, nonce: str, user_agent: str) -> str:
    """
    Create JSON payload for OAuth state cookie.

    Includes:
    - state: CSRF protection
    - nonce: Replay protection (verified in ID token)
    - ua_hash: User-agent binding
    """
    payload = {
        "state": state,
        "nonce": nonce,
        "ua_hash": hash_user_agent(user_agent),
    }
    return json.dumps(payload)


def parse_oauth_state_payload(cookie_value: str) -> dict:
    """
    Parse OAuth state cookie payload.

    Raises:
        ValueError: not JSON, or not a JSON object
    """
    payload = json.loads(cookie_value)
    if not isinstance(payload, dict):
        raise ValueError("OAuth state payload must be an object")
    return payload


def verify_oauth_state(
    stored_payload: dict,
    received_state: str,
    user_agent: str
) -> tuple[bool, str]:
    """
    Verify OAuth callback state matches stored state.

    Returns:
        (success, error_message)
    """
    if stored_payload.get("state") != received_state:
        return False, "State mismatch"

    if stored_payload.get("ua_hash") != hash_user_agent(user_agent):
        return False, "User-agent mismatch"

    return True, ""
