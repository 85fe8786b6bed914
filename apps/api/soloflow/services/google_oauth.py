"""Google OAuth and OIDC token verification service."""

import httpx
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from soloflow.core.config import settings
from soloflow.db.enums import AuthProvider
from soloflow.schemas.auth import Identity

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"


async def exchange_code_for_tokens(code: str) -> dict:
    """
    Exchange authorization code for tokens.

    Raises:
        httpx.HTTPStatusError: If token exchange fails
    """
    async with httpx.AsyncClient() as client:
        response = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": settings.GOOGLE_CLIENT_ID,
                "client_secret": settings.GOOGLE_CLIENT_SECRET,
                "redirect_uri": settings.GOOGLE_REDIRECT_URI,
                "grant_type": "authorization_code",
            },
        )
        response.raise_for_status()
        return response.json()


def verify_id_token(token: str, expected_nonce: str) -> Identity:
    """
    Verify Google ID token using google-auth library.

    google-auth fetches the signing keys and validates signature,
    audience and expiry. We additionally require a verified email and
    a matching nonce.

    Raises:
        ValueError: If any validation fails
    """
    idinfo = id_token.verify_oauth2_token(
        token, google_requests.Request(), settings.GOOGLE_CLIENT_ID
    )

    if idinfo.get("iss") not in ["accounts.google.com", "https://accounts.google.com"]:
        raise ValueError("Invalid issuer")

    if not idinfo.get("email_verified"):
        raise ValueError("Email not verified by Google")

    if idinfo.get("nonce") != expected_nonce:
        raise ValueError("Nonce mismatch")

    return Identity(
        provider=AuthProvider.GOOGLE,
        subject=idinfo["sub"],
        email=idinfo["email"].lower(),
        name=idinfo.get("name", ""),
        first_name=idinfo.get("given_name"),
        last_name=idinfo.get("family_name"),
        picture=idinfo.get("picture"),
    )


def validate_email_domain(email: str) -> None:
    """
    Validate email is from an allowed domain (no-op when unrestricted).

    Raises:
        ValueError: If domain not in allowlist
    """
    allowed = settings.allowed_domains_list
    if not allowed:
        return

    domain = email.split("@")[1].lower()
    if domain not in allowed:
        raise ValueError(
            f"Email domain '{domain}' not allowed. Allowed: {', '.join(allowed)}"
        )
