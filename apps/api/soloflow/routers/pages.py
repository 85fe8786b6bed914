"""Public pages: landing and login."""

from fastapi import APIRouter, Depends, Request

from soloflow.core.deps import get_optional_identity
from soloflow.schemas.auth import Identity
from soloflow.templating import render

router = APIRouter()

LOGIN_ERRORS = {
    "auth_failed": "Sign-in failed. Please try again.",
    "missing_params": "The sign-in response was incomplete.",
    "state_expired": "Your sign-in attempt expired. Please start again.",
    "invalid_state": "Your sign-in attempt could not be verified.",
    "state_mismatch": "Your sign-in attempt could not be verified.",
    "token_exchange_failed": "Google did not accept the sign-in. Please try again.",
    "token_invalid": "Google returned an invalid sign-in token.",
    "domain_not_allowed": "This email domain is not allowed to sign in.",
    "account_unavailable": "Your account could not be loaded. Please try again later.",
}


@router.get("/")
def landing(request: Request, identity: Identity | None = Depends(get_optional_identity)):
    return render(request, "landing.html", {"identity": identity})


@router.get("/login")
def login_page(
    request: Request,
    error: str | None = None,
    identity: Identity | None = Depends(get_optional_identity),
):
    """Login page with a single "Continue with Google" action."""
    message = None
    if error:
        if error.startswith("google_"):
            message = "Google sign-in was cancelled or denied."
        else:
            message = LOGIN_ERRORS.get(error, LOGIN_ERRORS["auth_failed"])
    return render(
        request,
        "login.html",
        {"identity": identity, "error_code": error, "error_message": message},
    )
