"""Jinja2 page rendering with CSRF cookie handling."""

from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates

from soloflow.core.config import settings
from soloflow.core.csrf import CSRF_FORM_FIELD, generate_csrf_token, get_csrf_cookie, set_csrf_cookie
from soloflow.utils.presentation import format_datetime, humanize_identifier, status_tone

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["humanize"] = humanize_identifier
templates.env.filters["tone"] = status_tone
templates.env.filters["datetime"] = format_datetime
templates.env.globals["app_env"] = settings.ENV
templates.env.globals["csrf_field"] = CSRF_FORM_FIELD


def render(
    request: Request,
    name: str,
    context: dict[str, Any] | None = None,
    status_code: int = 200,
):
    """
    Render a page and (re)issue the CSRF cookie its forms submit against.

    The existing cookie token is reused so several open tabs stay valid.
    """
    token = get_csrf_cookie(request) or generate_csrf_token()
    response = templates.TemplateResponse(
        request,
        name,
        {"csrf_token": token, **(context or {})},
        status_code=status_code,
    )
    set_csrf_cookie(response, token)
    return response


def render_error(
    request: Request,
    message: str,
    status_code: int = 503,
    title: str = "Something went wrong",
):
    """Generic error card used when a page's data cannot be loaded."""
    return render(
        request,
        "error_card.html",
        {"title": title, "message": message},
        status_code=status_code,
    )
