"""Structured logging helpers (PII-safe)."""

import logging
from typing import Any

from soloflow.core.config import settings


def configure_logging() -> None:
    """Root logging setup shared by the web app and the CLI."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_log_context(
    *,
    user_id: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
    status_code: int | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict (never emails or names)."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = user_id
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    if status_code is not None:
        context["status_code"] = status_code
    return context
