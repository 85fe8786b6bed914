"""Presentation helpers for turning stored values into labels and badge styles.

Statuses, roles and plan names are stored as lowercase identifiers
(``running``, ``project_created``); templates render them through these
filters.
"""

from __future__ import annotations

import re
from datetime import datetime


_SEPARATORS_RE = re.compile(r"[_.-]+")
_WHITESPACE_RE = re.compile(r"\s+")
_SMALL_WORDS = {"a", "an", "and", "as", "at", "by", "for", "in", "of", "on", "or", "the", "to"}

_POSITIVE = {"running", "active", "success", "completed", "published"}
_NEGATIVE = {"error", "failed"}
_WAITING = {"pending", "stopped", "inactive"}


def humanize_identifier(value: str | None) -> str:
    """Convert identifiers (e.g. snake_case) into human-friendly text.

    Examples:
        "project_created" -> "Project Created"
        "dashboard.view" -> "Dashboard View"
        "sign-in-to-continue" -> "Sign in to Continue"

    Text that already contains uppercase letters is returned with only
    separators normalised.
    """
    if value is None:
        return ""

    text = str(value).strip()
    if not text:
        return ""

    text = _SEPARATORS_RE.sub(" ", text)
    text = _WHITESPACE_RE.sub(" ", text).strip()

    if any(ch.isupper() for ch in text):
        return text

    words = text.split(" ")
    last_idx = len(words) - 1
    titled: list[str] = []
    for i, word in enumerate(words):
        if i not in (0, last_idx) and word in _SMALL_WORDS:
            titled.append(word)
        else:
            titled.append(word.capitalize())

    return " ".join(titled)


def status_tone(status: str | None) -> str:
    """Badge tone for a status: green, red, yellow or gray."""
    value = (status or "").lower()
    if value in _POSITIVE:
        return "green"
    if value in _NEGATIVE:
        return "red"
    if value in _WAITING:
        return "yellow"
    return "gray"


def format_datetime(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M")
