"""Small HTTP helpers for tests that talk to a server under test."""
from __future__ import annotations

import re
from http import HTTPStatus
from typing import Any, Dict, Mapping

UNKNOWN_STATUS_REASON = "Unknown status code"

_CHARSET_RE = re.compile(
    r"""^.*;\s*charset=["']?([A-Za-z0-9\-_.:()]+)["']?(?:;.*)*$""",
    re.IGNORECASE,
)


def get_reason(status_code: int | str) -> str:
    """Return the standard reason phrase for ``status_code``."""
    try:
        return HTTPStatus(int(status_code)).phrase
    except (TypeError, ValueError):
        return UNKNOWN_STATUS_REASON


def lower_case_headers(headers: Mapping[str, Any] | None) -> Dict[str, Any]:
    """Copy ``headers`` with every header name lower-cased."""
    return {str(name).lower(): value for name, value in (headers or {}).items()}


def get_charset_from_content_type(value: str | None) -> str | None:
    """Return the lower-cased ``charset`` parameter of a Content-Type value.

    >>> get_charset_from_content_type('text/html; charset="UTF-8"')
    'utf-8'
    """
    if not value:
        return None
    match = _CHARSET_RE.match(value)
    return match.group(1).lower() if match else None


__all__ = [
    "UNKNOWN_STATUS_REASON",
    "get_reason",
    "lower_case_headers",
    "get_charset_from_content_type",
]
