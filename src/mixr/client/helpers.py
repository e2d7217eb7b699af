"""Request-construction helpers shared by the endpoint clients."""

from __future__ import annotations

import enum
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

from mixr.transport.result import TransportResult


def build_url(base_url: str, path: str) -> str:
    """Join *base_url* and *path* with exactly one slash between them."""
    base = base_url[:-1] if base_url.endswith("/") else base_url
    p = path if path.startswith("/") else f"/{path}"
    return f"{base}{p}"


def build_query(params: Optional[Mapping[str, Any]]) -> str:
    """Encode *params* as a query string, skipping ``None`` values.

    Returns an empty string when nothing is left to send, otherwise the
    encoded string including its leading ``?``.
    """
    if not params:
        return ""
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, enum.Enum):
            value = value.value
        pairs.append((key, str(value)))
    if not pairs:
        return ""
    return "?" + urlencode(pairs)


def create_headers(
    additional_headers: Optional[Mapping[str, str]] = None,
    token: Optional[str] = None,
) -> dict[str, str]:
    """Standard JSON headers, plus ``Authorization`` when *token* is set.

    Caller-supplied headers win over the defaults.
    """
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    headers.update(additional_headers or {})
    return headers


def api_error_message(result: TransportResult, operation: str) -> str:
    """Human-readable message for a failed *operation*.

    Prefers the transport's own error, then a string ``error`` field in the
    response body, then ``Failed to <operation>``.  The status code is
    always appended.
    """
    message = result.error
    if not message and isinstance(result.data, dict):
        body_error = result.data.get("error")
        if isinstance(body_error, str) and body_error:
            message = body_error
    if not message:
        message = f"Failed to {operation}"
    return f"{message} (status: {result.status})"
