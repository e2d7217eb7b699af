"""Uniform transport result -- what every transport returns instead of raising.

:class:`TransportResult` flattens an :class:`httpx.Response` (or a failed
attempt to get one) into a plain record.  The endpoint clients in
:mod:`mixr.client` only ever look at this record, which keeps them free of
httpx types and lets tests fake the transport with a few lines.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TransportResult(BaseModel):
    """Outcome of a single HTTP call.

    Attributes:
        ok: ``True`` iff the status is in the 2xx range.
        status: HTTP status code; ``500`` when the request never got a
            response.
        status_text: Reason phrase, e.g. ``"Not Found"``.
        headers: Response headers (lower-cased names).
        data: Parsed JSON body, the raw text for non-JSON bodies, or
            ``None`` for an empty body.
        error: Transport-level failure message.  Only set when no HTTP
            response was received.
        timestamp: UTC ISO-8601 time the result was produced.
    """

    ok: bool
    status: int
    status_text: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    data: Any = None
    error: Optional[str] = None
    timestamp: str = Field(default_factory=_utc_now)

    @classmethod
    def from_response(cls, response: httpx.Response) -> TransportResult:
        """Build a result from a completed :class:`httpx.Response`."""
        return cls(
            ok=response.is_success,
            status=response.status_code,
            status_text=response.reason_phrase or "",
            headers={k.lower(): v for k, v in response.headers.items()},
            data=extract_response_data(response),
        )

    @classmethod
    def failure(cls, message: str) -> TransportResult:
        """Build the result reported when the request itself failed."""
        return cls(
            ok=False,
            status=500,
            status_text="Internal Server Error",
            error=message or "Network request failed",
        )


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Attempts to parse the body as JSON first.  If that fails (e.g. an HTML
    error page from a proxy), returns the raw text.  Returns ``None`` for
    responses with no content.
    """
    if not response.content:
        return None

    try:
        return response.json()
    except ValueError:
        pass

    return response.text
