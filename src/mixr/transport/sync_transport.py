"""Synchronous transport backed by :class:`httpx.Client`.

:class:`HttpxTransport` performs exactly one HTTP call per
:meth:`~HttpxTransport.request` and reports the outcome as a
:class:`~mixr.transport.result.TransportResult`.  It never raises for an
HTTP error status, and exceptions raised while sending (DNS failure,
connection refused, timeout, invalid URL) are caught and converted into a
failure result with ``status=500``.

See Also:
    :class:`~mixr.transport.async_transport.AsyncHttpxTransport` for the
    non-blocking equivalent.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

import httpx

from mixr.transport.result import TransportResult

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Request cancelled"


def build_request_kwargs(
    method: str,
    url: str,
    headers: Optional[dict[str, str]],
    body: Any,
) -> dict[str, Any]:
    """Translate transport arguments into :meth:`httpx.Client.request` kwargs.

    Strings and bytes are sent verbatim; anything else is JSON-encoded.
    ``None`` sends no body at all.
    """
    kwargs: dict[str, Any] = {
        "method": method.upper(),
        "url": url,
        "headers": dict(headers or {}),
    }
    if body is None:
        return kwargs
    if isinstance(body, (str, bytes)):
        kwargs["content"] = body
    else:
        kwargs["json"] = body
    return kwargs


class HttpxTransport:
    """Blocking transport for MIXR API calls.

    Can be used directly or as a context manager.  When no ``client`` is
    injected, an :class:`httpx.Client` is created on first use and closed
    by :meth:`close`; an injected client is left open for its owner.

    Args:
        timeout: Request timeout in seconds.
        verify_ssl: Verify TLS certificates.
        client: Optional pre-built client (tests pass one wired to
            :class:`httpx.MockTransport`).

    Example::

        with HttpxTransport(timeout=5) as transport:
            result = transport.get("http://localhost:3000/health")
            if result.ok:
                print(result.data)
    """

    def __init__(
        self,
        timeout: float = 30,
        verify_ssl: bool = True,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._client = client
        self._owns_client = client is None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpxTransport:
        self._ensure_client()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[dict[str, str]] = None,
        body: Any = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> TransportResult:
        """Perform one HTTP call and report the outcome.

        Args:
            url: Absolute request URL, query string included.
            method: HTTP verb.
            headers: Request headers.
            body: Request body; see :func:`build_request_kwargs`.
            cancel_event: When already set, the request is not sent and a
                cancelled failure result is returned.

        Returns:
            A :class:`TransportResult`; never raises for HTTP statuses or
            network failures.
        """
        if cancel_event is not None and cancel_event.is_set():
            return TransportResult.failure(CANCELLED_MESSAGE)

        kwargs = build_request_kwargs(method, url, headers, body)
        try:
            response = self._ensure_client().request(**kwargs)
        except Exception as exc:
            logger.debug("Transport failure for %s %s: %s", kwargs["method"], url, exc)
            return TransportResult.failure(str(exc))

        return TransportResult.from_response(response)

    def get(self, url: str, **kwargs: Any) -> TransportResult:
        """Send a GET request."""
        return self.request(url, method="GET", **kwargs)

    def post(self, url: str, body: Any = None, **kwargs: Any) -> TransportResult:
        """Send a POST request with an optional body."""
        return self.request(url, method="POST", body=body, **kwargs)

    def put(self, url: str, body: Any = None, **kwargs: Any) -> TransportResult:
        """Send a PUT request with an optional body."""
        return self.request(url, method="PUT", body=body, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> TransportResult:
        """Send a DELETE request."""
        return self.request(url, method="DELETE", **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._timeout,
                verify=self._verify_ssl,
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client
