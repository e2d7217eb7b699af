"""Asynchronous transport -- mirrors :class:`~mixr.transport.sync_transport.HttpxTransport`.

:class:`AsyncHttpxTransport` wraps :class:`httpx.AsyncClient` and offers
the same contract: one call, one :class:`~mixr.transport.result.TransportResult`,
no exceptions for HTTP statuses or network failures.

Cancellation is cooperative.  A caller passes an :class:`asyncio.Event`;
if the event fires while the request is in flight the request task is
cancelled and a failure result (``error="Request cancelled"``) is
returned.  Cancelling the *calling* task still propagates
:class:`asyncio.CancelledError` as usual.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from mixr.transport.result import TransportResult
from mixr.transport.sync_transport import CANCELLED_MESSAGE, build_request_kwargs

logger = logging.getLogger(__name__)


class AsyncHttpxTransport:
    """Non-blocking transport for MIXR API calls.

    Args:
        timeout: Request timeout in seconds.
        verify_ssl: Verify TLS certificates.
        client: Optional pre-built :class:`httpx.AsyncClient`.  An injected
            client is never closed by this transport.

    Example::

        async with AsyncHttpxTransport() as transport:
            result = await transport.get("http://localhost:3000/api/moods")
    """

    def __init__(
        self,
        timeout: float = 30,
        verify_ssl: bool = True,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._client = client
        self._owns_client = client is None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncHttpxTransport:
        self._ensure_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[dict[str, str]] = None,
        body: Any = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TransportResult:
        """Perform one HTTP call and report the outcome.

        Behaves like :meth:`HttpxTransport.request`, except that
        *cancel_event* is also honoured while the request is in flight.
        """
        if cancel_event is None:
            return await self._send(url, method, headers, body)
        if cancel_event.is_set():
            return TransportResult.failure(CANCELLED_MESSAGE)

        send_task = asyncio.ensure_future(self._send(url, method, headers, body))
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {send_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (send_task, cancel_task):
                if not task.done():
                    task.cancel()

        if send_task in done:
            return send_task.result()

        # Let the aborted request unwind before reporting.
        await asyncio.gather(send_task, return_exceptions=True)
        logger.debug("Request cancelled: %s %s", method.upper(), url)
        return TransportResult.failure(CANCELLED_MESSAGE)

    async def get(self, url: str, **kwargs: Any) -> TransportResult:
        """Send a GET request."""
        return await self.request(url, method="GET", **kwargs)

    async def post(self, url: str, body: Any = None, **kwargs: Any) -> TransportResult:
        """Send a POST request with an optional body."""
        return await self.request(url, method="POST", body=body, **kwargs)

    async def put(self, url: str, body: Any = None, **kwargs: Any) -> TransportResult:
        """Send a PUT request with an optional body."""
        return await self.request(url, method="PUT", body=body, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> TransportResult:
        """Send a DELETE request."""
        return await self.request(url, method="DELETE", **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _send(
        self,
        url: str,
        method: str,
        headers: Optional[dict[str, str]],
        body: Any,
    ) -> TransportResult:
        kwargs = build_request_kwargs(method, url, headers, body)
        try:
            response = await self._ensure_client().request(**kwargs)
        except Exception as exc:
            logger.debug("Transport failure for %s %s: %s", kwargs["method"], url, exc)
            return TransportResult.failure(str(exc))
        return TransportResult.from_response(response)

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                verify=self._verify_ssl,
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client
