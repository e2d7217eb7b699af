"""HTTP transports for mixr.

A transport performs a single HTTP call and always answers with a
:class:`TransportResult` -- it never raises for an HTTP error status, and
network-level exceptions are converted to ``ok=False, status=500``
results.  The endpoint clients in :mod:`mixr.client` depend only on this
contract (see :class:`Transport` and :class:`AsyncTransport`), so any object
with a matching ``request`` method can stand in for the httpx-backed
implementations.

Classes:
    :class:`HttpxTransport` -- blocking, backed by :class:`httpx.Client`.
    :class:`AsyncHttpxTransport` -- non-blocking, backed by :class:`httpx.AsyncClient`.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from mixr.transport.async_transport import AsyncHttpxTransport
from mixr.transport.result import TransportResult
from mixr.transport.sync_transport import CANCELLED_MESSAGE, HttpxTransport


class Transport(Protocol):
    """Structural type of a blocking transport."""

    def request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[dict[str, str]] = None,
        body: Any = None,
        cancel_event: Any = None,
    ) -> TransportResult: ...


class AsyncTransport(Protocol):
    """Structural type of a non-blocking transport."""

    async def request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[dict[str, str]] = None,
        body: Any = None,
        cancel_event: Any = None,
    ) -> TransportResult: ...


__all__ = [
    "AsyncHttpxTransport",
    "AsyncTransport",
    "CANCELLED_MESSAGE",
    "HttpxTransport",
    "Transport",
    "TransportResult",
]
