"""Result validation -- maps a :class:`TransportResult` to a payload or a typed error.

This module is the only place that decides whether an API call succeeded.
:func:`unwrap_result` applies the same rules to every operation:

1. A transport-level failure (no HTTP response) raises
   :class:`~mixr.exceptions.TransportError`.
2. A non-2xx status raises the :class:`~mixr.exceptions.HttpError`
   subclass for that status.
3. A 2xx response without a usable payload raises
   :class:`~mixr.exceptions.EmptyPayloadError`.
4. Otherwise the envelope is stripped and the payload validated.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from mixr.client.helpers import api_error_message
from mixr.client.operations import Operation
from mixr.exceptions import EmptyPayloadError, TransportError, http_error_for_status
from mixr.transport.result import TransportResult

logger = logging.getLogger(__name__)


def unwrap_result(result: TransportResult, operation: Operation) -> Any:
    """Validate *result* for *operation* and return the unwrapped payload.

    Raises:
        TransportError: The request never produced an HTTP response.
        HttpError: The API answered with a non-2xx status (or a subclass
            such as :class:`~mixr.exceptions.NotFoundError`).
        EmptyPayloadError: The API answered 2xx without usable data.
    """
    if result.error is not None:
        raise TransportError(
            api_error_message(result, operation.name), result.status, operation.name
        )

    if not result.ok:
        raise http_error_for_status(
            api_error_message(result, operation.name), result.status, operation.name
        )

    payload = _extract_payload(result.data, operation)
    if payload is None:
        raise EmptyPayloadError(
            f"Failed to {operation.name}: response carried no data (status: {result.status})",
            result.status,
            operation.name,
        )

    try:
        return operation.parse(payload)
    except ValidationError as exc:
        logger.debug("Invalid payload for %s: %s", operation.name, exc)
        raise EmptyPayloadError(
            f"Failed to {operation.name}: unexpected response shape (status: {result.status})",
            result.status,
            operation.name,
        ) from exc


def _extract_payload(body: Any, operation: Operation) -> Any:
    """Return the part of *body* the operation cares about, or ``None``."""
    if not isinstance(body, dict):
        return None
    if operation.requires_data:
        return body.get("data")
    return body
