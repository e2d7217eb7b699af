"""Endpoint clients for the MIXR API.

Each domain operation maps to exactly one transport request.  The request
shapes live in :mod:`mixr.client.operations`; result validation and error
mapping live in :mod:`mixr.client.response`.

Classes:
    :class:`MixrClient` -- blocking client.
    :class:`AsyncMixrClient` -- non-blocking client with the same surface.

Example::

    from mixr.client import MixrClient

    with MixrClient("http://localhost:3000", token="tok") as client:
        recipe = client.get_recipe_by_id(42)
"""

from mixr.client.async_client import AsyncMixrClient
from mixr.client.sync_client import MixrClient

__all__ = ["MixrClient", "AsyncMixrClient"]
