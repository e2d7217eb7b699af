"""Shared test fixtures for mixr.

Provides isolated config environments, output state management, recorded
fake transports, httpx mock clients, sample API payloads, and a CLI runner.
These fixtures are automatically discovered by pytest and available to all
test modules without explicit imports.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from mixr.output import OutputFormat, OutputManager, reset_output, set_output
from mixr.transport import HttpxTransport, TransportResult


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and CLI log handlers after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()
    mixr_logger = logging.getLogger("mixr")
    for handler in list(mixr_logger.handlers):
        mixr_logger.removeHandler(handler)
    mixr_logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Sample payloads
# ---------------------------------------------------------------------------


def recipe_payload(recipe_id: int, name: str, **extra: Any) -> dict[str, Any]:
    """A recipe body as the API serialises it (camelCase keys)."""
    body: dict[str, Any] = {
        "id": recipe_id,
        "name": name,
        "description": f"{name} description",
        "moodId": 1,
        "createdAt": "2024-05-01T12:00:00Z",
        "ingredients": [{"id": 3, "name": "White rum", "icon": "rum", "amount": "2 oz"}],
        "steps": ["Muddle", "Shake", "Serve"],
        "equipment": [{"id": 1, "name": "Shaker", "icon": "shaker"}],
    }
    body.update(extra)
    return body


def envelope(data: Any, **extra: Any) -> dict[str, Any]:
    """Wrap *data* in the API's ``{success, data}`` envelope."""
    body = {"success": True, "data": data}
    body.update(extra)
    return body


MOODS = [
    {
        "id": 1,
        "emoji": "🎉",
        "name": "Celebratory",
        "description": "Bubbly and bright",
        "exampleDrinks": "French 75, Mimosa",
        "imageName": "celebratory.png",
        "createdAt": "2024-01-01T00:00:00Z",
    },
    {
        "id": 2,
        "emoji": "🌙",
        "name": "Relaxed",
        "description": "Slow sippers",
        "exampleDrinks": "Old Fashioned",
        "imageName": "relaxed.png",
        "createdAt": "2024-01-01T00:00:00Z",
    },
]


# ---------------------------------------------------------------------------
# Fake transports
# ---------------------------------------------------------------------------


class FakeTransport:
    """Records every request and answers with queued :class:`TransportResult` objects.

    When the queue is empty the last result is repeated, so a single
    ``respond`` is enough for tests that make several identical calls.
    """

    def __init__(self, *results: TransportResult) -> None:
        self.calls: list[dict[str, Any]] = []
        self._results = list(results)
        self._last: Optional[TransportResult] = None

    def respond(self, result: TransportResult) -> FakeTransport:
        self._results.append(result)
        return self

    def respond_json(self, data: Any, status: int = 200) -> FakeTransport:
        return self.respond(
            TransportResult(ok=200 <= status < 300, status=status, status_text="", data=data)
        )

    def _next(self) -> TransportResult:
        if self._results:
            self._last = self._results.pop(0)
        assert self._last is not None, "FakeTransport has no queued result"
        return self._last

    def request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[dict[str, str]] = None,
        body: Any = None,
        cancel_event: Any = None,
    ) -> TransportResult:
        self.calls.append(
            {
                "url": url,
                "method": method,
                "headers": dict(headers or {}),
                "body": body,
                "cancel_event": cancel_event,
            }
        )
        return self._next()


class AsyncFakeTransport(FakeTransport):
    """Awaitable variant of :class:`FakeTransport`."""

    async def request(  # type: ignore[override]
        self,
        url: str,
        method: str = "GET",
        headers: Optional[dict[str, str]] = None,
        body: Any = None,
        cancel_event: Any = None,
    ) -> TransportResult:
        return FakeTransport.request(self, url, method, headers, body, cancel_event)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def async_fake_transport() -> AsyncFakeTransport:
    return AsyncFakeTransport()


def mock_transport(handler: Callable[[httpx.Request], httpx.Response]) -> HttpxTransport:
    """An :class:`HttpxTransport` whose client is wired to an httpx.MockTransport."""
    return HttpxTransport(client=httpx.Client(transport=httpx.MockTransport(handler)))


def json_response(data: Any, status_code: int = 200) -> httpx.Response:
    """Build an httpx.Response with a JSON body."""
    return httpx.Response(
        status_code=status_code,
        headers={"content-type": "application/json"},
        content=json.dumps(data).encode("utf-8"),
    )


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears all MIXR_* environment variables and changes the
    working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("mixr.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["MIXR_BASE_URL", "MIXR_TOKEN"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
