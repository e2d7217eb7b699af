"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for mixr:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.mixr/`` on macOS and Windows.  See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Settings** -- a single :class:`~mixr.models.Settings` JSON file storing
  the base URL, request defaults and cache options.
* **Token store** -- :class:`TokenStore` keeps the bearer token in a
  ``0o600`` file under the data directory.
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables, the stored token and the settings file.
* **Snapshot storage** -- :func:`create_storage` builds the
  :class:`~mixr.store.storage.SnapshotStorage` the settings ask for.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, Field

from mixr.exceptions import ConfigError
from mixr.models import Settings, StorageBackend

if TYPE_CHECKING:
    from mixr.store.storage import SnapshotStorage

_APP_NAME = "mixr"
_CONFIG_FILENAME = "config.json"
_TOKEN_FILENAME = "token.json"

ENV_BASE_URL = "MIXR_BASE_URL"
ENV_TOKEN = "MIXR_TOKEN"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/mixr/`` (default ``~/.config/mixr/``).
    On macOS/Windows: ``~/.mixr/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the recipe cache snapshot.  Deleting it only costs a refetch.

    On Linux/BSD: ``$XDG_CACHE_HOME/mixr/`` (default ``~/.cache/mixr/``).
    On macOS/Windows: ``~/.mixr/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (token, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/mixr/`` (default ``~/.local/share/mixr/``).
    On macOS/Windows: ``~/.mixr/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  On any failure the
    temp file is cleaned up and the exception re-raised.

    Args:
        path: Destination file.
        data: Text to write (UTF-8).
        mode: Optional permission bits applied before any content is
            written (e.g. ``0o600`` for secrets).
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Settings ---


def _settings_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_settings() -> Settings:
    """Load settings from the config directory.

    Returns:
        The deserialised :class:`~mixr.models.Settings`, or defaults when the
        file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            validation.
    """
    path = _settings_path()
    if not path.is_file():
        return Settings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Settings.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid settings at {path}: {exc}") from exc


def save_settings(settings: Settings) -> None:
    """Persist *settings* atomically.  The token is never written here."""
    data = settings.model_dump(mode="json", exclude={"token"})
    atomic_write(_settings_path(), json.dumps(data, indent=2) + "\n")


# --- Token store ---


class StoredToken(BaseModel):
    """The bearer token as persisted by :class:`TokenStore`."""

    token: str
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TokenStore:
    """Read/write the bearer token used for authenticated endpoints.

    The token lives in ``<data_dir>/token.json`` and is written atomically
    with ``0o600`` permissions so it is never world-readable, even
    momentarily.

    Args:
        path: Optional explicit file location (tests).  Defaults to the
            data directory.

    Example::

        store = TokenStore()
        store.save("tok_123")
        assert store.load() == "tok_123"
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path if path is not None else get_data_dir() / _TOKEN_FILENAME

    @property
    def path(self) -> Path:
        """The filesystem path of the token file."""
        return self._path

    def save(self, token: str) -> None:
        """Persist *token*, replacing any previous one."""
        entry = StoredToken(token=token)
        text = json.dumps(entry.model_dump(mode="json"), indent=2) + "\n"
        atomic_write(self._path, text, mode=0o600)

    def load(self) -> Optional[str]:
        """Return the stored token, or ``None`` if missing or unreadable."""
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return StoredToken.model_validate(data).token
        except (json.JSONDecodeError, ValueError, OSError):
            return None

    def clear(self) -> None:
        """Delete the token file.  No-op when it does not exist."""
        if self._path.is_file():
            self._path.unlink()


# --- Precedence resolution ---


def resolve_settings(
    cli_base_url: Optional[str] = None,
    cli_token: Optional[str] = None,
    token_store: Optional[TokenStore] = None,
) -> Settings:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_base_url``, ``cli_token``)
        2. Environment variables (``MIXR_BASE_URL``, ``MIXR_TOKEN``)
        3. Stored token (:class:`TokenStore`, token only)
        4. Settings file (``~/.config/mixr/config.json``)
        5. Defaults
    """
    settings = load_settings()

    base_url = settings.base_url
    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        base_url = env_base_url
    if cli_base_url:
        base_url = cli_base_url

    token = settings.token
    stored = (token_store or TokenStore()).load()
    if stored:
        token = stored
    env_token = os.environ.get(ENV_TOKEN)
    if env_token:
        token = env_token
    if cli_token:
        token = cli_token

    return settings.model_copy(update={"base_url": base_url, "token": token})


# --- Snapshot storage ---


def create_storage(settings: Settings) -> SnapshotStorage:
    """Build the snapshot backend selected by ``settings.cache``.

    A disabled cache, or the ``memory`` backend, gets a process-local
    :class:`~mixr.store.storage.MemoryStorage`.
    """
    from mixr.store.storage import DiskCacheStorage, FileStorage, MemoryStorage

    cache = settings.cache
    if not cache.enabled or cache.backend == StorageBackend.MEMORY:
        return MemoryStorage()
    if cache.backend == StorageBackend.FILE:
        return FileStorage(get_cache_dir() / "snapshots")
    return DiskCacheStorage(get_cache_dir())
