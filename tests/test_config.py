"""Tests for mixr.config -- XDG paths, atomic writes, settings, token store, precedence."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from mixr.config import (
    ENV_BASE_URL,
    ENV_TOKEN,
    TokenStore,
    atomic_write,
    create_storage,
    get_cache_dir,
    get_config_dir,
    get_data_dir,
    load_settings,
    resolve_settings,
    save_settings,
)
from mixr.exceptions import ConfigError
from mixr.models import CacheConfig, Settings, StorageBackend
from mixr.store import DiskCacheStorage, FileStorage, MemoryStorage


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPathsLinux:
    """XDG paths on Linux (the default XDG platform)."""

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("mixr.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "mixr"
        assert result.is_dir()

    def test_cache_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_cache"
        monkeypatch.setattr("mixr.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CACHE_HOME", str(custom))

        result = get_cache_dir()
        assert result == custom / "mixr"
        assert result.is_dir()

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("mixr.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "mixr"
        assert result.is_dir()


class TestXDGPathsFallback:
    """Fallback paths on non-XDG platforms (macOS, Windows)."""

    @pytest.fixture(autouse=True)
    def _non_xdg(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("mixr.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

    def test_config_dir_fallback(self, tmp_path: Path) -> None:
        assert get_config_dir() == tmp_path / ".mixr"

    def test_cache_dir_fallback(self, tmp_path: Path) -> None:
        assert get_cache_dir() == tmp_path / ".mixr" / "cache"

    def test_data_dir_fallback(self, tmp_path: Path) -> None:
        assert get_data_dir() == tmp_path / ".mixr" / "data"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "sub" / "file.json"
        atomic_write(target, '{"a": 1}')
        assert target.read_text(encoding="utf-8") == '{"a": 1}'

    def test_replaces_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "file.txt"
        target.write_text("old")
        atomic_write(target, "new")
        assert target.read_text() == "new"

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
    def test_mode(self, tmp_path: Path) -> None:
        target = tmp_path / "secret.json"
        atomic_write(target, "x", mode=0o600)
        assert stat.S_IMODE(target.stat().st_mode) == 0o600

    def test_failure_leaves_original_and_no_temp(self, tmp_path: Path) -> None:
        target = tmp_path / "file.txt"
        target.write_text("original")
        with patch("mixr.config.os.replace", side_effect=OSError("boom")):
            with pytest.raises(OSError):
                atomic_write(target, "new")
        assert target.read_text() == "original"
        assert [p.name for p in tmp_path.iterdir()] == ["file.txt"]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults_when_missing(self, isolated_config: Path) -> None:
        settings = load_settings()
        assert settings.base_url == "http://localhost:3000"
        assert settings.timeout == 30
        assert settings.cache.backend == StorageBackend.DISKCACHE
        assert settings.cache.list_stale_seconds == 300

    def test_save_and_load(self, isolated_config: Path) -> None:
        save_settings(
            Settings(
                base_url="https://mixr.example.com",
                token="never-written",
                cache=CacheConfig(backend=StorageBackend.FILE),
            )
        )
        path = isolated_config / "config" / "mixr" / "config.json"
        assert "token" not in json.loads(path.read_text())

        loaded = load_settings()
        assert loaded.base_url == "https://mixr.example.com"
        assert loaded.token is None
        assert loaded.cache.backend == StorageBackend.FILE

    def test_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        path = get_config_dir() / "config.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_settings()

    def test_invalid_values_raise_config_error(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text(json.dumps({"cache": {"backend": "redis"}}))
        with pytest.raises(ConfigError):
            load_settings()


# ---------------------------------------------------------------------------
# Token store
# ---------------------------------------------------------------------------


class TestTokenStore:
    def test_round_trip(self, tmp_path: Path) -> None:
        store = TokenStore(tmp_path / "token.json")
        assert store.load() is None
        store.save("tok_123")
        assert store.load() == "tok_123"
        store.clear()
        assert store.load() is None
        store.clear()

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
    def test_file_is_private(self, tmp_path: Path) -> None:
        store = TokenStore(tmp_path / "token.json")
        store.save("secret")
        assert stat.S_IMODE(store.path.stat().st_mode) == 0o600

    def test_corrupt_file_reads_as_none(self, tmp_path: Path) -> None:
        path = tmp_path / "token.json"
        path.write_text("garbage")
        assert TokenStore(path).load() is None

    def test_default_location(self, isolated_config: Path) -> None:
        assert TokenStore().path == isolated_config / "data" / "mixr" / "token.json"


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveSettings:
    def test_defaults(self, isolated_config: Path) -> None:
        settings = resolve_settings()
        assert settings.base_url == "http://localhost:3000"
        assert settings.token is None

    def test_file_then_env_then_cli_for_base_url(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        save_settings(Settings(base_url="http://from-file"))
        assert resolve_settings().base_url == "http://from-file"

        monkeypatch.setenv(ENV_BASE_URL, "http://from-env")
        assert resolve_settings().base_url == "http://from-env"
        assert resolve_settings(cli_base_url="http://from-cli").base_url == "http://from-cli"

    def test_token_precedence(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        store = TokenStore()
        store.save("stored")
        assert resolve_settings().token == "stored"

        monkeypatch.setenv(ENV_TOKEN, "env")
        assert resolve_settings().token == "env"
        assert resolve_settings(cli_token="cli").token == "cli"

    def test_other_settings_preserved(self, isolated_config: Path) -> None:
        save_settings(Settings(timeout=5, verify_ssl=False))
        settings = resolve_settings(cli_base_url="http://x")
        assert settings.timeout == 5
        assert settings.verify_ssl is False


# ---------------------------------------------------------------------------
# Snapshot storage selection
# ---------------------------------------------------------------------------


class TestCreateStorage:
    def test_disabled_cache_is_memory(self, isolated_config: Path) -> None:
        storage = create_storage(Settings(cache=CacheConfig(enabled=False)))
        assert isinstance(storage, MemoryStorage)

    def test_memory_backend(self, isolated_config: Path) -> None:
        storage = create_storage(Settings(cache=CacheConfig(backend=StorageBackend.MEMORY)))
        assert isinstance(storage, MemoryStorage)

    def test_file_backend(self, isolated_config: Path) -> None:
        storage = create_storage(Settings(cache=CacheConfig(backend=StorageBackend.FILE)))
        assert isinstance(storage, FileStorage)
        assert storage.directory == isolated_config / "cache" / "mixr" / "snapshots"

    def test_diskcache_backend_is_default(self, isolated_config: Path) -> None:
        storage = create_storage(Settings())
        try:
            assert isinstance(storage, DiskCacheStorage)
            assert storage.directory == isolated_config / "cache" / "mixr" / "snapshots"
        finally:
            storage.close()
