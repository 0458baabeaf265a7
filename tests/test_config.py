"""Tests for docbridge.config -- XDG paths, atomic writes, precedence, cache dir, API key."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from docbridge.config import (
    atomic_write,
    get_cache_dir,
    get_config_dir,
    get_data_dir,
    load_global_config,
    resolve_api_key,
    resolve_cache_dir,
    resolve_config,
    resolve_credential,
    save_global_config,
)
from docbridge.exceptions import ConfigError
from docbridge.models import ApiConfig, CacheConfig, GlobalConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def _write_global(root: Path, data: Any) -> None:
    _write_json(root / "config" / "docbridge" / "config.json", data)


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPathsLinux:
    """XDG paths on Linux (the default XDG platform)."""

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("docbridge.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "docbridge"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("docbridge.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        result = get_config_dir()
        assert result == custom / "docbridge"
        assert result.is_dir()

    def test_cache_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("docbridge.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_cache_dir()
        assert result == tmp_path / ".cache" / "docbridge"
        assert result.is_dir()

    def test_data_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_data"
        monkeypatch.setattr("docbridge.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(custom))

        result = get_data_dir()
        assert result == custom / "docbridge"
        assert result.is_dir()


class TestXDGPathsFallback:
    """Fallback paths on non-XDG platforms (macOS, Windows)."""

    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("docbridge.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".docbridge"

    def test_cache_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("docbridge.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_cache_dir() == tmp_path / ".docbridge" / "cache"

    def test_data_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("docbridge.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_data_dir() == tmp_path / ".docbridge" / "logs"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        atomic_write(target, "hello world")
        assert target.read_text(encoding="utf-8") == "hello world"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        target.write_text("old content", encoding="utf-8")
        atomic_write(target, "new content")
        assert target.read_text(encoding="utf-8") == "new content"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "test.txt"
        atomic_write(target, "deep write")
        assert target.read_text(encoding="utf-8") == "deep write"

    def test_no_temp_files_left_on_success(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        atomic_write(target, "content")
        assert list(tmp_path.iterdir()) == [target]

    def test_failure_keeps_previous_content(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        target.write_text("previous", encoding="utf-8")
        with patch("docbridge.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                atomic_write(target, "will fail")

        assert target.read_text(encoding="utf-8") == "previous"
        assert [f for f in tmp_path.iterdir() if ".tmp" in f.name] == []

    def test_unicode_content(self, tmp_path: Path) -> None:
        target = tmp_path / "unicode.txt"
        content = "Hello 世界 \U0001f30d éàüñ"
        atomic_write(target, content)
        assert target.read_text(encoding="utf-8") == content


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_load_returns_defaults_when_missing(self, isolated_config: Path) -> None:
        cfg = load_global_config()
        assert cfg == GlobalConfig()
        assert cfg.api.base_url == "https://context7.com/api"
        assert cfg.cache.ttl_days == 1
        assert cfg.cache.directory is None

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        original = GlobalConfig(
            api=ApiConfig(api_key_source="env:MY_KEY"),
            cache=CacheConfig(ttl_days=7, directory="/cache"),
        )
        save_global_config(original)
        assert load_global_config() == original

    def test_saved_config_is_valid_json(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig())
        path = isolated_config / "config" / "docbridge" / "config.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["cache"]["ttl_days"] == 1

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        path = isolated_config / "config" / "docbridge" / "config.json"
        path.parent.mkdir(parents=True)
        path.write_text("{invalid json!!!", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    @pytest.mark.parametrize(
        "data",
        [
            {"cache": "not-a-dict"},
            {"cache": {"ttl_days": -1}},
        ],
    )
    def test_load_invalid_schema_raises_config_error(self, isolated_config: Path, data) -> None:
        _write_global(isolated_config, data)
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveConfig:
    @pytest.fixture(autouse=True)
    def _isolate(self, isolated_config: Path, quiet_output) -> None:
        self.root = isolated_config

    def test_defaults(self) -> None:
        cfg = resolve_config()
        assert cfg == GlobalConfig()

    def test_file_overrides_defaults(self) -> None:
        _write_global(self.root, {"cache": {"ttl_days": 5}})
        assert resolve_config().cache.ttl_days == 5

    def test_env_overrides_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_global(self.root, {"cache": {"ttl_days": 5, "directory": "/file"}})
        monkeypatch.setenv("DOCBRIDGE_CACHE_TTL", "3")
        monkeypatch.setenv("DOCBRIDGE_CACHE_DIR", "/env")
        monkeypatch.setenv("DOCBRIDGE_BASE_URL", "https://env.test/api")

        cfg = resolve_config()
        assert cfg.cache.ttl_days == 3
        assert cfg.cache.directory == "/env"
        assert cfg.api.base_url == "https://env.test/api"

    def test_cli_overrides_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCBRIDGE_CACHE_TTL", "3")
        monkeypatch.setenv("DOCBRIDGE_CACHE_DIR", "/env")
        monkeypatch.setenv("DOCBRIDGE_BASE_URL", "https://env.test/api")

        cfg = resolve_config(
            cli_ttl_days=0, cli_cache_dir="/cli", cli_base_url="https://cli.test/api"
        )
        assert cfg.cache.ttl_days == 0
        assert cfg.cache.directory == "/cli"
        assert cfg.api.base_url == "https://cli.test/api"

    @pytest.mark.parametrize("value", ["soon", "-2", "1.5"])
    def test_invalid_env_ttl_is_ignored(self, monkeypatch: pytest.MonkeyPatch, value) -> None:
        _write_global(self.root, {"cache": {"ttl_days": 4}})
        monkeypatch.setenv("DOCBRIDGE_CACHE_TTL", value)

        assert resolve_config().cache.ttl_days == 4

    def test_negative_cli_ttl_raises(self) -> None:
        with pytest.raises(ConfigError, match=">= 0"):
            resolve_config(cli_ttl_days=-1)


# ---------------------------------------------------------------------------
# Cache directory
# ---------------------------------------------------------------------------


class TestResolveCacheDir:
    def test_default_is_created_under_xdg_cache(self, isolated_config: Path, quiet_output) -> None:
        path = resolve_cache_dir(GlobalConfig())
        assert path == isolated_config / "cache" / "docbridge" / "responses"
        assert path.is_dir()

    def test_existing_explicit_directory(self, isolated_config: Path, cache_dir: Path) -> None:
        config = GlobalConfig(cache=CacheConfig(directory=str(cache_dir)))
        assert resolve_cache_dir(config) == cache_dir

    def test_missing_explicit_directory_disables_cache(
        self, isolated_config: Path, quiet_output
    ) -> None:
        missing = isolated_config / "not-mounted"
        config = GlobalConfig(cache=CacheConfig(directory=str(missing)))

        assert resolve_cache_dir(config) is None
        assert not missing.exists()

    def test_disabled_by_config(self, isolated_config: Path, cache_dir: Path, quiet_output) -> None:
        config = GlobalConfig(cache=CacheConfig(enabled=False, directory=str(cache_dir)))
        assert resolve_cache_dir(config) is None


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_env_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_TOKEN", "secret123")
        assert resolve_credential("env:MY_TOKEN") == "secret123"

    def test_env_source_missing_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)
        with pytest.raises(ConfigError, match="not set"):
            resolve_credential("env:NONEXISTENT_VAR")

    def test_file_source(self, tmp_path: Path) -> None:
        cred_file = tmp_path / "token.txt"
        cred_file.write_text("  my-secret-token  \n", encoding="utf-8")
        assert resolve_credential(f"file:{cred_file}") == "my-secret-token"

    def test_file_source_missing_raises(self) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential("file:/nonexistent/path/token.txt")

    @pytest.mark.skipif(os.geteuid() == 0, reason="root ignores file permissions")
    def test_file_source_unreadable_raises(self, tmp_path: Path) -> None:
        cred_file = tmp_path / "unreadable.txt"
        cred_file.write_text("secret", encoding="utf-8")
        cred_file.chmod(0o000)
        try:
            with pytest.raises(ConfigError, match="Cannot read"):
                resolve_credential(f"file:{cred_file}")
        finally:
            cred_file.chmod(stat.S_IRUSR | stat.S_IWUSR)

    def test_unknown_source_raises(self) -> None:
        with pytest.raises(ConfigError, match="Unknown credential source"):
            resolve_credential("keyring:context7")

    def test_file_source_home_expansion(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        (tmp_path / ".context7").write_text("expanded-secret", encoding="utf-8")

        assert resolve_credential("file:~/.context7") == "expanded-secret"


class TestResolveApiKey:
    @pytest.fixture(autouse=True)
    def _isolate(self, isolated_config: Path, quiet_output) -> None:
        pass

    def test_env_var_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONTEXT7_API_KEY", "from-env")
        monkeypatch.setenv("OTHER_KEY", "from-source")
        config = GlobalConfig(api=ApiConfig(api_key_source="env:OTHER_KEY"))

        assert resolve_api_key(config) == "from-env"

    def test_configured_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OTHER_KEY", "from-source")
        config = GlobalConfig(api=ApiConfig(api_key_source="env:OTHER_KEY"))

        assert resolve_api_key(config) == "from-source"

    def test_anonymous_when_unset(self) -> None:
        assert resolve_api_key(GlobalConfig()) is None

    def test_empty_env_var_is_anonymous(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONTEXT7_API_KEY", "")
        assert resolve_api_key(GlobalConfig()) is None

    def test_empty_env_var_skips_configured_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONTEXT7_API_KEY", "")
        monkeypatch.setenv("OTHER_KEY", "from-source")
        config = GlobalConfig(api=ApiConfig(api_key_source="env:OTHER_KEY"))

        assert resolve_api_key(config) is None

    def test_broken_source_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MISSING_KEY", raising=False)
        config = GlobalConfig(api=ApiConfig(api_key_source="env:MISSING_KEY"))
        with pytest.raises(ConfigError):
            resolve_api_key(config)
