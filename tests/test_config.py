"""Tests for routekit.config -- option store, XDG paths, settings precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from routekit.config import (
    ConfigurationStore,
    get_config_dir,
    load_global_settings,
    resolve_settings,
)
from routekit.exceptions import ConfigError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# Option store
# ---------------------------------------------------------------------------


class TestConfigurationStore:
    def test_get_unset_key_is_none(self) -> None:
        store = ConfigurationStore()
        assert store.get("query") is None
        assert "query" not in store

    def test_set_returns_value(self) -> None:
        store = ConfigurationStore()
        assert store.set("query", "something=that") == "something=that"
        assert store.get("query") == "something=that"

    def test_empty_value_is_distinct_from_absence(self) -> None:
        store = ConfigurationStore()
        store.set("body", "")
        assert store.get("body") == ""
        assert "body" in store

    def test_bulk_set_returns_snapshot(self) -> None:
        store = ConfigurationStore()
        result = store.set({"query": "test=data", "uriParameters": {"collectionId": 567}})
        assert result == {"query": "test=data", "uri_parameters": {"collectionId": 567}}

    def test_camel_case_aliases(self) -> None:
        store = ConfigurationStore({"baseUriParameters": {"zone": "apac"}})
        assert store.get("base_uri_parameters") == {"zone": "apac"}
        assert "baseUriParameters" in store

    def test_unset_restores_absence(self) -> None:
        store = ConfigurationStore({"query": "test=data"})
        store.unset("query")
        assert store.get("query") is None
        assert "query" not in store

    def test_unset_absent_key_is_noop(self) -> None:
        ConfigurationStore().unset("headers")

    def test_unknown_key_raises(self) -> None:
        store = ConfigurationStore()
        with pytest.raises(ConfigError, match="Unknown option"):
            store.set("timeout", 5)
        with pytest.raises(ConfigError):
            store.get("nope")
        assert "nope" not in store

    def test_single_set_requires_value(self) -> None:
        with pytest.raises(ConfigError, match="No value"):
            ConfigurationStore().set("query")

    def test_get_returns_copy(self) -> None:
        store = ConfigurationStore({"headers": {"X-A": "1"}})
        store.get("headers")["X-A"] = "changed"
        assert store.get("headers") == {"X-A": "1"}

    def test_snapshot_is_isolated_from_later_mutation(self) -> None:
        store = ConfigurationStore({"headers": {"X-A": "1"}})
        snapshot = store.snapshot()
        store.set("headers", {"X-B": "2"})
        store.unset("headers")
        assert snapshot["headers"] == {"X-A": "1"}

    def test_snapshot_is_read_only(self) -> None:
        snapshot = ConfigurationStore().snapshot()
        with pytest.raises(TypeError):
            snapshot["query"] = "a=b"  # type: ignore[index]

    def test_stored_value_is_copied_on_set(self) -> None:
        headers = {"X-A": "1"}
        store = ConfigurationStore()
        store.set("headers", headers)
        headers["X-A"] = "2"
        assert store.get("headers") == {"X-A": "1"}


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestConfigDir:
    def test_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("routekit.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", staticmethod(lambda: tmp_path))
        assert get_config_dir() == tmp_path / ".config" / "routekit"

    def test_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("routekit.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert get_config_dir() == tmp_path / "xdg" / "routekit"

    def test_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("routekit.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", staticmethod(lambda: tmp_path))
        assert get_config_dir() == tmp_path / ".routekit"


# ---------------------------------------------------------------------------
# Settings precedence
# ---------------------------------------------------------------------------


class TestResolveSettings:
    @pytest.fixture(autouse=True)
    def _linux(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("routekit.config._is_xdg_platform", lambda: True)

    def test_defaults(self, isolated_config: Path) -> None:
        settings = resolve_settings()
        assert settings.timeout == 30.0
        assert settings.verify_ssl is True
        assert settings.base_uri is None

    def test_missing_file_is_empty(self, isolated_config: Path) -> None:
        assert load_global_settings() == {}

    def test_file_values(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "config" / "routekit" / "config.json", {"timeout": 5})
        assert resolve_settings().timeout == 5.0

    def test_env_overrides_file(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(isolated_config / "config" / "routekit" / "config.json", {"timeout": 5})
        monkeypatch.setenv("ROUTEKIT_TIMEOUT", "12")
        monkeypatch.setenv("ROUTEKIT_VERIFY_SSL", "false")
        settings = resolve_settings()
        assert settings.timeout == 12.0
        assert settings.verify_ssl is False

    def test_explicit_overrides_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ROUTEKIT_BASE_URI", "http://env.example.com")
        settings = resolve_settings(base_uri="http://cli.example.com", timeout=None)
        assert settings.base_uri == "http://cli.example.com"
        assert settings.timeout == 30.0

    def test_invalid_json_raises(self, isolated_config: Path) -> None:
        path = isolated_config / "config" / "routekit" / "config.json"
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid global config"):
            resolve_settings()

    def test_non_object_raises(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "config" / "routekit" / "config.json", [1, 2])
        with pytest.raises(ConfigError):
            load_global_settings()

    def test_invalid_value_raises(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "config" / "routekit" / "config.json", {"timeout": "soon"}
        )
        with pytest.raises(ConfigError, match="Invalid client settings"):
            resolve_settings()
