"""Per-client option defaults and ambient client settings.

This module handles two kinds of configuration:

* **Option defaults** -- :class:`ConfigurationStore` holds the per-client
  defaults for ``query``, ``body``, ``headers``, ``uri_parameters`` and
  ``base_uri_parameters``. It is mutated only through ``get``/``set``/``unset``
  and read by the request composer through :meth:`ConfigurationStore.snapshot`.
* **Client settings** -- :func:`resolve_settings` merges explicit overrides,
  ``ROUTEKIT_*`` environment variables, and the global config file into a
  :class:`~routekit.models.ClientSettings`.

The global config file lives in an XDG-compliant directory on Linux/BSD
(``$XDG_CONFIG_HOME/routekit/config.json``) and in ``~/.routekit/`` elsewhere.
"""

from __future__ import annotations

import copy
import json
import os
import platform
import threading
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Optional

from routekit.exceptions import ConfigError
from routekit.models import ClientSettings, normalize_option_key

_APP_NAME = "routekit"
_CONFIG_FILENAME = "config.json"

_UNSET: Any = object()


# --- Option defaults ---


class ConfigurationStore:
    """Option defaults owned by a single client.

    Absence is distinct from emptiness: :meth:`get` returns ``None`` for a key
    that was never set (or was unset), while ``key in store`` tells an
    explicitly stored empty string or ``None`` apart from absence.

    Keys may be given in snake_case or in the camelCase spelling used by API
    descriptions (``uriParameters``, ``baseUriParameters``).

    Args:
        initial: Optional mapping of defaults to start with.
    """

    def __init__(self, initial: Optional[Mapping[str, Any]] = None) -> None:
        self._values: dict[str, Any] = {}
        self._lock = threading.Lock()
        if initial:
            self.set(initial)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        try:
            return normalize_option_key(key) in self._values
        except ConfigError:
            return False

    def __repr__(self) -> str:
        return f"ConfigurationStore({self._values!r})"

    def get(self, key: str) -> Any:
        """Return the default stored under *key*, or ``None`` when absent.

        Raises:
            ConfigError: If *key* is not a known option.
        """
        key = normalize_option_key(key)
        with self._lock:
            return copy.deepcopy(self._values.get(key))

    def set(self, key: str | Mapping[str, Any], value: Any = _UNSET) -> Any:
        """Store a default, or several at once when *key* is a mapping.

        Returns:
            The stored value, or a snapshot of all defaults for a bulk set.

        Raises:
            ConfigError: If a key is unknown, or *value* is missing for a
                single-key set.
        """
        if isinstance(key, Mapping):
            if value is not _UNSET:
                raise ConfigError("Bulk set takes a single mapping argument")
            updates = {normalize_option_key(k): v for k, v in key.items()}
            with self._lock:
                self._values.update(copy.deepcopy(updates))
            return dict(self.snapshot())

        if value is _UNSET:
            raise ConfigError(f"No value given for option {key!r}")
        key = normalize_option_key(key)
        with self._lock:
            self._values[key] = copy.deepcopy(value)
        return value

    def unset(self, key: str) -> None:
        """Remove the default for *key*. Unsetting an absent key is a no-op."""
        key = normalize_option_key(key)
        with self._lock:
            self._values.pop(key, None)

    def snapshot(self) -> Mapping[str, Any]:
        """Return a read-only deep copy of the current defaults.

        Later ``set``/``unset`` calls do not affect a snapshot already taken.
        """
        with self._lock:
            return MappingProxyType(copy.deepcopy(self._values))


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory (not created).

    On Linux/BSD: ``$XDG_CONFIG_HOME/routekit/`` (default ``~/.config/routekit/``).
    On macOS/Windows: ``~/.routekit/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        return base / _APP_NAME
    return Path.home() / f".{_APP_NAME}"


# --- Client settings ---


def load_global_settings() -> dict[str, Any]:
    """Load settings from the global config file.

    Returns:
        The parsed JSON object, or an empty dict when the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = get_config_dir() / _CONFIG_FILENAME
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid global config at {path}: expected a JSON object")
    return data


def _env_settings() -> dict[str, Any]:
    """Collect ``ROUTEKIT_*`` overrides from the environment."""
    values: dict[str, Any] = {}
    timeout = os.environ.get("ROUTEKIT_TIMEOUT")
    if timeout:
        values["timeout"] = timeout
    verify = os.environ.get("ROUTEKIT_VERIFY_SSL")
    if verify:
        values["verify_ssl"] = verify.strip().lower() not in ("0", "false", "no", "off")
    base_uri = os.environ.get("ROUTEKIT_BASE_URI")
    if base_uri:
        values["base_uri"] = base_uri
    return values


def resolve_settings(**overrides: Any) -> ClientSettings:
    """Resolve client settings with full precedence chain.

    Precedence (high to low):
        1. Keyword *overrides* whose value is not ``None``
        2. Environment variables (``ROUTEKIT_TIMEOUT``, ``ROUTEKIT_VERIFY_SSL``,
           ``ROUTEKIT_BASE_URI``)
        3. Global config file
        4. Defaults

    Raises:
        ConfigError: If the merged values fail validation.
    """
    merged: dict[str, Any] = load_global_settings()
    merged.update(_env_settings())
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ClientSettings.model_validate(merged)
    except ValueError as exc:
        raise ConfigError(f"Invalid client settings: {exc}") from exc
