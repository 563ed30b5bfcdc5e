"""Consumer-facing entry points: create clients and manage their defaults.

Typical usage::

    from routekit import api

    client = await api.create_client("example", "https://example.com/api.raml")
    api.set(client, "headers", {"Authorization": "Bearer token"})

    response = await client.users("42").get({"expand": "profile"})
    print(response.status, response.body)

    api.describe(client.users)
    # {'path': '/users', 'children': ['userId'], 'methods': ['get', 'post']}
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from routekit.client.context import ClientContext
from routekit.client.transport import Transport
from routekit.config import ConfigurationStore, resolve_settings
from routekit.generator.route import Route
from routekit.generator.route_tree import NodeKind, build_route_tree
from routekit.models import ApiDescription, ClientSettings
from routekit.parser import extract_description, load_description

logger = logging.getLogger(__name__)

_MISSING: Any = object()


async def create_client(
    name: str,
    spec_location: str,
    *,
    settings: Optional[ClientSettings] = None,
    transport: Optional[Transport] = None,
    defaults: Optional[Mapping[str, Any]] = None,
) -> Route:
    """Load an API description and build a client for it.

    Args:
        name: Client name, shown in ``repr`` and logs.
        spec_location: URL, file path, or ``-`` for stdin.
        settings: Client settings; resolved from the environment and the
            global config file when omitted.
        transport: Custom transport; an :class:`~routekit.client.transport.HttpxTransport`
            is created from *settings* when omitted.
        defaults: Initial option defaults for the configuration store.

    Returns:
        The client's root :class:`~routekit.generator.route.Route`.

    Raises:
        SpecError: If the description cannot be loaded or built.
        ConfigError: If the settings or *defaults* are invalid.
    """
    settings = settings or resolve_settings()
    raw = await load_description(spec_location, timeout=settings.timeout)
    description = extract_description(raw)
    return build_client(
        name, description, settings=settings, transport=transport, defaults=defaults
    )


def build_client(
    name: str,
    description: Union[ApiDescription, Mapping[str, Any]],
    *,
    settings: Optional[ClientSettings] = None,
    transport: Optional[Transport] = None,
    defaults: Optional[Mapping[str, Any]] = None,
) -> Route:
    """Build a client from an in-memory description. No I/O is performed.

    Raises:
        SpecError: If the description is invalid.
        ConfigError: If *defaults* holds an unknown option key.
    """
    tree = build_route_tree(description)
    context = ClientContext(
        name,
        tree,
        store=ConfigurationStore(defaults),
        transport=transport,
        settings=settings,
    )
    logger.debug("Created client %r for %r", name, tree.title)
    return context.root()


def _context(client: Route) -> ClientContext:
    if not isinstance(client, Route):
        raise TypeError(f"Expected a routekit client, got {type(client).__name__}")
    return client._context


def get(client: Route, key: str) -> Any:
    """Return the client's default for *key*, or ``None`` when unset."""
    return _context(client).store.get(key)


def set(client: Route, key: Union[str, Mapping[str, Any]], value: Any = _MISSING) -> Any:
    """Set one default (``set(client, "query", "a=b")``) or several at once.

    Returns:
        The stored value, or all defaults after a bulk set.

    Raises:
        ConfigError: If a key is unknown or the value is missing.
    """
    store = _context(client).store
    if value is _MISSING:
        return store.set(key)
    return store.set(key, value)


def unset(client: Route, key: str) -> None:
    """Remove the client's default for *key*."""
    _context(client).store.unset(key)


def describe(route: Route) -> dict[str, Any]:
    """Describe a route for completion tooling, without any HTTP call.

    Returns:
        A dict with the route's ``path`` template, its ``children`` and
        ``methods`` in declaration order, and whether it is ``callable``.
    """
    _context(route)
    node = route._node
    return {
        "path": route._template() or "/",
        "children": node.child_names() if node is not None else [],
        "methods": node.method_names() if node is not None else [],
        "callable": bool(route._variants)
        or (node is not None and node.kind is NodeKind.ROOT),
    }


__all__ = ["build_client", "create_client", "describe", "get", "set", "unset"]
