"""Per-client state shared by every route handle of one client."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional

from routekit.client.composer import compose_request
from routekit.client.response import interpret
from routekit.client.transport import HttpxTransport, Transport
from routekit.config import ConfigurationStore
from routekit.generator.route_tree import RouteTree
from routekit.models import ClientSettings, MethodSpec, RequestOptions, ResponseDescriptor
from routekit.uri_template import expand

if TYPE_CHECKING:
    from routekit.generator.route import Route

logger = logging.getLogger(__name__)


class ClientContext:
    """The tree, option defaults, transport and settings of one client.

    Args:
        name: Client name, used in logs and ``repr``.
        tree: The built route tree.
        store: Option defaults; a fresh store when omitted.
        transport: Sends composed requests; an :class:`HttpxTransport`
            built from *settings* when omitted.
        settings: Ambient client settings.
    """

    def __init__(
        self,
        name: str,
        tree: RouteTree,
        store: Optional[ConfigurationStore] = None,
        transport: Optional[Transport] = None,
        settings: Optional[ClientSettings] = None,
    ) -> None:
        self.name = name
        self.tree = tree
        self.settings = settings or ClientSettings()
        self.store = store if store is not None else ConfigurationStore()
        self.transport = transport if transport is not None else HttpxTransport(self.settings)

    @property
    def base_uri(self) -> Optional[str]:
        """The settings override (with ``{version}`` applied) or the tree's base URI."""
        if self.settings.base_uri:
            version = self.tree.version
            if version is None:
                return self.settings.base_uri
            return expand(self.settings.base_uri, {"version": version}, partial=True)
        return self.tree.base_uri

    def root(self) -> Route:
        from routekit.generator.route import Route

        return Route(self, (), self.tree.root)

    async def dispatch(
        self,
        route: Route,
        spec: MethodSpec,
        argument: Any,
        options: Any,
        overrides: Mapping[str, Any],
    ) -> ResponseDescriptor:
        """Compose, send and interpret one invocation.

        Raises:
            ConfigError: If *options* has an unknown key or a bad shape.
            ComposeError: If the request cannot be resolved.
            TransportError: If sending fails.
            ResponseParseError: If a JSON response body is invalid.
        """
        request_options = RequestOptions.coerce(options, **overrides)
        request = compose_request(
            spec,
            route._parts(),
            base_uri=self.base_uri,
            base_uri_parameters=self.tree.base_uri_parameters,
            uri_defaults=route._defaults,
            config=self.store.snapshot(),
            options=request_options,
            argument=argument,
        )
        logger.debug("[%s] composed %s %s", self.name, request.method.value, request.full_url)
        response = await self.transport.send(request)
        return interpret(response)

    def __repr__(self) -> str:
        return f"ClientContext({self.name!r}, title={self.tree.title!r})"
