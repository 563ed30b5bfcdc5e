"""routekit -- turn a REST API description into a navigable async client.

routekit reads a RAML-style API description (YAML or JSON) and builds, at
runtime, a tree of route handles that are both callable and navigable::

    from routekit import api

    client = await api.create_client("example", "api.raml")
    response = await client.collection.collectionId("123").get({"page": 2})

Static path segments become attributes, templated segments are called with
their values, and every declared HTTP method is a coroutine that resolves to
a :class:`~routekit.models.ResponseDescriptor`.

Modules:
    api: Client creation and per-client defaults (``get``/``set``/``unset``).
    app: Typer CLI (``routekit routes|inspect|request``).
    models: Pydantic models shared across the package.
    config: Configuration store and settings resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    uri_template: ``{variable}`` expansion.
"""

__version__ = "0.1.0"

from routekit.api import build_client, create_client, describe  # noqa: E402
from routekit.exceptions import (  # noqa: E402
    ComposeError,
    ConfigError,
    ResponseParseError,
    RoutekitError,
    SpecError,
    TransportError,
)
from routekit.generator.route import Route  # noqa: E402
from routekit.models import ClientSettings, RequestOptions, ResponseDescriptor  # noqa: E402

__all__ = [
    "ClientSettings",
    "ComposeError",
    "ConfigError",
    "RequestOptions",
    "ResponseDescriptor",
    "ResponseParseError",
    "Route",
    "RoutekitError",
    "SpecError",
    "TransportError",
    "build_client",
    "create_client",
    "describe",
]
