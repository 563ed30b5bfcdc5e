"""Normalise a raw RAML-style document into an :class:`~routekit.models.ApiDescription`.

The extractor walks the document once, top-down:

1. Read the root properties (``title``, ``version``, ``baseUri``,
   ``baseUriParameters``, ``mediaType``).
2. Every key starting with ``/`` becomes a :class:`~routekit.models.ResourceSpec`;
   nested ``/`` keys recurse.
3. Every HTTP verb key inside a resource becomes a
   :class:`~routekit.models.MethodSpec` with its declared media types and
   header/query defaults.

Structural properties that only matter to a full RAML processor (traits,
resource types, security, documentation, ...) are accepted and ignored. Any
other key inside a resource is reported as a :class:`~routekit.exceptions.SpecError`:
it is neither a nested path nor a valid method.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError

from routekit.exceptions import SpecError
from routekit.models import (
    ApiDescription,
    HTTPMethod,
    MediaTypeBinding,
    MethodSpec,
    ResourceSpec,
    UriParameter,
)

_VERBS = {m.value for m in HTTPMethod}

_IGNORED_RESOURCE_KEYS = frozenset(
    {
        "is",
        "type",
        "securedBy",
        "baseUriParameters",
        "annotations",
    }
)


def extract_description(raw: dict[str, Any]) -> ApiDescription:
    """Build the normalised description from a loaded document.

    Args:
        raw: The document as returned by
            :func:`~routekit.parser.loader.load_description`.

    Returns:
        The :class:`~routekit.models.ApiDescription`.

    Raises:
        SpecError: If a resource holds an unknown key, a node has the wrong
            shape, or the result fails model validation.
    """
    if not isinstance(raw, dict):
        raise SpecError("API description must be a mapping")

    media_type = _first(raw.get("mediaType"))
    resources = [
        _extract_resource(key, value, media_type)
        for key, value in raw.items()
        if isinstance(key, str) and key.startswith("/")
    ]

    try:
        return ApiDescription(
            title=str(raw.get("title") or "API"),
            version=str(raw["version"]) if raw.get("version") is not None else None,
            base_uri=str(raw["baseUri"]) if raw.get("baseUri") else None,
            base_uri_parameters=_extract_parameters(raw.get("baseUriParameters")),
            media_type=media_type,
            resources=resources,
        )
    except ValidationError as exc:
        raise SpecError(f"Invalid API description: {exc}") from exc


def _extract_resource(
    relative_uri: str, node: Any, media_type: Optional[str]
) -> ResourceSpec:
    """Convert one resource node (and its descendants)."""
    if node is None:
        node = {}
    if not isinstance(node, dict):
        raise SpecError(f"Resource {relative_uri!r} must be a mapping")

    methods: list[MethodSpec] = []
    children: list[ResourceSpec] = []

    for key, value in node.items():
        key = str(key)
        if key.startswith("/"):
            children.append(_extract_resource(key, value, media_type))
        elif key.lower() in _VERBS:
            methods.append(_extract_method(key.lower(), value, media_type, relative_uri))
        elif key in ("displayName", "description", "uriParameters"):
            continue
        elif key in _IGNORED_RESOURCE_KEYS or key.startswith("("):
            continue
        else:
            raise SpecError(
                f"Resource {relative_uri!r} declares {key!r}, "
                "which is neither a nested path nor a valid HTTP method"
            )

    try:
        return ResourceSpec(
            relative_uri=relative_uri,
            display_name=node.get("displayName"),
            description=node.get("description"),
            uri_parameters=_extract_parameters(node.get("uriParameters")),
            methods=methods,
            resources=children,
        )
    except ValidationError as exc:
        raise SpecError(f"Invalid resource {relative_uri!r}: {exc}") from exc


def _extract_method(
    verb: str, node: Any, media_type: Optional[str], relative_uri: str
) -> MethodSpec:
    """Convert one method node."""
    if node is None:
        node = {}
    if not isinstance(node, dict):
        raise SpecError(f"Method {verb!r} on {relative_uri!r} must be a mapping")

    request_types = _body_media_types(node.get("body"), media_type)

    response_types: list[str] = []
    for response in (node.get("responses") or {}).values():
        if isinstance(response, dict):
            for media in _body_media_types(response.get("body"), media_type):
                if media not in response_types:
                    response_types.append(media)

    return MethodSpec(
        method=HTTPMethod(verb),
        description=node.get("description"),
        media=MediaTypeBinding(
            request_types=request_types, response_types=response_types
        ),
        headers=_declared_defaults(node.get("headers")),
        query=_declared_defaults(node.get("queryParameters")),
    )


def _body_media_types(body: Any, media_type: Optional[str]) -> list[str]:
    """Return the media types a ``body`` node declares.

    A body keyed by media types (``application/json: ...``) yields those keys.
    A body without media-type keys falls back to the document's ``mediaType``.
    """
    if body is None:
        return []
    if isinstance(body, dict):
        keys = [str(k) for k in body if "/" in str(k)]
        if keys:
            return keys
    return [media_type] if media_type else []


def _extract_parameters(node: Any) -> dict[str, UriParameter]:
    """Convert a ``uriParameters``/``baseUriParameters`` node.

    Accepts full declarations, RAML 1.0 type shorthands (``id: integer``) and
    empty entries.
    """
    if not node:
        return {}
    if not isinstance(node, dict):
        raise SpecError("URI parameter declarations must be a mapping")

    params: dict[str, UriParameter] = {}
    for name, decl in node.items():
        name = str(name)
        if decl is None:
            params[name] = UriParameter(name=name)
        elif isinstance(decl, str):
            params[name] = UriParameter(name=name, type=decl)
        elif isinstance(decl, dict):
            enum = decl.get("enum")
            params[name] = UriParameter(
                name=name,
                type=str(decl.get("type") or "string"),
                description=decl.get("description"),
                default=decl.get("default"),
                enum=list(enum) if isinstance(enum, list) else None,
                required=bool(decl.get("required", True)),
            )
        else:
            raise SpecError(f"Invalid declaration for URI parameter {name!r}")
    return params


def _declared_defaults(node: Any) -> dict[str, Any]:
    """Collect the ``default`` values of a header or query parameter block."""
    if not isinstance(node, dict):
        return {}
    return {
        str(name): decl["default"]
        for name, decl in node.items()
        if isinstance(decl, dict) and decl.get("default") is not None
    }


def _first(value: Any) -> Optional[str]:
    """RAML 1.0 allows ``mediaType`` to be a list; use its first entry."""
    if isinstance(value, list):
        return str(value[0]) if value else None
    return str(value) if value else None
