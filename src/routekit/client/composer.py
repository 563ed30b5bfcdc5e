"""Request composition -- merge option layers into a :class:`RequestDescriptor`.

Every invocation passes through :func:`compose_request`, which layers four
sources from lowest to highest precedence:

1. what the method declaration implies (``Accept``/``Content-Type`` from its
   media types, declared header and query defaults, declared URI parameter
   defaults),
2. the client's configuration store snapshot,
3. the call-time options,
4. the positional first argument (query for bodiless verbs, body otherwise).

The helpers (:func:`merge_query`, :func:`merge_headers`,
:func:`serialize_body`) are pure functions and are tested on their own.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any, Optional, Union
from urllib.parse import quote, quote_plus, unquote_plus, urlencode

from routekit.exceptions import ComposeError
from routekit.models import (
    MediaType,
    MethodSpec,
    RequestDescriptor,
    RequestOptions,
    UriParameter,
)
from routekit.uri_template import TemplatePart, expand, stringify, variable_names

QueryPairs = list[tuple[str, Any]]

BARE = object()
"""Value of a query key written without ``=`` (``flag`` in ``flag&a=1``)."""


def compose_request(
    spec: MethodSpec,
    parts: Sequence[TemplatePart],
    *,
    base_uri: Optional[str],
    base_uri_parameters: Optional[Mapping[str, UriParameter]] = None,
    uri_defaults: Optional[Mapping[str, Any]] = None,
    config: Optional[Mapping[str, Any]] = None,
    options: Optional[RequestOptions] = None,
    argument: Any = None,
) -> RequestDescriptor:
    """Resolve one invocation into a ready-to-send request.

    Args:
        spec: The method being invoked.
        parts: Path template parts of the route; values supplied while
            navigating are already bound.
        base_uri: Base URI template (version already substituted).
        base_uri_parameters: Declared base-URI parameters.
        uri_defaults: Declared URI parameter defaults along the route.
        config: Snapshot of the client's configuration store.
        options: Call-time options.
        argument: The positional first argument.

    Returns:
        The frozen :class:`~routekit.models.RequestDescriptor`.

    Raises:
        ComposeError: If there is no base URI or a path or base-URI
            variable has no value.
    """
    config = config or {}
    options = options or RequestOptions()
    has_body = spec.method.has_body

    unresolved = variable_names(parts)
    positional_query: Any = None
    positional_vars: dict[str, Any] = {}
    if not has_body:
        positional_query = argument
        if isinstance(argument, Mapping) and unresolved:
            # Bodiless verbs take "query or variables": keys naming an
            # unbound path variable fill it, the rest become query.
            positional_vars = {k: v for k, v in argument.items() if k in unresolved}
            positional_query = {k: v for k, v in argument.items() if k not in unresolved}

    uri_values: dict[str, Any] = dict(uri_defaults or {})
    uri_values.update(config.get("uri_parameters") or {})
    uri_values.update(options.uri_parameters or {})
    uri_values.update(positional_vars)
    path = expand(parts, uri_values)

    # Source first, key kind second: a call-time uri_parameters value beats a
    # configured base_uri_parameters one.
    url = _resolve_base_uri(
        base_uri,
        base_uri_parameters or {},
        uri_defaults,
        config.get("uri_parameters"),
        config.get("base_uri_parameters"),
        options.uri_parameters,
        options.base_uri_parameters,
        positional_vars,
    )

    query = merge_query(
        spec.query,
        config.get("query"),
        options.query,
        positional_query,
    )

    headers = merge_headers(
        spec.declared_headers(),
        config.get("headers"),
        options.headers,
    )

    body: Any = None
    if has_body:
        if argument is not None:
            body = argument
        elif options.has_body:
            body = options.body
        else:
            body = config.get("body")

    payload, headers = serialize_body(body, headers)

    return RequestDescriptor(
        method=spec.method,
        url=url + path,
        query=encode_query(query),
        headers=headers,
        body=payload,
    )


def _resolve_base_uri(
    base_uri: Optional[str],
    declared: Mapping[str, UriParameter],
    *layers: Optional[Mapping[str, Any]],
) -> str:
    """Expand *base_uri* from declared defaults overlaid by *layers* in order."""
    if not base_uri:
        raise ComposeError("No base URI: the description declares none and none was configured")

    values: dict[str, Any] = {
        name: param.default_value
        for name, param in declared.items()
        if param.default_value is not None
    }
    for layer in layers:
        values.update(layer or {})
    return expand(base_uri, values).rstrip("/")


# --- Query ---


def _query_pairs(source: Any) -> QueryPairs:
    """Normalise a query source (encoded string or mapping) to ordered pairs.

    Encoded strings are split on ``&`` and unquoted; a key without ``=`` gets
    the :data:`BARE` value so it is written back without one. Sequence values
    yield one pair per item. A ``None`` value is kept so a higher layer can
    remove a lower layer's key.
    """
    if source is None:
        return []
    if isinstance(source, (str, bytes)):
        text = source.decode() if isinstance(source, bytes) else source
        return [_parse_pair(piece) for piece in text.lstrip("?").split("&") if piece]
    if isinstance(source, Mapping):
        pairs: QueryPairs = []
        for key, value in source.items():
            if isinstance(value, (list, tuple)):
                pairs.extend((str(key), item) for item in value)
            else:
                pairs.append((str(key), value))
        return pairs
    raise ComposeError(
        f"Query must be a string or a mapping, got {type(source).__name__}"
    )


def _parse_pair(piece: str) -> tuple[str, Any]:
    key, sep, value = piece.partition("=")
    if not sep:
        return unquote_plus(key), BARE
    return unquote_plus(key), unquote_plus(value)


def merge_query(*layers: Any) -> QueryPairs:
    """Merge query layers, lowest precedence first.

    A layer replaces every pair of each key it defines and keeps the other
    keys, so ``{"test": "data"}`` followed by ``{"this": "that"}`` yields
    both, while two layers defining ``test`` keep only the later values.
    Pairs whose value is ``None`` are dropped from the result.
    """
    merged: QueryPairs = []
    for layer in layers:
        pairs = _query_pairs(layer)
        if not pairs:
            continue
        keys = {key for key, _ in pairs}
        merged = [pair for pair in merged if pair[0] not in keys]
        merged.extend(pairs)
    return [(key, value) for key, value in merged if value is not None]


def encode_query(pairs: QueryPairs) -> str:
    """Form-encode *pairs*; booleans render as ``true``/``false``.

    A :data:`BARE` value writes the key alone, without ``=``.
    """
    return "&".join(
        quote_plus(key) if value is BARE else urlencode({key: stringify(value)})
        for key, value in pairs
    )


# --- Headers ---


def merge_headers(*layers: Optional[Mapping[str, Any]]) -> dict[str, str]:
    """Merge header layers, lowest precedence first.

    Names compare case-insensitively; the spelling of the winning layer is
    kept. A ``None`` value removes the header.
    """
    merged: dict[str, tuple[str, Any]] = {}
    for layer in layers:
        for name, value in (layer or {}).items():
            merged[name.lower()] = (name, value)
    return {
        name: stringify(value) for name, value in merged.values() if value is not None
    }


def _find_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


# --- Body ---


def serialize_body(
    body: Any, headers: dict[str, str]
) -> tuple[Union[str, bytes, None], dict[str, str]]:
    """Serialise *body* for the negotiated ``Content-Type``.

    Args:
        body: The merged body value, ``None`` for no body.
        headers: The merged request headers.

    Returns:
        ``(payload, headers)``. ``headers`` gains ``Content-Type:
        application/json`` when none was set and a structured body was
        serialised as JSON.
    """
    if body is None:
        return None, headers
    if isinstance(body, bytes):
        return body, headers

    content_type = _find_header(headers, "Content-Type")
    if content_type is None:
        if isinstance(body, str):
            return body, headers
        return _to_json(body), {**headers, "Content-Type": "application/json"}

    media = MediaType.from_content_type(content_type)
    if isinstance(body, str):
        return body, headers
    if media is MediaType.JSON:
        return _to_json(body), headers
    if media is MediaType.URL_ENCODED and isinstance(body, Mapping):
        pairs = [(key, stringify(value)) for key, value in _query_pairs(body) if value is not None]
        return urlencode(pairs, quote_via=quote), headers
    return str(body), headers


def _to_json(value: Any) -> str:
    try:
        return json.dumps(value, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise ComposeError(f"Body is not JSON serialisable: {exc}") from exc
