"""Response interpretation -- turn a raw transport response into a result.

The transport hands back a :class:`~routekit.models.ResponseDescriptor`
whose ``body`` is still the raw text. :func:`interpret` chooses a parsing
strategy from the response ``Content-Type``:

* JSON (``application/json``, ``*+json``): parsed with :func:`json.loads`;
  an empty body becomes ``None``.
* Form-encoded: parsed into a ``dict`` (repeated keys become lists).
* Anything else: the raw text is kept.

HTTP error statuses are results like any other; only a body that claims to
be JSON and is not raises :class:`~routekit.exceptions.ResponseParseError`.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import parse_qsl

from routekit.exceptions import ResponseParseError
from routekit.models import MediaType, ResponseDescriptor


def interpret(response: ResponseDescriptor) -> ResponseDescriptor:
    """Return *response* with its body parsed according to its content type.

    Args:
        response: The transport's response; ``text`` holds the raw body.

    Returns:
        A new descriptor whose ``body`` is the parsed value. ``text`` keeps
        the raw body.

    Raises:
        ResponseParseError: If a JSON content type carries invalid JSON.
    """
    media = MediaType.from_content_type(response.content_type)
    text = response.text

    if media is MediaType.JSON:
        body = _parse_json(response)
    elif media is MediaType.URL_ENCODED:
        body = _parse_form(text)
    else:
        body = text

    return response.model_copy(update={"body": body})


def _parse_json(response: ResponseDescriptor) -> Any:
    if not response.text.strip():
        return None
    try:
        return json.loads(response.text)
    except json.JSONDecodeError as exc:
        raise ResponseParseError(
            f"Invalid JSON in {response.status} response from {response.url or 'server'}: {exc}",
            raw_body=response.text,
            status=response.status,
            headers=response.headers,
        ) from exc


def _parse_form(text: str) -> dict[str, Any]:
    parsed: dict[str, Any] = {}
    for key, value in parse_qsl(text, keep_blank_values=True):
        if key not in parsed:
            parsed[key] = value
        elif isinstance(parsed[key], list):
            parsed[key].append(value)
        else:
            parsed[key] = [parsed[key], value]
    return parsed
