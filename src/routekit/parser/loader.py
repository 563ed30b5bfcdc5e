"""Read raw API descriptions from a URL, a local file, or stdin.

RAML documents are YAML with a ``#%RAML`` version comment on the first line,
so one YAML decoder covers both. JSON descriptions are accepted as well.

:func:`load_description` is a coroutine. Remote documents are fetched with
:class:`httpx.AsyncClient`; local files and stdin are read in a worker thread
so that client creation never blocks the event loop.

The returned dict is raw: :func:`~routekit.parser.extractor.extract_description`
turns it into the model.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml

from routekit.exceptions import SpecError

JSON = "json"
YAML = "yaml"

_SUFFIX_FORMATS = {".json": JSON, ".yaml": YAML, ".yml": YAML, ".raml": YAML}
_CONTENT_TYPE_MARKERS = ((JSON, ("json",)), (YAML, ("yaml", "yml", "raml")))


async def load_description(source: str, timeout: float = 30.0) -> dict[str, Any]:
    """Load an API description.

    Args:
        source: An ``http(s)://`` URL, a file path, or ``-`` for stdin.
        timeout: Timeout in seconds for remote fetches.

    Returns:
        The description as a plain dict.

    Raises:
        SpecError: If the source cannot be read or does not decode to a
            mapping.
    """
    if source.startswith(("http://", "https://")):
        text, fmt = await _fetch(source, timeout)
    elif source == "-":
        text, fmt = await asyncio.to_thread(_read_stdin), None
    else:
        text, fmt = await asyncio.to_thread(_read_file, Path(source))
    return _parse_content(text, hint=fmt or "")


async def _fetch(url: str, timeout: float) -> tuple[str, Optional[str]]:
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecError(
            f"HTTP {exc.response.status_code} fetching description from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecError(f"Failed to fetch description from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "").lower()
    for fmt, markers in _CONTENT_TYPE_MARKERS:
        if any(marker in content_type for marker in markers):
            return response.text, fmt
    return response.text, None


def _read_stdin() -> str:
    text = sys.stdin.read()
    if not text.strip():
        raise SpecError("No input received from stdin")
    return text


def _read_file(path: Path) -> tuple[str, Optional[str]]:
    """Read *path*; the suffix picks the decoder, anything else is sniffed."""
    if not path.is_file():
        raise SpecError(f"Description file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecError(f"Cannot read description file {path}: {exc}") from exc
    if not text.strip():
        raise SpecError(f"Description file is empty: {path}")
    return text, _SUFFIX_FORMATS.get(path.suffix.lower())


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Decode *content* into a mapping.

    With ``hint="json"`` only JSON is tried and with ``hint="yaml"`` only
    YAML. Without a hint JSON is tried first, then YAML (which also accepts
    most JSON, but reports worse errors for it).

    Raises:
        SpecError: If no decoder succeeds, or the document is not a mapping.
    """
    if hint == JSON:
        try:
            return _as_mapping(json.loads(content))
        except json.JSONDecodeError as exc:
            raise SpecError(f"Invalid JSON: {exc}") from exc

    errors: list[str] = []
    if hint != YAML:
        try:
            return _as_mapping(json.loads(content))
        except json.JSONDecodeError as exc:
            errors.append(f"JSON error: {exc}")
    try:
        return _as_mapping(yaml.safe_load(content))
    except yaml.YAMLError as exc:
        errors.append(f"YAML error: {exc}")

    raise SpecError("\n  ".join(["Failed to parse description as JSON or YAML", *errors]))


def _as_mapping(document: Any) -> dict[str, Any]:
    if isinstance(document, dict):
        return document
    kind = "empty document" if document is None else type(document).__name__
    raise SpecError(f"Description must be a JSON/YAML object (got {kind})")
