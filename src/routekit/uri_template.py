"""Expand ``{variable}`` placeholders in URI templates.

Templates are parsed into :class:`TemplatePart` tuples so that route handles
can carry partially bound paths: a bound variable is replaced by a literal
part holding its encoded value, an unbound one stays a variable part until
the request composer resolves it.

Only simple string expansion is supported (no RFC 6570 operators). Literal
text is never re-encoded; variable values are stringified with
:func:`stringify` and percent-encoded.

Example::

    >>> expand("/users/{id}/{kind}", {"id": 42, "kind": "admin"})
    '/users/42/admin'
    >>> expand("http://example.com/{version}/{zone}", {"version": "v2"}, partial=True)
    'http://example.com/v2/{zone}'
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union
from urllib.parse import quote

from routekit.exceptions import ComposeError

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


@dataclass(frozen=True)
class TemplatePart:
    """A literal run of text or a single variable reference."""

    text: str
    is_variable: bool = False

    def __str__(self) -> str:
        return "{" + self.text + "}" if self.is_variable else self.text


Template = Union[str, Sequence[TemplatePart]]


def parse_template(template: str) -> tuple[TemplatePart, ...]:
    """Split *template* into literal and variable parts, in order.

    Adjacent variables (``{a}{b}``) yield adjacent variable parts; nothing is
    inserted between them.
    """
    parts: list[TemplatePart] = []
    position = 0
    for match in _PLACEHOLDER.finditer(template):
        if match.start() > position:
            parts.append(TemplatePart(template[position:match.start()]))
        parts.append(TemplatePart(match.group(1).strip(), is_variable=True))
        position = match.end()
    if position < len(template):
        parts.append(TemplatePart(template[position:]))
    return tuple(parts)


def variable_names(template: Template) -> list[str]:
    """Return the variable names of *template* in order, without duplicates."""
    parts = parse_template(template) if isinstance(template, str) else template
    names: list[str] = []
    for part in parts:
        if part.is_variable and part.text not in names:
            names.append(part.text)
    return names


def stringify(value: Any) -> str:
    """Render a scalar the way it appears on the wire.

    Booleans become ``true``/``false`` and ``None`` the empty string.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_value(value: Any) -> str:
    """Stringify and percent-encode a variable value (``/`` included)."""
    return quote(stringify(value), safe="")


def expand(
    template: Template,
    params: Mapping[str, Any],
    *,
    partial: bool = False,
) -> str:
    """Substitute *params* into *template*.

    Args:
        template: A template string or pre-parsed parts.
        params: Variable values; ``None`` values count as missing.
        partial: Leave unknown placeholders in place instead of failing.

    Returns:
        The expanded string.

    Raises:
        ComposeError: If a variable has no value and *partial* is false.
    """
    parts = parse_template(template) if isinstance(template, str) else template
    out: list[str] = []
    missing: list[str] = []
    for part in parts:
        if not part.is_variable:
            out.append(part.text)
            continue
        value = params.get(part.text)
        if value is None:
            if not partial:
                missing.append(part.text)
            out.append(str(part))
            continue
        out.append(encode_value(value))
    if missing:
        names = ", ".join(dict.fromkeys(missing))
        raise ComposeError(f"Unresolved URI variable(s): {names}")
    return "".join(out)


def bind(
    parts: Sequence[TemplatePart], params: Mapping[str, Any]
) -> tuple[TemplatePart, ...]:
    """Replace every variable present in *params* with a literal of its value."""
    bound: list[TemplatePart] = []
    for part in parts:
        if part.is_variable and params.get(part.text) is not None:
            bound.append(TemplatePart(encode_value(params[part.text])))
        else:
            bound.append(part)
    return tuple(bound)
