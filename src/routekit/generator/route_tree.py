"""Build an immutable route tree from an API description.

This is the core algorithm of routekit. It takes a normalised
:class:`~routekit.models.ApiDescription` and produces a tree of
:class:`RouteNode` objects that route handles
(:class:`~routekit.generator.route.Route`) navigate and invoke.

**Algorithm summary**

1. Validate the description (a mapping is validated into the model first).
2. Split every resource's relative URI on ``/``; each segment becomes a node,
   so ``/body/json`` yields ``body`` -> ``json``.
3. Classify each segment: literal text becomes a *static* node named after
   the text; a segment containing ``{variables}`` becomes a *variable* node
   named after its leading literal text (``mixed{a}{b}`` -> ``mixed``) or,
   when it starts with a variable, after that variable (``{id}`` -> ``id``).
4. Store children under ``(kind, name)`` keys. A static node and a variable
   node with the same name are distinct siblings with independent method
   sets; nothing is merged across that clash. Variable siblings sharing a
   name but not a template (``{id}`` and ``{id}{ext}``) are all kept; the
   route handle picks one from the values it is invoked with.
5. Substitute the declared version into the base URI once; every other
   base-URI placeholder stays in place for the request composer.
6. Freeze the drafts into read-only :class:`RouteNode` instances.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Optional, Union

from pydantic import ValidationError

from routekit.exceptions import SpecError
from routekit.models import (
    ApiDescription,
    HTTPMethod,
    MethodSpec,
    ResourceSpec,
    UriParameter,
)
from routekit.uri_template import TemplatePart, expand, parse_template, variable_names

logger = logging.getLogger(__name__)

_EMPTY: Mapping[Any, Any] = MappingProxyType({})


class NodeKind(str, enum.Enum):
    """How a node is reached from its parent."""

    ROOT = "root"
    STATIC = "static"
    VARIABLE = "variable"


ChildKey = tuple[NodeKind, str]


@dataclass(frozen=True)
class RouteNode:
    """One path segment of the client tree.

    Attributes:
        name: Property name exposed to callers (need not be an identifier).
        kind: ``root``, ``static`` (reached by property lookup) or
            ``variable`` (reached by invoking the property).
        segment: Template parts of this node's path, leading ``/`` included.
        methods: Declared methods, keyed by verb.
        children: Child nodes keyed by ``(kind, name)``, in declaration order.
        alternates: Further variable children sharing a name with the one in
            ``children`` but declared with a different template
            (``/{id}`` and ``/{id}{ext}``), keyed by that name.
        uri_parameters: Declarations for the variables in ``segment``.
    """

    name: str
    kind: NodeKind
    segment: tuple[TemplatePart, ...] = ()
    methods: Mapping[HTTPMethod, MethodSpec] = field(default_factory=lambda: _EMPTY)
    children: Mapping[ChildKey, RouteNode] = field(default_factory=lambda: _EMPTY)
    alternates: Mapping[str, tuple[RouteNode, ...]] = field(default_factory=lambda: _EMPTY)
    uri_parameters: Mapping[str, UriParameter] = field(default_factory=lambda: _EMPTY)

    @property
    def is_variable(self) -> bool:
        """Whether reaching this node takes positional path arguments."""
        return self.kind is NodeKind.VARIABLE

    @property
    def variables(self) -> list[str]:
        return variable_names(self.segment)

    @property
    def template(self) -> str:
        return "".join(str(part) for part in self.segment)

    def child(self, name: str, kind: NodeKind) -> Optional[RouteNode]:
        return self.children.get((kind, name))

    def variants(self, name: str) -> tuple[RouteNode, ...]:
        """Every variable child exposed as *name*, in declaration order."""
        first = self.children.get((NodeKind.VARIABLE, name))
        if first is None:
            return ()
        return (first, *self.alternates.get(name, ()))

    def child_names(self) -> list[str]:
        """Exposed property names in declaration order, each listed once."""
        return list(dict.fromkeys(name for _, name in self.children))

    def method_names(self) -> list[str]:
        return [method.value for method in self.methods]


@dataclass(frozen=True)
class RouteTree:
    """The built client tree plus what the composer needs from the description."""

    title: str
    root: RouteNode
    base_uri: Optional[str] = None
    version: Optional[str] = None
    base_uri_parameters: Mapping[str, UriParameter] = field(default_factory=lambda: _EMPTY)

    def iter_routes(self) -> Iterator[tuple[str, RouteNode, str]]:
        """Yield ``(expression, node, path_template)`` for every non-root node.

        Expressions address nodes the way :func:`resolve_expression` reads
        them: dotted names, with ``()`` marking variable nodes.
        """
        stack: list[tuple[str, RouteNode, str]] = [("", self.root, "")]
        while stack:
            expression, node, path = stack.pop()
            if node is not self.root:
                yield expression, node, path
            entries = []
            for (kind, name), first in node.children.items():
                token = f"{name}()" if kind is NodeKind.VARIABLE else name
                child_expr = f"{expression}.{token}" if expression else token
                siblings = node.variants(name) if kind is NodeKind.VARIABLE else (first,)
                for child in siblings:
                    entries.append((child_expr, child, path + child.template))
            stack.extend(reversed(entries))

    def resolve_expression(self, expression: str) -> RouteNode:
        """Find the node addressed by a dotted expression like ``a.b().c``.

        Raises:
            KeyError: If a step does not exist.
        """
        node = self.root
        for token in filter(None, expression.strip().split(".")):
            kind = NodeKind.STATIC
            if token.endswith("()"):
                kind, token = NodeKind.VARIABLE, token[:-2]
            child = node.child(token, kind)
            if child is None:
                raise KeyError(f"No {kind.value} route {token!r} under {node.name or 'root'!r}")
            node = child
        return node


class _Draft:
    """Mutable node used while the tree is being assembled."""

    def __init__(self, name: str, kind: NodeKind, segment: tuple[TemplatePart, ...]) -> None:
        self.name = name
        self.kind = kind
        self.segment = segment
        self.methods: dict[HTTPMethod, MethodSpec] = {}
        self.children: dict[ChildKey, _Draft] = {}
        self.alternates: dict[str, list[_Draft]] = {}
        self.uri_parameters: dict[str, UriParameter] = {}

    def freeze(self) -> RouteNode:
        return RouteNode(
            name=self.name,
            kind=self.kind,
            segment=self.segment,
            methods=MappingProxyType(dict(self.methods)),
            children=MappingProxyType(
                {key: child.freeze() for key, child in self.children.items()}
            ),
            alternates=MappingProxyType(
                {
                    name: tuple(draft.freeze() for draft in drafts)
                    for name, drafts in self.alternates.items()
                }
            ),
            uri_parameters=MappingProxyType(dict(self.uri_parameters)),
        )


def build_route_tree(description: Union[ApiDescription, Mapping[str, Any]]) -> RouteTree:
    """Build the immutable route tree for *description*.

    Args:
        description: A normalised description, or a mapping that validates
            into one.

    Returns:
        A :class:`RouteTree` whose root represents the empty path.

    Raises:
        SpecError: If the description fails validation (a method without a
            valid verb, a resource without a path, ...).
    """
    if not isinstance(description, ApiDescription):
        try:
            description = ApiDescription.model_validate(description)
        except ValidationError as exc:
            raise SpecError(f"Invalid API description: {exc}") from exc

    root = _Draft("", NodeKind.ROOT, ())
    for resource in description.resources:
        _add_resource(root, resource)

    base_uri = description.base_uri
    if base_uri and description.version is not None:
        base_uri = expand(base_uri, {"version": description.version}, partial=True)

    tree = RouteTree(
        title=description.title,
        root=root.freeze(),
        base_uri=base_uri,
        version=description.version,
        base_uri_parameters=MappingProxyType(dict(description.base_uri_parameters)),
    )
    logger.debug(
        "Built route tree for %r: %d nodes", tree.title, sum(1 for _ in tree.iter_routes())
    )
    return tree


def _add_resource(parent: _Draft, resource: ResourceSpec) -> None:
    """Attach *resource* (and its descendants) below *parent*."""
    node = parent
    for text in resource.relative_uri.split("/"):
        if not text:
            continue
        node = _ensure_child(node, text, resource.uri_parameters)

    for method in resource.methods:
        if method.method in node.methods:
            logger.debug(
                "Method %s redeclared on %s; keeping the later declaration",
                method.method.value,
                resource.relative_uri,
            )
        node.methods[method.method] = method

    for child in resource.resources:
        _add_resource(node, child)


def _ensure_child(
    parent: _Draft, text: str, declared: Mapping[str, UriParameter]
) -> _Draft:
    """Return the child draft for one path segment, creating it if needed."""
    segment = parse_template("/" + text)
    names = variable_names(segment)
    if not names:
        key: ChildKey = (NodeKind.STATIC, text)
    else:
        key = (NodeKind.VARIABLE, _segment_name(segment))

    draft = _find_sibling(parent, key, segment)
    if draft is None:
        draft = _Draft(key[1], key[0], segment)
        if key in parent.children:
            logger.debug(
                "%r and %r both expose %r; invocation picks one by its arguments",
                _template_of(parent.children[key]),
                "/" + text,
                key[1],
            )
            parent.alternates.setdefault(key[1], []).append(draft)
        else:
            parent.children[key] = draft

    for name in names:
        if name in declared:
            draft.uri_parameters[name] = declared[name]
    return draft


def _find_sibling(
    parent: _Draft, key: ChildKey, segment: tuple[TemplatePart, ...]
) -> Optional[_Draft]:
    """Return the existing child for *key* declared with exactly *segment*."""
    first = parent.children.get(key)
    if first is None:
        return None
    for draft in (first, *parent.alternates.get(key[1], ())):
        if draft.segment == segment:
            return draft
    return None


def _template_of(draft: _Draft) -> str:
    return "".join(str(part) for part in draft.segment)


def _segment_name(segment: tuple[TemplatePart, ...]) -> str:
    """Property name of a segment containing variables.

    The literal text before the first variable wins (``/mixed{a}`` ->
    ``mixed``, ``/~{id}`` -> ``~``); otherwise the first variable's name.
    """
    first = segment[0]
    if not first.is_variable:
        prefix = first.text.lstrip("/")
        if prefix:
            return prefix
    return next(part.text for part in segment if part.is_variable)
