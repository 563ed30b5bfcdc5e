"""Route handles: callable, navigable views over the route tree.

A :class:`Route` wraps at most two sibling nodes that share a property name:

* the *static* node, whose methods and children are reachable as attributes
  (``client.collection.get()``, ``client.collection.collectionId``), and
* the *variable* node, reached by calling the handle with path values
  (``client.collection("test").get()``). When several variable templates
  share the name (``/{id}`` and ``/{id}{ext}``), the call picks the one
  whose variables match the supplied values.

Each handle also carries the path parts accumulated on the way down, with
positional values already bound. Variables left unbound are resolved by the
request composer from ``uri_parameters`` and declared defaults.

Attribute lookup checks the node's declared methods first, then children.
Names that are not identifiers, or that shadow a method name, are reachable
with item syntax: ``client["~"]("123")``.

Handles never mutate the tree; navigating or invoking returns a new handle.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Optional

from routekit.generator.route_tree import NodeKind, RouteNode
from routekit.models import ROOT_METHODS, HTTPMethod, MethodSpec, ResponseDescriptor
from routekit.uri_template import TemplatePart, bind, parse_template

if TYPE_CHECKING:
    from routekit.client.context import ClientContext

_ROOT_METHOD_SPECS: Mapping[HTTPMethod, MethodSpec] = MappingProxyType(
    {method: MethodSpec(method=method) for method in ROOT_METHODS}
)


class Route:
    """Handle over a route node, bound to a concrete path prefix.

    Args:
        context: The owning client's context (store, transport, tree).
        prefix: Path parts of the parent, already bound.
        node: The node whose methods and children this handle exposes, or
            ``None`` for a variable-only name that must be invoked first.
        segment: ``node``'s segment with any supplied values bound.
        variants: The variable siblings invoked by calling this handle.
        defaults: Declared URI parameter defaults collected along the path.
    """

    __slots__ = ("_context", "_prefix", "_node", "_segment", "_variants", "_defaults")

    def __init__(
        self,
        context: ClientContext,
        prefix: tuple[TemplatePart, ...],
        node: Optional[RouteNode],
        segment: tuple[TemplatePart, ...] = (),
        variants: tuple[RouteNode, ...] = (),
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._context = context
        self._prefix = prefix
        self._node = node
        self._segment = segment
        self._variants = variants
        self._defaults: Mapping[str, Any] = MappingProxyType(dict(defaults or {}))

    # ------------------------------------------------------------------ #
    # Navigation
    # ------------------------------------------------------------------ #

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        methods = self._methods()
        if name in {method.value for method in methods}:
            return self._caller(methods[HTTPMethod(name)])
        try:
            return self[name]
        except KeyError:
            raise AttributeError(
                f"Route {self._template() or '/'!r} has no method or child {name!r}"
            ) from None

    def __getitem__(self, name: str) -> Route:
        if self._node is None:
            raise KeyError(name)
        static = self._node.child(name, NodeKind.STATIC)
        variants = self._node.variants(name)
        if static is None and not variants:
            raise KeyError(name)

        prefix = self._parts()
        if static is None:
            return Route(self._context, prefix, None, variants=variants, defaults=self._defaults)
        return Route(
            self._context,
            prefix,
            static,
            static.segment,
            variants=variants,
            defaults=self._defaults,
        )

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self._names()

    def __dir__(self) -> list[str]:
        return self._names()

    def __call__(self, *args: Any, **kwargs: Any) -> Route:
        """Bind path values and return the handle for the resulting node.

        On the client root this takes ``(path, variables)`` and appends a
        literal/template path suffix. Elsewhere the positional values fill
        the variable node's placeholders in declaration order; keyword
        arguments bind placeholders by name. ``None`` leaves a placeholder
        unbound for later resolution.
        """
        if self._node is not None and self._node.kind is NodeKind.ROOT:
            return self._invoke_root(*args, **kwargs)
        if not self._variants:
            raise TypeError(f"Route {self._template() or '/'!r} is not callable")

        variable = self._select_variant(args, kwargs)
        values = dict(zip(variable.variables, args))
        values.update(kwargs)

        defaults = dict(self._defaults)
        for name, param in variable.uri_parameters.items():
            if param.default_value is not None:
                defaults[name] = param.default_value

        return Route(
            self._context,
            self._prefix,
            variable,
            bind(variable.segment, values),
            defaults=defaults,
        )

    def _select_variant(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> RouteNode:
        """Pick the variable sibling that accepts the supplied values.

        A sibling accepts the call when it has room for every positional value
        and declares every keyword. The first one whose variable count equals
        the number of values wins, else the first one that accepts.
        """
        supplied = len(args) + len(kwargs)
        accepting = [
            node
            for node in self._variants
            if len(args) <= len(node.variables) and set(kwargs) <= set(node.variables)
        ]
        for node in accepting:
            if len(node.variables) == supplied:
                return node
        if accepting:
            return accepting[0]

        first = self._variants[0]
        names = first.variables
        if len(args) > len(names):
            raise TypeError(
                f"{first.name}() takes at most {len(names)} path "
                f"argument(s) ({len(args)} given)"
            )
        raise TypeError(
            f"{first.name}() got unexpected path variable(s): "
            f"{', '.join(sorted(set(kwargs) - set(names)))}"
        )

    def _invoke_root(
        self, path: str = "", variables: Optional[Mapping[str, Any]] = None
    ) -> Route:
        if path and not path.startswith("/"):
            path = "/" + path
        segment = bind(parse_template(path), variables or {})
        node = RouteNode(name=path, kind=NodeKind.STATIC, segment=segment, methods=_ROOT_METHOD_SPECS)
        return Route(self._context, self._parts(), node, segment, defaults=self._defaults)

    # ------------------------------------------------------------------ #
    # Invocation
    # ------------------------------------------------------------------ #

    def _caller(self, spec: MethodSpec) -> Any:
        """Return the coroutine function for one declared method."""
        route = self

        if spec.method.has_body:

            async def send_with_body(
                body: Any = None, options: Any = None, **kwargs: Any
            ) -> ResponseDescriptor:
                return await route._context.dispatch(route, spec, body, options, kwargs)

            invoke = send_with_body
        else:

            async def send_with_query(
                query: Any = None, options: Any = None, **kwargs: Any
            ) -> ResponseDescriptor:
                return await route._context.dispatch(route, spec, query, options, kwargs)

            invoke = send_with_query

        invoke.__name__ = invoke.__qualname__ = spec.method.value
        invoke.__doc__ = spec.description or f"{spec.method.value.upper()} {self._template() or '/'}"
        return invoke

    # ------------------------------------------------------------------ #
    # Introspection helpers (used by routekit.api and the context)
    # ------------------------------------------------------------------ #

    def _methods(self) -> Mapping[HTTPMethod, MethodSpec]:
        return self._node.methods if self._node is not None else MappingProxyType({})

    def _names(self) -> list[str]:
        if self._node is None:
            return []
        return self._node.child_names() + self._node.method_names()

    def _parts(self) -> tuple[TemplatePart, ...]:
        return self._prefix + self._segment

    def _template(self) -> str:
        return "".join(str(part) for part in self._parts())

    def __repr__(self) -> str:
        methods = ", ".join(method.value for method in self._methods())
        callable_ = " callable" if self._variants or (
            self._node is not None and self._node.kind is NodeKind.ROOT
        ) else ""
        return (
            f"<Route {self._context.name}:{self._template() or '/'} "
            f"methods=[{methods}]{callable_}>"
        )
