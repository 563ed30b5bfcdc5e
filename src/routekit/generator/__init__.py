"""Client generator -- build a navigable, callable route tree.

This sub-package turns a normalised :class:`~routekit.models.ApiDescription`
into the object consumers actually use: a tree of :class:`Route` handles whose
attributes are child resources and HTTP methods.

Typical usage::

    from routekit.generator import build_route_tree

    tree = build_route_tree(description)
    for expression, node, path in tree.iter_routes():
        print(expression, path)

Sub-modules:

* :mod:`~routekit.generator.route_tree` -- The core algorithm: split resource
  paths into static and variable nodes and freeze them into a read-only tree.
* :mod:`~routekit.generator.route` -- The :class:`Route` handle that exposes
  a node's children and methods and binds path values on invocation.
"""

from routekit.generator.route import Route
from routekit.generator.route_tree import NodeKind, RouteNode, RouteTree, build_route_tree

__all__ = ["build_route_tree", "NodeKind", "Route", "RouteNode", "RouteTree"]
