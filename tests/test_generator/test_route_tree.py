"""Tests for routekit.generator.route_tree."""

from __future__ import annotations

import logging

import pytest

from routekit.exceptions import SpecError
from routekit.generator.route_tree import NodeKind, RouteNode, RouteTree, build_route_tree
from routekit.models import ApiDescription, HTTPMethod


@pytest.fixture
def tree(example_description: ApiDescription) -> RouteTree:
    return build_route_tree(example_description)


class TestBuildRouteTree:
    def test_root_is_empty_path(self, tree: RouteTree) -> None:
        assert tree.root.kind is NodeKind.ROOT
        assert tree.root.template == ""
        assert tree.title == "Example API"

    def test_child_names_in_declaration_order(self, tree: RouteTree) -> None:
        assert tree.root.child_names() == [
            "collection",
            "mixed",
            "~",
            "enum",
            "body",
            "responses",
            "defaults",
        ]

    def test_static_and_variable_siblings_are_distinct(self, tree: RouteTree) -> None:
        static = tree.root.child("collection", NodeKind.STATIC)
        variable = tree.root.child("collection", NodeKind.VARIABLE)
        assert static is not None and variable is not None
        assert static is not variable
        assert static.method_names() == ["get", "post"]
        assert variable.method_names() == ["get", "patch"]
        assert variable.template == "/{collection}"

    def test_variable_child_named_after_variable(self, tree: RouteTree) -> None:
        collection = tree.resolve_expression("collection")
        item = collection.child("collectionId", NodeKind.VARIABLE)
        assert item is not None
        assert item.is_variable
        assert item.variables == ["collectionId"]
        assert item.uri_parameters["collectionId"].type == "integer"

    def test_composite_segment_named_after_leading_text(self, tree: RouteTree) -> None:
        mixed = tree.root.child("mixed", NodeKind.VARIABLE)
        assert mixed is not None
        assert mixed.variables == ["a", "b"]
        assert mixed.template == "/mixed{a}{b}"

    def test_non_identifier_names(self, tree: RouteTree) -> None:
        tilde = tree.root.child("~", NodeKind.VARIABLE)
        assert tilde is not None
        assert tilde.template == "/~{id}"

    def test_multi_segment_uri_becomes_chain(self) -> None:
        tree = build_route_tree({"resources": [{"relative_uri": "/a/b/{id}", "methods": [{"method": "get"}]}]})
        node = tree.resolve_expression("a.b.id()")
        assert node.method_names() == ["get"]
        assert tree.resolve_expression("a").method_names() == []

    def test_shared_static_prefix(self) -> None:
        tree = build_route_tree(
            {
                "resources": [
                    {"relative_uri": "/a/b", "methods": [{"method": "get"}]},
                    {"relative_uri": "/a/c", "methods": [{"method": "post"}]},
                ]
            }
        )
        assert tree.resolve_expression("a").child_names() == ["b", "c"]

    def test_redeclared_method_keeps_later(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="routekit.generator.route_tree"):
            tree = build_route_tree(
                {
                    "resources": [
                        {"relative_uri": "/a", "methods": [{"method": "get", "description": "one"}]},
                        {"relative_uri": "/a", "methods": [{"method": "get", "description": "two"}]},
                    ]
                }
            )
        assert tree.resolve_expression("a").methods[HTTPMethod.GET].description == "two"
        assert "redeclared" in caplog.text

    def test_logs_node_count(self, example_description: ApiDescription, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="routekit.generator.route_tree"):
            build_route_tree(example_description)
        assert "Built route tree for 'Example API'" in caplog.text

    def test_same_named_variable_templates_are_both_kept(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="routekit.generator.route_tree"):
            tree = build_route_tree(
                {
                    "resources": [
                        {"relative_uri": "/{id}", "methods": [{"method": "get"}]},
                        {"relative_uri": "/{id}{ext}", "methods": [{"method": "put"}]},
                    ]
                }
            )
        variants = tree.root.variants("id")
        assert [node.template for node in variants] == ["/{id}", "/{id}{ext}"]
        assert list(variants[0].methods) == [HTTPMethod.GET]
        assert list(variants[1].methods) == [HTTPMethod.PUT]
        assert tree.root.child_names() == ["id"]
        assert [path for _, _, path in tree.iter_routes()] == ["/{id}", "/{id}{ext}"]
        assert "both expose 'id'" in caplog.text

    def test_redeclared_variable_template_is_shared(self) -> None:
        tree = build_route_tree(
            {
                "resources": [
                    {"relative_uri": "/{id}", "methods": [{"method": "get"}]},
                    {"relative_uri": "/{id}{ext}", "methods": [{"method": "put"}]},
                    {"relative_uri": "/{id}{ext}", "methods": [{"method": "delete"}]},
                ]
            }
        )
        variants = tree.root.variants("id")
        assert len(variants) == 2
        assert list(variants[1].methods) == [HTTPMethod.PUT, HTTPMethod.DELETE]

    def test_node_defaults_are_empty_read_only_mappings(self) -> None:
        node = RouteNode(name="leaf", kind=NodeKind.STATIC)
        assert dict(node.methods) == {}
        assert dict(node.children) == {}
        assert node.variants("anything") == ()
        with pytest.raises(TypeError):
            node.uri_parameters["x"] = None  # type: ignore[index]
        assert dict(RouteTree(title="t", root=node).base_uri_parameters) == {}

    def test_invalid_method_raises(self) -> None:
        with pytest.raises(SpecError, match="Invalid API description"):
            build_route_tree({"resources": [{"relative_uri": "/a", "methods": [{"method": "fetch"}]}]})

    def test_missing_path_raises(self) -> None:
        with pytest.raises(SpecError):
            build_route_tree({"resources": [{"methods": [{"method": "get"}]}]})

    def test_relative_path_raises(self) -> None:
        with pytest.raises(SpecError):
            build_route_tree({"resources": [{"relative_uri": "users"}]})

    def test_tree_is_read_only(self, tree: RouteTree) -> None:
        with pytest.raises(TypeError):
            tree.root.children[(NodeKind.STATIC, "new")] = tree.root  # type: ignore[index]


class TestBaseUri:
    def test_version_substituted_once(self) -> None:
        tree = build_route_tree(
            {"base_uri": "http://{zone}.example.com/{version}/", "version": "v2"}
        )
        assert tree.base_uri == "http://{zone}.example.com/v2/"
        assert tree.version == "v2"

    def test_without_version_placeholder_is_kept(self) -> None:
        tree = build_route_tree({"base_uri": "http://example.com/{version}"})
        assert tree.base_uri == "http://example.com/{version}"


class TestIterRoutes:
    def test_expressions_and_paths(self, tree: RouteTree) -> None:
        routes = {expr: path for expr, _, path in tree.iter_routes()}
        assert routes["collection"] == "/collection"
        assert routes["collection.collectionId()"] == "/collection/{collectionId}"
        assert routes["collection.collectionId().nestedId()"] == (
            "/collection/{collectionId}/{nestedId}"
        )
        assert routes["collection()"] == "/{collection}"
        assert routes["body.urlEncoded"] == "/body/urlEncoded"

    def test_depth_first_declaration_order(self, tree: RouteTree) -> None:
        expressions = [expr for expr, _, _ in tree.iter_routes()]
        assert expressions[:4] == [
            "collection",
            "collection.collectionId()",
            "collection.collectionId().nestedId()",
            "collection()",
        ]

    def test_resolve_unknown_raises_key_error(self, tree: RouteTree) -> None:
        with pytest.raises(KeyError):
            tree.resolve_expression("collection.missing")
