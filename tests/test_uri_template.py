"""Tests for URI template parsing and expansion."""

from __future__ import annotations

import pytest

from routekit.exceptions import ComposeError
from routekit.uri_template import (
    TemplatePart,
    bind,
    expand,
    parse_template,
    stringify,
    variable_names,
)


class TestParseTemplate:
    def test_literal_only(self) -> None:
        assert parse_template("/collection") == (TemplatePart("/collection"),)

    def test_adjacent_variables(self) -> None:
        parts = parse_template("/mixed{a}{b}")
        assert parts == (
            TemplatePart("/mixed"),
            TemplatePart("a", is_variable=True),
            TemplatePart("b", is_variable=True),
        )

    def test_str_renders_template(self) -> None:
        assert "".join(str(p) for p in parse_template("/~{id}.json")) == "/~{id}.json"

    def test_variable_names_are_unique_and_ordered(self) -> None:
        assert variable_names("/{b}/{a}/{b}") == ["b", "a"]


class TestExpand:
    def test_concatenates_without_delimiter(self) -> None:
        assert expand("/mixed{a}{b}", {"a": "123", "b": "456"}) == "/mixed123456"

    def test_values_are_percent_encoded(self) -> None:
        assert expand("/files/{name}", {"name": "a b/c"}) == "/files/a%20b%2Fc"

    def test_missing_variable_raises(self) -> None:
        with pytest.raises(ComposeError, match="zone"):
            expand("http://{zone}.example.com", {})

    def test_none_counts_as_missing(self) -> None:
        with pytest.raises(ComposeError):
            expand("/{id}", {"id": None})

    def test_partial_keeps_unknown_placeholders(self) -> None:
        result = expand("http://{zone}.example.com/{version}", {"version": "v1"}, partial=True)
        assert result == "http://{zone}.example.com/v1"

    def test_booleans_render_lowercase(self) -> None:
        assert expand("/flag/{on}", {"on": True}) == "/flag/true"


class TestBind:
    def test_binds_supplied_values_only(self) -> None:
        parts = bind(parse_template("/{a}-{b}"), {"a": 1})
        assert "".join(str(p) for p in parts) == "/1-{b}"

    def test_bound_values_are_literals(self) -> None:
        parts = bind(parse_template("/{a}"), {"a": "{b}"})
        assert variable_names(parts) == []
        assert expand(parts, {}) == "/%7Bb%7D"


def test_stringify() -> None:
    assert stringify(None) == ""
    assert stringify(False) == "false"
    assert stringify(12) == "12"
